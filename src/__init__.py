"""
fenceline - Source-snippet resolution for documentation builds

Resolves `file=<rootDir>/path#Lx-Ly` and `{n}` highlight markers in fenced
code blocks into render-ready snippets or structured diagnostics.
"""

__version__ = "1.0.0"

from .lib import (
    DirectiveParser,
    RootMap,
    SourceCache,
    SourceResolver,
    SnippetAssembler,
    LOG,
    state_connectToLogger,
)

__all__ = [
    "DirectiveParser",
    "RootMap",
    "SourceCache",
    "SourceResolver",
    "SnippetAssembler",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
