"""
fenceline - Source-snippet resolution for documentation builds

Pulls line ranges of real source files into fenced code blocks, with
validated highlight markers.
"""

__version__ = "1.0.0"

from .parser import DirectiveParser, directive_parse
from .resolver import RootMap, RootMapError, SourceCache, SourceResolver
from .extractor import slice_extract
from .highlight import highlights_annotate
from .assembler import SnippetAssembler
from .errors import (
    SnippetError,
    DirectiveSyntaxError,
    SourceNotFoundError,
    RangeOutOfBoundsError,
    HighlightOutsideRangeError,
)
from .log import LOG, state_connectToLogger

__all__ = [
    "DirectiveParser",
    "directive_parse",
    "RootMap",
    "RootMapError",
    "SourceCache",
    "SourceResolver",
    "slice_extract",
    "highlights_annotate",
    "SnippetAssembler",
    "SnippetError",
    "DirectiveSyntaxError",
    "SourceNotFoundError",
    "RangeOutOfBoundsError",
    "HighlightOutsideRangeError",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
