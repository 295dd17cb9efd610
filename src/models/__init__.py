"""
Models package for fenceline

Contains data structures and type definitions for the snippet pipeline.
"""

from .state import ProgramState, pipeline
from .directives import Directive, Diagnostic, ErrorKind, ParseFailure, Severity
from .snippets import (
    SourceFile,
    ExtractedSlice,
    HighlightAnnotation,
    Snippet,
    SnippetResult,
    FenceBlock,
    PageReport,
    BatchReport,
)

__all__ = [
    "ProgramState",
    "pipeline",
    "Directive",
    "Diagnostic",
    "ErrorKind",
    "ParseFailure",
    "Severity",
    "SourceFile",
    "ExtractedSlice",
    "HighlightAnnotation",
    "Snippet",
    "SnippetResult",
    "FenceBlock",
    "PageReport",
    "BatchReport",
]
