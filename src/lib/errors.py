"""
Exceptions raised inside the snippet pipeline stages

Each fatal ErrorKind has one exception class. Stages raise them where the
problem is detected; the assembler converts them into Diagnostic values so
no caller above it handles exceptions for individual directives.
"""

from typing import Optional

from ..models.directives import Diagnostic, ErrorKind, ParseFailure, Severity


class SnippetError(Exception):
    """Base class for per-directive failures"""

    kind: ErrorKind = ErrorKind.INVALID_DIRECTIVE_SYNTAX

    def __init__(self, message: str, raw: str = "", sourcePath: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.raw = raw
        self.sourcePath = sourcePath

    def diagnostic_make(
        self, page: Optional[str] = None, pageLine: Optional[int] = None
    ) -> Diagnostic:
        """Convert into a fatal Diagnostic, attaching page context"""
        return Diagnostic(
            kind=self.kind,
            sourcePath=self.sourcePath,
            directive=self.raw,
            message=self.message,
            severity=Severity.ERROR,
            page=page,
            pageLine=pageLine,
        )


class DirectiveSyntaxError(SnippetError):
    """Malformed metadata string, illegal path or inverted range"""

    kind = ErrorKind.INVALID_DIRECTIVE_SYNTAX

    def __init__(
        self,
        message: str,
        raw: str = "",
        reason: ParseFailure = ParseFailure.MALFORMED_TOKEN,
        sourcePath: Optional[str] = None,
    ):
        super().__init__(message, raw=raw, sourcePath=sourcePath)
        self.reason = reason


class SourceNotFoundError(SnippetError):
    """Resolved path does not name a readable file under the root"""

    kind = ErrorKind.FILE_NOT_FOUND


class RangeOutOfBoundsError(SnippetError):
    """Requested lines exceed the file length or are non-positive"""

    kind = ErrorKind.RANGE_OUT_OF_BOUNDS


class HighlightOutsideRangeError(SnippetError):
    """Out-of-range highlight lines, raised only when that policy is fatal"""

    kind = ErrorKind.HIGHLIGHT_OUTSIDE_RANGE
