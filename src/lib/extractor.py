"""
Line-range extraction

Slices a cached SourceFile according to a directive's range. The SourceFile
is never modified; every call returns a new ExtractedSlice view.
"""

from typing import Optional

from ..models.directives import Directive
from ..models.snippets import ExtractedSlice, SourceFile
from .errors import RangeOutOfBoundsError


def slice_extract(
    source: SourceFile,
    rangeStart: Optional[int] = None,
    rangeEnd: Optional[int] = None,
    raw: str = "",
    sourcePath: Optional[str] = None,
) -> ExtractedSlice:
    """
    Select lines [rangeStart, rangeEnd] (1-based, inclusive) from a file

    Args:
        source: Loaded source file
        rangeStart: First line; None for the whole file
        rangeEnd: Last line; None means "to end of file"
        raw: Raw directive text, for error reporting
        sourcePath: Directive path, for error reporting

    Returns:
        ExtractedSlice whose firstOriginalLineNumber is rangeStart (or 1)

    Raises:
        RangeOutOfBoundsError: When the range does not fit inside the file

    Example:
        For an 8-line file:
            slice_extract(f)          -> lines 1..8, first=1
            slice_extract(f, 1, 7)    -> lines 1..7, first=1
            slice_extract(f, 6, 6)    -> line 6,     first=6
            slice_extract(f, 9, None) -> RangeOutOfBoundsError
    """
    lineCount = source.lineCount

    if rangeStart is None:
        if rangeEnd is not None:
            raise ValueError("rangeEnd given without rangeStart")
        return ExtractedSlice(lines=source.lines, firstOriginalLineNumber=1)

    if rangeStart < 1:
        raise RangeOutOfBoundsError(
            f"line {rangeStart} is not a valid line number (lines start at 1)",
            raw=raw,
            sourcePath=sourcePath,
        )

    if rangeEnd is None:
        if rangeStart > lineCount:
            raise RangeOutOfBoundsError(
                f"range starts at line {rangeStart} but {sourcePath or 'the file'} "
                f"has only {lineCount} lines",
                raw=raw,
                sourcePath=sourcePath,
            )
        rangeEnd = lineCount
    elif rangeEnd > lineCount:
        raise RangeOutOfBoundsError(
            f"range L{rangeStart}-L{rangeEnd} exceeds {sourcePath or 'the file'} "
            f"({lineCount} lines)",
            raw=raw,
            sourcePath=sourcePath,
        )

    if rangeStart > rangeEnd:
        raise RangeOutOfBoundsError(
            f"range L{rangeStart}-L{rangeEnd} is empty",
            raw=raw,
            sourcePath=sourcePath,
        )

    return ExtractedSlice(
        lines=source.lines[rangeStart - 1:rangeEnd],
        firstOriginalLineNumber=rangeStart,
    )


def directive_extract(source: SourceFile, directive: Directive) -> ExtractedSlice:
    """Extract the slice a directive asks for"""
    return slice_extract(
        source,
        directive.rangeStart,
        directive.rangeEnd,
        raw=directive.raw,
        sourcePath=directive.sourcePath,
    )
