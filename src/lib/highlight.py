"""
Highlight annotation

Translates highlight line numbers from original-file coordinates into
positions relative to an extracted slice, and handles highlight comments
written inside inline code blocks.
"""

import re
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple

from ..models.directives import Diagnostic, ErrorKind, Severity
from ..models.snippets import ExtractedSlice, HighlightAnnotation


# Comment openers a highlight marker comment may follow
_COMMENT_OPENERS = r"(?://|#|--|/\*|<!--|\{/\*)"
HIGHLIGHT_COMMENT_PATTERN = re.compile(
    rf"^\s*{_COMMENT_OPENERS}\s*highlight-(?P<kind>next-line|start|end)\s*(?:\*/\}}?|-->)?\s*$"
)


def highlights_annotate(
    extracted: ExtractedSlice, highlightedLines: Iterable[int]
) -> HighlightAnnotation:
    """
    Translate original-file highlight lines into slice-relative lines

    Args:
        extracted: The slice produced by the range extractor
        highlightedLines: Requested lines, in original-file numbering

    Returns:
        HighlightAnnotation with the relative set and the requested lines
        that fell outside the slice (sorted)

    Example:
        Slice L10-L20, highlights {12, 25}:
            highlightedRelativeLines = {3}
            outsideOriginalLines     = (25,)
    """
    first = extracted.firstOriginalLineNumber
    relative: Set[int] = set()
    outside: List[int] = []

    for line in sorted(set(highlightedLines)):
        if extracted.originalLine_contains(line):
            relative.add(line - first + 1)
        else:
            outside.append(line)

    return HighlightAnnotation(
        highlightedRelativeLines=frozenset(relative),
        outsideOriginalLines=tuple(outside),
    )


def outsideRange_describe(
    extracted: ExtractedSlice, outside: Tuple[int, ...]
) -> str:
    lines = ", ".join(str(n) for n in outside)
    plural = "s" if len(outside) > 1 else ""
    if not extracted.lines:
        return f"highlight line{plural} {lines} requested but the extracted range is empty"
    return (
        f"highlight line{plural} {lines} outside extracted range "
        f"L{extracted.firstOriginalLineNumber}-L{extracted.lastOriginalLineNumber}"
    )


def outsideRange_diagnostic(
    extracted: ExtractedSlice,
    annotation: HighlightAnnotation,
    raw: str,
    sourcePath: Optional[str],
) -> Optional[Diagnostic]:
    """
    Build the HighlightOutsideRange warning for an annotation, if any

    Returns:
        Warning-severity Diagnostic, or None if every highlight was inside
    """
    if not annotation.outsideOriginalLines:
        return None
    return Diagnostic(
        kind=ErrorKind.HIGHLIGHT_OUTSIDE_RANGE,
        sourcePath=sourcePath,
        directive=raw,
        message=outsideRange_describe(extracted, annotation.outsideOriginalLines),
        severity=Severity.WARNING,
    )


def inlineMarkers_strip(body: str) -> Tuple[str, FrozenSet[int]]:
    """
    Remove highlight comments from an inline block body

    Recognised comments (after //, #, --, /*, <!-- or {/*):
        highlight-next-line   highlights the following line
        highlight-start       starts a highlighted run
        highlight-end         ends it

    Marker lines are removed from the code; highlighted positions refer to
    the returned code. A highlight-start without a matching highlight-end
    runs to the end of the block.

    Args:
        body: Literal inline block content

    Returns:
        (code, highlighted 1-based line positions within code)

    Example:
        "a\\n// highlight-next-line\\nb\\nc" -> ("a\\nb\\nc", {2})
    """
    kept: List[str] = []
    highlighted: Set[int] = set()
    next_line = False
    in_run = False

    for line in body.split("\n"):
        marker = HIGHLIGHT_COMMENT_PATTERN.match(line)
        if marker:
            kind = marker.group("kind")
            if kind == "next-line":
                next_line = True
            elif kind == "start":
                in_run = True
            else:
                in_run = False
            continue

        kept.append(line)
        if next_line or in_run:
            highlighted.add(len(kept))
        next_line = False

    return "\n".join(kept), frozenset(highlighted)
