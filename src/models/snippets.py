"""
Snippet pipeline data models

Type-safe structures passed between the resolver, extractor, highlight
annotator and assembler. Original-file line numbers and slice-relative line
numbers never share a field name.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from .directives import Diagnostic, Directive


@dataclass(frozen=True)
class SourceFile:
    """
    A source file loaded once per build session

    Owned by the SourceCache. Lines are stored as a tuple so a cached file
    cannot be modified by any consumer.

    Attributes:
        path: Normalized absolute path (the cache key)
        lines: File content split on newlines, without terminators
    """
    path: str
    lines: Tuple[str, ...]

    @property
    def lineCount(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class ExtractedSlice:
    """
    Contiguous run of lines selected from a SourceFile

    Attributes:
        lines: The selected lines, verbatim
        firstOriginalLineNumber: Original file number of lines[0] (1 for a
                                 whole-file slice). Used to translate highlight
                                 numbers into slice-relative positions.
    """
    lines: Tuple[str, ...]
    firstOriginalLineNumber: int = 1

    @property
    def lastOriginalLineNumber(self) -> int:
        return self.firstOriginalLineNumber + len(self.lines) - 1

    def originalLine_contains(self, lineNumber: int) -> bool:
        """Check whether an original-file line number falls inside the slice"""
        return self.firstOriginalLineNumber <= lineNumber <= self.lastOriginalLineNumber


@dataclass(frozen=True)
class HighlightAnnotation:
    """
    Result of translating highlight lines onto a slice

    Attributes:
        highlightedRelativeLines: 1-based positions within the slice
        outsideOriginalLines: Requested original lines the slice does not contain
    """
    highlightedRelativeLines: FrozenSet[int]
    outsideOriginalLines: Tuple[int, ...] = ()


@dataclass(frozen=True)
class Snippet:
    """
    Render-ready artifact handed to the external highlighter

    Attributes:
        language: Language tag as written in the fence
        code: Selected lines joined with "\\n", no other transformation
        highlightedRelativeLines: 1-based slice positions to emphasise
        lexer: Pygments lexer alias matching the language
        sourcePath: Source path the code came from (None for inline blocks)
        firstOriginalLineNumber: Original number of the first code line
        attributes: Pass-through fence attributes (title, showLineNumbers, ...)
        warnings: Non-fatal diagnostics raised while producing the snippet
    """
    language: str
    code: str
    highlightedRelativeLines: FrozenSet[int] = field(default_factory=frozenset)
    lexer: str = "text"
    sourcePath: Optional[str] = None
    firstOriginalLineNumber: int = 1
    attributes: Dict[str, str] = field(default_factory=dict, hash=False)
    warnings: Tuple[Diagnostic, ...] = ()


@dataclass(frozen=True)
class SnippetResult:
    """
    Outcome of one directive: exactly one of snippet or diagnostic is set

    Attributes:
        raw: Raw metadata string of the fence
        snippet: Produced snippet on success
        diagnostic: First fatal diagnostic on failure
        directive: Parsed directive, when parsing succeeded
        page: Page the fence lives in, when known
        pageLine: 1-based page line of the opening fence
    """
    raw: str
    snippet: Optional[Snippet] = None
    diagnostic: Optional[Diagnostic] = None
    directive: Optional[Directive] = None
    page: Optional[str] = None
    pageLine: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.snippet is None) == (self.diagnostic is None):
            raise ValueError("SnippetResult needs exactly one of snippet or diagnostic")

    @property
    def ok(self) -> bool:
        return self.snippet is not None

    @property
    def warnings(self) -> Tuple[Diagnostic, ...]:
        if self.snippet is None:
            return ()
        return self.snippet.warnings


@dataclass(frozen=True)
class FenceBlock:
    """
    A fenced code block found in a documentation page

    Attributes:
        meta: Everything after the opening fence characters (language + meta)
        body: Literal block content between the fences
        pageLine: 1-based line of the opening fence
        page: Page path the block was found in
    """
    meta: str
    body: str
    pageLine: int
    page: Optional[str] = None


@dataclass
class PageReport:
    """Per-page collection of directive outcomes, in page order"""
    page: str
    results: List[SnippetResult] = field(default_factory=list)

    @property
    def errors(self) -> List[Diagnostic]:
        return [r.diagnostic for r in self.results if r.diagnostic is not None]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [w for r in self.results for w in r.warnings]


@dataclass
class BatchReport:
    """
    Outcome of a whole build session

    Failures are isolated per directive, so one bad fence never removes the
    results of any other fence from the report.
    """
    pages: List[PageReport] = field(default_factory=list)

    @property
    def snippetCount(self) -> int:
        return sum(1 for p in self.pages for r in p.results if r.ok)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for p in self.pages for d in p.errors]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [w for p in self.pages for w in p.warnings]

    @property
    def ok(self) -> bool:
        return not self.errors
