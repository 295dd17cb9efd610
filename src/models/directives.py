"""
Directive and diagnostic models

Defines the parsed form of a code-fence metadata string, the enumerated
failure kinds the engine can report, and the Diagnostic value that carries a
failure back to the page-building layer.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional


class ErrorKind(Enum):
    """
    Kinds of problems reported for a directive

    The first three are fatal for the owning directive. The last two are
    warnings that travel alongside a successfully produced Snippet.
    """
    INVALID_DIRECTIVE_SYNTAX = "InvalidDirectiveSyntax"
    FILE_NOT_FOUND = "FileNotFound"
    RANGE_OUT_OF_BOUNDS = "RangeOutOfBounds"
    HIGHLIGHT_OUTSIDE_RANGE = "HighlightOutsideRange"
    UNKNOWN_LANGUAGE = "UnknownLanguage"


class ParseFailure(Enum):
    """
    Enumerated reasons a metadata string fails to parse

    Every malformed input maps to exactly one of these, so each is a
    reachable branch of the parser.
    """
    MALFORMED_TOKEN = "malformed token"
    MALFORMED_NUMBER = "malformed number"
    NON_POSITIVE_LINE = "non-positive line number"
    INVERTED_RANGE = "inverted range"
    MALFORMED_RANGE = "malformed range"
    MALFORMED_MARKER = "malformed highlight marker"
    DUPLICATE_FIELD = "duplicate field"
    EMPTY_PATH = "empty path"
    UNKNOWN_ROOT = "unknown root token"
    PATH_ESCAPES_ROOT = "path escapes root"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Directive:
    """
    Parsed request to include (and optionally highlight) source lines

    Created once per fenced code block and never mutated.

    Attributes:
        raw: The metadata string exactly as written after the opening fence
        language: Language tag (e.g., "ts", "python")
        sourcePath: Path relative to the root named by rootToken, or None for
                    an inline block whose body is the snippet
        rootToken: Root token the path was written against (e.g., "<rootDir>")
        rangeStart: First requested line (1-based, original file numbering)
        rangeEnd: Last requested line, None for whole-file or open-ended
        openEnded: True for "#Ln-" (from line n to end of file)
        highlightedLines: Lines to emphasise, in ORIGINAL file numbering
        attributes: Remaining key=value entries and bare flags (title, etc.)

    Example:
        "ts {12} file=<rootDir>/src/a.ts#L10-L20" parses to
        Directive(language="ts", sourcePath="src/a.ts", rootToken="<rootDir>",
                  rangeStart=10, rangeEnd=20, highlightedLines={12}, ...)
    """
    raw: str
    language: str
    sourcePath: Optional[str] = None
    rootToken: Optional[str] = None
    rangeStart: Optional[int] = None
    rangeEnd: Optional[int] = None
    openEnded: bool = False
    highlightedLines: FrozenSet[int] = field(default_factory=frozenset)
    attributes: Dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def isInline(self) -> bool:
        """True when the block carries its own content (no file=)"""
        return self.sourcePath is None

    @property
    def isWholeFile(self) -> bool:
        return self.rangeStart is None


@dataclass(frozen=True)
class Diagnostic:
    """
    Structured, never-silent report of a directive problem

    Attributes:
        kind: What went wrong
        sourcePath: Source path named by the directive (None for inline blocks
                    or when the path could not be parsed)
        directive: Raw metadata string of the offending fence
        message: Human-readable explanation
        severity: ERROR stops the directive, WARNING does not
        page: Documentation page the fence lives in, when known
        pageLine: 1-based line of the opening fence in that page
    """
    kind: ErrorKind
    sourcePath: Optional[str]
    directive: str
    message: str
    severity: Severity = Severity.ERROR
    page: Optional[str] = None
    pageLine: Optional[int] = None

    @property
    def isFatal(self) -> bool:
        return self.severity is Severity.ERROR

    def location_describe(self) -> str:
        """Return 'page:line' (or a placeholder) for log and report output"""
        if self.page is None:
            return "<unknown page>"
        if self.pageLine is None:
            return self.page
        return f"{self.page}:{self.pageLine}"

    def __str__(self) -> str:
        return (
            f"{self.location_describe()}: {self.severity.value} "
            f"[{self.kind.value}] {self.message} (in `{self.directive}`)"
        )
