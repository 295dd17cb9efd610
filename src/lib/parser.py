"""
Parser for code-fence metadata strings

Transforms the text following an opening code fence into a Directive.

Grammar:
    directive        := language [ highlight-marker ] [ "file=" path [ "#" range ] ] { attribute }
    highlight-marker := "{" item ("," item)* "}"
    item             := int | int "-" int
    range            := "L" int [ "-" [ "L" int ] ]
    attribute        := key "=" value | key "=" quoted | flag

Range forms:
    #L6        single line [6, 6]
    #L1-L7     closed range [1, 7]
    #L9-       open-ended, line 9 to end of file
    (none)     whole file

Highlight markers are written in the ORIGINAL file's line numbers, whatever
range is extracted. Parsing is pure: it never touches the filesystem, so an
inverted range or a path escaping its root is rejected before any I/O.

Example:
    >>> parser = DirectiveParser()
    >>> d = parser.parse("ts {6} file=<rootDir>/src/b.ts#L1-L7")
    >>> d.sourcePath, d.rangeStart, d.rangeEnd, sorted(d.highlightedLines)
    ('src/b.ts', 1, 7, [6])
"""

import re
import posixpath
from typing import Dict, Iterable, List, NoReturn, Optional, Set, Tuple

from ..models.directives import Directive, ParseFailure
from .errors import DirectiveSyntaxError


# Marker braces may contain spaces ("{1, 3}"); quoted attribute values may too.
TOKEN_PATTERN = re.compile(
    r"""\{[^}]*\}?          # highlight marker (possibly unterminated)
      | [^\s=]+="[^"]*"     # key="double quoted"
      | [^\s=]+='[^']*'     # key='single quoted'
      | \S+                 # anything else
    """,
    re.VERBOSE,
)
FLAG_PATTERN = re.compile(r"^[A-Za-z_][\w-]*$")
NUMBER_PATTERN = re.compile(r"^-?\d+$", re.ASCII)
MARKER_RANGE_PATTERN = re.compile(r"^(\S+?)\s*-\s*(\S+)$")
FRAGMENT_PATTERN = re.compile(r"^L(?P<start>[^-]+)(?P<dash>-(?:L?(?P<end>.+))?)?$")
ROOT_PREFIX_PATTERN = re.compile(r"^(?P<token><[^>]*>)(?:/(?P<rest>.*))?$", re.DOTALL)

FILE_KEY = "file"


class DirectiveParser:
    """
    Parser for fenced code block metadata

    Handles:
    - Language tag (first token)
    - Highlight markers with single lines and inclusive ranges
    - file= references with optional root token and line-range fragment
    - Pass-through attributes (title="...", showLineNumbers, ...)
    """

    def __init__(
        self,
        rootTokens: Optional[Iterable[str]] = None,
        defaultRootToken: Optional[str] = None,
        fallbackLanguage: Optional[str] = None,
        maxHighlightSpan: Optional[int] = None,
    ):
        """
        Initialize parser with the set of known root tokens

        Args:
            rootTokens: Tokens allowed at the start of a file= path. The
                        default token is always allowed.
            defaultRootToken: Token assumed for paths written without one
                              (defaults to settings.root_token)
            fallbackLanguage: Language for metadata without a language tag
                              (defaults to settings.fallback_language)
            maxHighlightSpan: Most lines one marker range may cover
                              (defaults to settings.max_highlight_span)
        """
        from ..config import appsettings

        self.defaultRootToken = defaultRootToken or appsettings.root_token
        self.fallbackLanguage = fallbackLanguage or appsettings.fallback_language
        self.maxHighlightSpan = maxHighlightSpan or appsettings.max_highlight_span
        self.rootTokens: Set[str] = set(rootTokens or ())
        self.rootTokens.add(self.defaultRootToken)

    def parse(self, raw: str) -> Directive:
        """
        Parse a metadata string into a Directive

        Args:
            raw: Text after the opening fence characters

        Returns:
            Directive; sourcePath is None when no file= is present

        Raises:
            DirectiveSyntaxError: On any malformed input. The exception's
                                  reason names the ParseFailure branch.
        """
        tokens = self.tokens_split(raw)
        if not tokens:
            return Directive(raw=raw, language=self.fallbackLanguage)

        language = self.fallbackLanguage
        if not tokens[0].startswith("{") and "=" not in tokens[0]:
            language = tokens.pop(0)

        markerToken: Optional[str] = None
        fileValue: Optional[str] = None
        attributes: Dict[str, str] = {}

        for token in tokens:
            if token.startswith("{"):
                if markerToken is not None:
                    self.error(raw, ParseFailure.DUPLICATE_FIELD, "more than one highlight marker")
                markerToken = token
            elif "=" in token:
                key, value = token.split("=", 1)
                value = self.quotes_strip(value)
                if key == FILE_KEY:
                    if fileValue is not None:
                        self.error(raw, ParseFailure.DUPLICATE_FIELD, "more than one file= reference")
                    fileValue = value
                elif not FLAG_PATTERN.match(key):
                    self.error(raw, ParseFailure.MALFORMED_TOKEN, f"invalid attribute name '{key}'")
                elif key in attributes:
                    self.error(raw, ParseFailure.DUPLICATE_FIELD, f"attribute '{key}' given twice")
                else:
                    attributes[key] = value
            elif FLAG_PATTERN.match(token):
                attributes[token] = "true"
            else:
                self.error(raw, ParseFailure.MALFORMED_TOKEN, f"unexpected token '{token}'")

        if fileValue is None:
            highlightedLines = frozenset(self.marker_parse(raw, markerToken) if markerToken else ())
            return Directive(
                raw=raw,
                language=language,
                highlightedLines=highlightedLines,
                attributes=attributes,
            )

        rootToken, sourcePath, fragment = self.fileReference_parse(raw, fileValue)
        rangeStart, rangeEnd, openEnded = self.range_parse(raw, fragment, sourcePath)
        highlightedLines = frozenset(
            self.marker_parse(raw, markerToken, sourcePath) if markerToken else ()
        )

        return Directive(
            raw=raw,
            language=language,
            sourcePath=sourcePath,
            rootToken=rootToken,
            rangeStart=rangeStart,
            rangeEnd=rangeEnd,
            openEnded=openEnded,
            highlightedLines=highlightedLines,
            attributes=attributes,
        )

    def tokens_split(self, raw: str) -> List[str]:
        """Split metadata into whitespace-separated tokens, keeping quotes and markers whole"""
        return TOKEN_PATTERN.findall(raw.strip())

    def quotes_strip(self, value: str) -> str:
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            return value[1:-1]
        return value

    def marker_parse(self, raw: str, token: str, sourcePath: Optional[str] = None) -> Set[int]:
        """
        Parse a highlight marker into original-file line numbers

        Args:
            raw: Full metadata string (for error reporting)
            token: Marker token, braces included (e.g., "{1,3-5}")
            sourcePath: Parsed file= path, attached to errors

        Returns:
            Set of 1-based line numbers; ranges expand inclusively and may
            cover at most maxHighlightSpan lines each

        Example:
            "{1,3-5}" -> {1, 3, 4, 5}
        """
        def fail(reason: ParseFailure, message: str) -> NoReturn:
            self.error(raw, reason, message, sourcePath=sourcePath)

        if not token.endswith("}") or len(token) < 2:
            fail(ParseFailure.MALFORMED_MARKER, f"unterminated highlight marker '{token}'")

        body = token[1:-1].strip()
        if not body:
            fail(ParseFailure.MALFORMED_MARKER, "empty highlight marker")

        lines: Set[int] = set()
        for item in body.split(","):
            item = item.strip()
            if not item:
                fail(ParseFailure.MALFORMED_MARKER, f"empty entry in highlight marker '{token}'")

            if NUMBER_PATTERN.match(item):
                lines.add(self.lineNumber_parse(raw, item, sourcePath))
                continue

            span = MARKER_RANGE_PATTERN.match(item)
            if not span:
                fail(ParseFailure.MALFORMED_NUMBER, f"'{item}' is not a line number")
            first = self.lineNumber_parse(raw, span.group(1), sourcePath)
            last = self.lineNumber_parse(raw, span.group(2), sourcePath)
            if first > last:
                fail(ParseFailure.INVERTED_RANGE, f"highlight range {first}-{last} is inverted")
            if last - first + 1 > self.maxHighlightSpan:
                fail(
                    ParseFailure.MALFORMED_MARKER,
                    f"highlight range {first}-{last} covers more than "
                    f"{self.maxHighlightSpan} lines",
                )
            lines.update(range(first, last + 1))

        return lines

    def fileReference_parse(self, raw: str, value: str) -> Tuple[str, str, Optional[str]]:
        """
        Split a file= value into root token, relative path and range fragment

        Args:
            raw: Full metadata string (for error reporting)
            value: Text after "file=" with quotes removed

        Returns:
            (rootToken, sourcePath, fragment) where fragment excludes the "#"
            and is None when absent

        Example:
            "<rootDir>/src/a.ts#L9-" -> ("<rootDir>", "src/a.ts", "L9-")
        """
        path, hash_sign, fragment = value.partition("#")
        rootToken = self.defaultRootToken

        prefix = ROOT_PREFIX_PATTERN.match(path)
        if prefix:
            rootToken = prefix.group("token")
            if rootToken not in self.rootTokens:
                self.error(raw, ParseFailure.UNKNOWN_ROOT, f"unknown root token '{rootToken}'")
            path = prefix.group("rest") or ""
        elif path.startswith("<"):
            self.error(raw, ParseFailure.UNKNOWN_ROOT, f"malformed root token in '{path}'")

        if not path:
            self.error(raw, ParseFailure.EMPTY_PATH, "file= names no path")

        if path.startswith("/") or posixpath.isabs(path):
            self.error(
                raw,
                ParseFailure.PATH_ESCAPES_ROOT,
                f"absolute path '{path}' is not relative to {rootToken}",
                sourcePath=path,
            )

        normalized = posixpath.normpath(path)
        if normalized == ".." or normalized.startswith("../"):
            self.error(
                raw,
                ParseFailure.PATH_ESCAPES_ROOT,
                f"path '{path}' escapes {rootToken}",
                sourcePath=path,
            )

        return rootToken, path, (fragment if hash_sign else None)

    def range_parse(
        self, raw: str, fragment: Optional[str], sourcePath: Optional[str] = None
    ) -> Tuple[Optional[int], Optional[int], bool]:
        """
        Parse a line-range fragment

        Args:
            raw: Full metadata string (for error reporting)
            fragment: Text after "#", or None for whole file
            sourcePath: Parsed file= path, attached to errors

        Returns:
            (rangeStart, rangeEnd, openEnded)

        Example:
            None       -> (None, None, False)
            "L6"       -> (6, 6, False)
            "L9-"      -> (9, None, True)
            "L1-L7"    -> (1, 7, False)
        """
        if fragment is None:
            return None, None, False

        match = FRAGMENT_PATTERN.match(fragment)
        if not match:
            self.error(
                raw,
                ParseFailure.MALFORMED_RANGE,
                f"'#{fragment}' is not a line range",
                sourcePath=sourcePath,
            )

        start = self.lineNumber_parse(raw, match.group("start"), sourcePath)
        if not match.group("dash"):
            return start, start, False

        if match.group("end") is None:
            return start, None, True

        end = self.lineNumber_parse(raw, match.group("end"), sourcePath)
        if start > end:
            self.error(
                raw,
                ParseFailure.INVERTED_RANGE,
                f"range L{start}-L{end} is inverted",
                sourcePath=sourcePath,
            )
        return start, end, False

    def lineNumber_parse(self, raw: str, text: str, sourcePath: Optional[str] = None) -> int:
        """Parse a 1-based line number, rejecting non-numeric and non-positive values"""
        text = text.strip()
        if not NUMBER_PATTERN.match(text):
            self.error(
                raw,
                ParseFailure.MALFORMED_NUMBER,
                f"'{text}' is not a line number",
                sourcePath=sourcePath,
            )
        number = int(text)
        if number < 1:
            self.error(
                raw,
                ParseFailure.NON_POSITIVE_LINE,
                f"line numbers start at 1, got {number}",
                sourcePath=sourcePath,
            )
        return number

    def error(
        self,
        raw: str,
        reason: ParseFailure,
        message: str,
        sourcePath: Optional[str] = None,
    ) -> NoReturn:
        """
        Report a parse failure

        Raises:
            DirectiveSyntaxError: Always, carrying the raw string and reason
        """
        raise DirectiveSyntaxError(
            f"{reason.value}: {message}",
            raw=raw,
            reason=reason,
            sourcePath=sourcePath,
        )


def directive_parse(raw: str, rootTokens: Optional[Iterable[str]] = None) -> Directive:
    """Parse a metadata string with a one-off DirectiveParser"""
    return DirectiveParser(rootTokens=rootTokens).parse(raw)
