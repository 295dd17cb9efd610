"""
Directive parser failure tests

Every malformed input raises DirectiveSyntaxError with a distinct
ParseFailure reason and keeps the raw metadata string for diagnostics.
"""

import pytest

from fenceline.lib.errors import DirectiveSyntaxError
from fenceline.lib.parser import DirectiveParser
from fenceline.models.directives import ErrorKind, ParseFailure


@pytest.fixture
def parser():
    return DirectiveParser(rootTokens=["<rootDir>"], defaultRootToken="<rootDir>")


def reason_of(parser, raw):
    with pytest.raises(DirectiveSyntaxError) as info:
        parser.parse(raw)
    assert info.value.raw == raw
    assert info.value.kind is ErrorKind.INVALID_DIRECTIVE_SYNTAX
    return info.value.reason


class TestRangeErrors:
    """Malformed and inverted ranges"""

    def test_inverted_range(self, parser):
        """#L10-L5 is rejected"""
        assert reason_of(parser, "ts file=<rootDir>/a.ts#L10-L5") is ParseFailure.INVERTED_RANGE

    def test_zero_start(self, parser):
        """Lines start at 1"""
        assert reason_of(parser, "ts file=<rootDir>/a.ts#L0-L3") is ParseFailure.NON_POSITIVE_LINE

    def test_zero_end(self, parser):
        """End bound must be positive too"""
        assert reason_of(parser, "ts file=<rootDir>/a.ts#L1-L0") is ParseFailure.NON_POSITIVE_LINE

    def test_non_numeric_start(self, parser):
        """#Lx is a malformed number"""
        assert reason_of(parser, "ts file=<rootDir>/a.ts#Lx") is ParseFailure.MALFORMED_NUMBER

    def test_non_numeric_end(self, parser):
        """#L1-Ly is a malformed number"""
        assert reason_of(parser, "ts file=<rootDir>/a.ts#L1-Ly") is ParseFailure.MALFORMED_NUMBER

    def test_missing_l(self, parser):
        """Fragment must start with L"""
        assert reason_of(parser, "ts file=<rootDir>/a.ts#5") is ParseFailure.MALFORMED_RANGE

    def test_empty_fragment(self, parser):
        """A bare # is not a range"""
        assert reason_of(parser, "ts file=<rootDir>/a.ts#") is ParseFailure.MALFORMED_RANGE

    def test_decimal_line(self, parser):
        """Decimal numbers are malformed"""
        assert reason_of(parser, "ts file=<rootDir>/a.ts#L1.5") is ParseFailure.MALFORMED_NUMBER


class TestMarkerErrors:
    """Malformed highlight markers"""

    def test_zero_in_marker(self, parser):
        """{0} is not a line"""
        assert reason_of(parser, "ts {0} file=<rootDir>/a.ts") is ParseFailure.NON_POSITIVE_LINE

    def test_negative_in_marker(self, parser):
        """{-2} is not a line"""
        assert reason_of(parser, "ts {-2} file=<rootDir>/a.ts") is ParseFailure.NON_POSITIVE_LINE

    def test_word_in_marker(self, parser):
        """{a} is malformed"""
        assert reason_of(parser, "ts {a} file=<rootDir>/a.ts") is ParseFailure.MALFORMED_NUMBER

    def test_empty_marker(self, parser):
        """{} is malformed"""
        assert reason_of(parser, "ts {} file=<rootDir>/a.ts") is ParseFailure.MALFORMED_MARKER

    def test_empty_entry(self, parser):
        """{1,,2} has an empty entry"""
        assert reason_of(parser, "ts {1,,2}") is ParseFailure.MALFORMED_MARKER

    def test_unterminated_marker(self, parser):
        """{1,2 without closing brace"""
        assert reason_of(parser, "ts {1,2") is ParseFailure.MALFORMED_MARKER

    def test_inverted_marker_range(self, parser):
        """{5-3} is inverted"""
        assert reason_of(parser, "ts {5-3}") is ParseFailure.INVERTED_RANGE

    def test_two_markers(self, parser):
        """Only one marker per directive"""
        assert reason_of(parser, "ts {1} {2}") is ParseFailure.DUPLICATE_FIELD


class TestPathErrors:
    """Paths and root tokens rejected before any I/O"""

    def test_traversal(self, parser):
        """'..' escaping the root is rejected"""
        reason = reason_of(parser, "ts file=<rootDir>/../outside.ts")
        assert reason is ParseFailure.PATH_ESCAPES_ROOT

    def test_nested_traversal(self, parser):
        """'..' escaping after normalization is rejected"""
        reason = reason_of(parser, "ts file=<rootDir>/src/../../outside.ts#L1")
        assert reason is ParseFailure.PATH_ESCAPES_ROOT

    def test_absolute_path(self, parser):
        """Absolute paths are not relative to any root"""
        assert reason_of(parser, "ts file=/etc/passwd") is ParseFailure.PATH_ESCAPES_ROOT

    def test_unknown_root(self, parser):
        """Unconfigured tokens are rejected"""
        assert reason_of(parser, "ts file=<nowhere>/a.ts") is ParseFailure.UNKNOWN_ROOT

    def test_malformed_root(self, parser):
        """A token without its closing bracket is rejected"""
        assert reason_of(parser, "ts file=<rootDir/a.ts") is ParseFailure.UNKNOWN_ROOT

    def test_empty_path(self, parser):
        """file= needs a path"""
        assert reason_of(parser, "ts file=") is ParseFailure.EMPTY_PATH

    def test_token_only(self, parser):
        """A root token alone names no file"""
        assert reason_of(parser, "ts file=<rootDir>/") is ParseFailure.EMPTY_PATH

    def test_two_files(self, parser):
        """Only one file= per directive"""
        reason = reason_of(parser, "ts file=<rootDir>/a.ts file=<rootDir>/b.ts")
        assert reason is ParseFailure.DUPLICATE_FIELD

    def test_traversal_carries_path(self, parser):
        """Traversal errors name the offending path"""
        with pytest.raises(DirectiveSyntaxError) as info:
            parser.parse("ts file=<rootDir>/../x.ts")
        assert info.value.sourcePath == "../x.ts"


class TestTokenErrors:
    """Unexpected tokens"""

    def test_stray_fragment(self, parser):
        """A detached #L1 is not a flag"""
        assert reason_of(parser, "ts file=<rootDir>/a.ts #L1") is ParseFailure.MALFORMED_TOKEN

    def test_bad_attribute_name(self, parser):
        """Attribute names must be identifiers"""
        assert reason_of(parser, "ts 1title=x") is ParseFailure.MALFORMED_TOKEN

    def test_duplicate_attribute(self, parser):
        """Attributes may not repeat"""
        assert reason_of(parser, "ts title=a title=b") is ParseFailure.DUPLICATE_FIELD

    def test_message_names_reason(self, parser):
        """Error message starts with the reason"""
        with pytest.raises(DirectiveSyntaxError, match="inverted range"):
            parser.parse("ts file=<rootDir>/a.ts#L10-L5")


class TestMarkerSpanLimit:
    """Marker ranges are bounded"""

    def test_huge_range_rejected(self, parser):
        """A typo such as {1-20000000} fails instead of expanding"""
        reason = reason_of(parser, "ts {1-20000000} file=<rootDir>/a.ts#L1")
        assert reason is ParseFailure.MALFORMED_MARKER

    def test_limit_is_configurable(self):
        """maxHighlightSpan sets the largest accepted range"""
        parser = DirectiveParser(maxHighlightSpan=5)
        assert parser.parse("ts {1-5}").highlightedLines == frozenset(range(1, 6))
        with pytest.raises(DirectiveSyntaxError, match="more than 5 lines"):
            parser.parse("ts {1-6}")

    def test_default_limit_allows_normal_ranges(self, parser):
        """Ordinary ranges stay well inside the default limit"""
        d = parser.parse("ts {10-400} file=<rootDir>/a.ts")
        assert len(d.highlightedLines) == 391


class TestErrorSourcePath:
    """Range and marker errors name the parsed path"""

    def path_of(self, parser, raw):
        with pytest.raises(DirectiveSyntaxError) as info:
            parser.parse(raw)
        return info.value.sourcePath

    def test_inverted_range(self, parser):
        """#L10-L5 errors carry the file path"""
        assert self.path_of(parser, "ts file=<rootDir>/src/queue.ts#L10-L5") == "src/queue.ts"

    def test_malformed_range(self, parser):
        """#Lx errors carry the file path"""
        assert self.path_of(parser, "ts file=<rootDir>/src/queue.ts#Lx") == "src/queue.ts"

    def test_marker_error(self, parser):
        """Marker errors carry the file path too"""
        assert self.path_of(parser, "ts {0} file=<rootDir>/src/queue.ts") == "src/queue.ts"

    def test_inline_marker_error_has_no_path(self, parser):
        """Inline blocks have no path to report"""
        assert self.path_of(parser, "ts {0}") is None
