"""
Range extraction and highlight annotation tests

Covers the coordinate translation between original-file line numbers and
slice-relative positions.
"""

import pytest

from fenceline.lib.errors import RangeOutOfBoundsError
from fenceline.lib.extractor import slice_extract
from fenceline.lib.highlight import (
    highlights_annotate,
    inlineMarkers_strip,
    outsideRange_diagnostic,
)
from fenceline.models.directives import ErrorKind, Severity
from fenceline.models.snippets import ExtractedSlice, SourceFile


def source_of(count):
    return SourceFile(path="/repo/f.ts", lines=tuple(f"line {n}" for n in range(1, count + 1)))


class TestExtraction:
    """slice_extract() range forms"""

    def test_whole_file(self):
        """No range yields every line, numbered from 1"""
        extracted = slice_extract(source_of(8))
        assert len(extracted.lines) == 8
        assert extracted.firstOriginalLineNumber == 1

    def test_closed_range(self):
        """L1-L7 of an 8-line file excludes line 8"""
        extracted = slice_extract(source_of(8), 1, 7)
        assert extracted.lines == tuple(f"line {n}" for n in range(1, 8))
        assert "line 8" not in extracted.lines

    def test_single_line(self):
        """[6, 6] yields exactly one line"""
        extracted = slice_extract(source_of(8), 6, 6)
        assert extracted.lines == ("line 6",)
        assert extracted.firstOriginalLineNumber == 6

    def test_open_ended(self):
        """L9- runs to the last line"""
        extracted = slice_extract(source_of(12), 9, None)
        assert extracted.lines == ("line 9", "line 10", "line 11", "line 12")
        assert extracted.firstOriginalLineNumber == 9

    def test_open_ended_last_line(self):
        """Open-ended range starting on the last line"""
        extracted = slice_extract(source_of(9), 9, None)
        assert extracted.lines == ("line 9",)

    def test_open_ended_past_end(self):
        """L9- of an 8-line file is out of bounds"""
        with pytest.raises(RangeOutOfBoundsError) as info:
            slice_extract(source_of(8), 9, None, raw="ts file=f.ts#L9-", sourcePath="f.ts")
        assert info.value.kind is ErrorKind.RANGE_OUT_OF_BOUNDS
        assert info.value.raw == "ts file=f.ts#L9-"

    def test_end_past_end(self):
        """Closed range ending after the file is out of bounds"""
        with pytest.raises(RangeOutOfBoundsError, match="8 lines"):
            slice_extract(source_of(8), 2, 9, sourcePath="f.ts")

    def test_non_positive_start(self):
        """Start below 1 is out of bounds"""
        with pytest.raises(RangeOutOfBoundsError):
            slice_extract(source_of(8), 0, 3)

    def test_empty_file_whole(self):
        """Whole-file extraction of an empty file is empty"""
        extracted = slice_extract(source_of(0))
        assert extracted.lines == ()

    def test_empty_file_range(self):
        """Any explicit line of an empty file is out of bounds"""
        with pytest.raises(RangeOutOfBoundsError):
            slice_extract(source_of(0), 1, 1)

    def test_source_not_mutated(self):
        """Extraction leaves the cached file untouched"""
        source = source_of(8)
        before = source.lines
        slice_extract(source, 2, 4)
        assert source.lines is before
        assert source.lineCount == 8


class TestHighlightTranslation:
    """Original to relative line numbers"""

    def test_translation_and_outside(self):
        """#L10-L20 with {12, 25} gives {3} and reports 25"""
        extracted = slice_extract(source_of(30), 10, 20)
        annotation = highlights_annotate(extracted, {12, 25})
        assert annotation.highlightedRelativeLines == frozenset({3})
        assert annotation.outsideOriginalLines == (25,)

    def test_whole_file_is_identity(self):
        """Whole-file slices keep original numbers"""
        extracted = slice_extract(source_of(8))
        annotation = highlights_annotate(extracted, {1, 8})
        assert annotation.highlightedRelativeLines == frozenset({1, 8})
        assert annotation.outsideOriginalLines == ()

    def test_bounds_inclusive(self):
        """First and last line of the slice are inside"""
        extracted = slice_extract(source_of(30), 10, 20)
        annotation = highlights_annotate(extracted, {9, 10, 20, 21})
        assert annotation.highlightedRelativeLines == frozenset({1, 11})
        assert annotation.outsideOriginalLines == (9, 21)

    def test_no_highlights(self):
        """Empty request gives empty annotation"""
        annotation = highlights_annotate(slice_extract(source_of(3)), set())
        assert annotation.highlightedRelativeLines == frozenset()
        assert outsideRange_diagnostic(slice_extract(source_of(3)), annotation, "ts", None) is None

    def test_outside_diagnostic_is_warning(self):
        """Out-of-range highlights produce a warning"""
        extracted = slice_extract(source_of(30), 10, 20)
        annotation = highlights_annotate(extracted, {12, 25})
        warning = outsideRange_diagnostic(extracted, annotation, "ts {12,25}", "f.ts")
        assert warning.kind is ErrorKind.HIGHLIGHT_OUTSIDE_RANGE
        assert warning.severity is Severity.WARNING
        assert not warning.isFatal
        assert "25" in warning.message
        assert "L10-L20" in warning.message

    def test_empty_slice_message(self):
        """Highlights on an empty slice mention the empty range"""
        extracted = ExtractedSlice(lines=(), firstOriginalLineNumber=1)
        annotation = highlights_annotate(extracted, {1})
        warning = outsideRange_diagnostic(extracted, annotation, "ts {1}", None)
        assert "empty" in warning.message


class TestInlineMarkers:
    """Highlight comments in inline blocks"""

    def test_no_markers_is_identity(self):
        """Bodies without markers are returned unchanged"""
        body = "a\n  b\n\nc  "
        code, lines = inlineMarkers_strip(body)
        assert code == body
        assert lines == frozenset()

    def test_next_line(self):
        """highlight-next-line marks the following line"""
        code, lines = inlineMarkers_strip("a\n// highlight-next-line\nb\nc")
        assert code == "a\nb\nc"
        assert lines == frozenset({2})

    def test_start_end(self):
        """highlight-start / highlight-end mark a run"""
        body = "a\n# highlight-start\nb\nc\n# highlight-end\nd"
        code, lines = inlineMarkers_strip(body)
        assert code == "a\nb\nc\nd"
        assert lines == frozenset({2, 3})

    def test_html_comment(self):
        """HTML comment markers are recognised"""
        code, lines = inlineMarkers_strip("<!-- highlight-next-line -->\n<p>x</p>")
        assert code == "<p>x</p>"
        assert lines == frozenset({1})

    def test_jsx_comment(self):
        """JSX comment markers are recognised"""
        code, lines = inlineMarkers_strip("{/* highlight-next-line */}\n<Tag />")
        assert code == "<Tag />"
        assert lines == frozenset({1})

    def test_unterminated_run(self):
        """A run without end reaches the end of the block"""
        code, lines = inlineMarkers_strip("a\n// highlight-start\nb\nc")
        assert code == "a\nb\nc"
        assert lines == frozenset({2, 3})

    def test_marker_text_in_code_is_kept(self):
        """Marker words inside code, not a whole comment line, stay"""
        body = 'const s = "// highlight-next-line"'
        code, lines = inlineMarkers_strip(body)
        assert code == body
        assert lines == frozenset()
