"""
Build report tests

Serialization of directive outcomes into the YAML report.
"""

import yaml

from fenceline.lib.report import report_dump, result_serialize
from fenceline.models.directives import Diagnostic, ErrorKind, Severity
from fenceline.models.snippets import BatchReport, PageReport, Snippet, SnippetResult


def failure(raw="ts file=<rootDir>/src/missing.ts"):
    return SnippetResult(
        raw=raw,
        diagnostic=Diagnostic(
            kind=ErrorKind.FILE_NOT_FOUND,
            sourcePath="src/missing.ts",
            directive=raw,
            message="src/missing.ts not found",
            page="a.md",
            pageLine=4,
        ),
        pageLine=4,
    )


def success(code="a\nb"):
    warning = Diagnostic(
        kind=ErrorKind.UNKNOWN_LANGUAGE,
        sourcePath=None,
        directive="zz",
        message="no lexer",
        severity=Severity.WARNING,
    )
    return SnippetResult(
        raw="zz",
        snippet=Snippet(language="zz", code=code, warnings=(warning,)),
        pageLine=9,
    )


class TestResultSerialization:
    """result_serialize() branches"""

    def test_failure_has_error_only(self):
        """Failed directives serialize their diagnostic"""
        data = result_serialize(failure())
        assert "snippet" not in data
        assert data["error"]["kind"] == "FileNotFound"
        assert data["error"]["severity"] == "error"
        assert data["error"]["pageLine"] == 4

    def test_success_has_snippet_and_warnings(self):
        """Snippets serialize with their warnings"""
        data = result_serialize(success())
        assert "error" not in data
        assert data["snippet"]["code"] == "a\nb"
        assert data["warnings"][0]["kind"] == "UnknownLanguage"


class TestReportDump:
    """YAML output"""

    def test_round_trips_through_safe_load(self):
        """The dumped report loads back with the same code text"""
        report = BatchReport(pages=[PageReport(page="a.md", results=[success("x\n  y"), failure()])])
        loaded = yaml.safe_load(report_dump(report))
        assert loaded["summary"] == {"pages": 1, "snippets": 1, "errors": 1, "warnings": 1}
        assert loaded["pages"][0]["blocks"][0]["snippet"]["code"] == "x\n  y"

    def test_code_written_as_literal_block(self):
        """Multi-line code uses a | block scalar"""
        report = BatchReport(pages=[PageReport(page="a.md", results=[success("x\ny")])])
        assert "code: |" in report_dump(report)
