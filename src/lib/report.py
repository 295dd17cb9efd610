"""
Build report serialization

Turns a BatchReport into plain data and writes it as YAML for the rendering
layer (or a CI job) to consume. Snippet code is written with YAML block
scalars so multi-line code stays readable in the report.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..models.directives import Diagnostic
from ..models.snippets import BatchReport, PageReport, Snippet, SnippetResult
from .log import LOG


class _ReportDumper(yaml.SafeDumper):
    """SafeDumper writing multi-line strings as literal blocks"""
    pass


def _str_represent(dumper: yaml.SafeDumper, value: str) -> yaml.Node:
    if "\n" in value:
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", value)


_ReportDumper.add_representer(str, _str_represent)


def diagnostic_serialize(diagnostic: Diagnostic) -> Dict[str, Any]:
    return {
        "kind": diagnostic.kind.value,
        "severity": diagnostic.severity.value,
        "message": diagnostic.message,
        "directive": diagnostic.directive,
        "sourcePath": diagnostic.sourcePath,
        "page": diagnostic.page,
        "pageLine": diagnostic.pageLine,
    }


def snippet_serialize(snippet: Snippet) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "language": snippet.language,
        "lexer": snippet.lexer,
        "sourcePath": snippet.sourcePath,
        "firstOriginalLineNumber": snippet.firstOriginalLineNumber,
        "highlightedRelativeLines": sorted(snippet.highlightedRelativeLines),
        "code": snippet.code,
    }
    if snippet.attributes:
        data["attributes"] = dict(snippet.attributes)
    return data


def result_serialize(result: SnippetResult) -> Dict[str, Any]:
    data: Dict[str, Any] = {"directive": result.raw, "pageLine": result.pageLine}
    if result.diagnostic is not None:
        data["error"] = diagnostic_serialize(result.diagnostic)
    elif result.snippet is not None:
        data["snippet"] = snippet_serialize(result.snippet)
        if result.warnings:
            data["warnings"] = [diagnostic_serialize(w) for w in result.warnings]
    return data


def page_serialize(page: PageReport) -> Dict[str, Any]:
    return {
        "page": page.page,
        "blocks": [result_serialize(r) for r in page.results],
    }


def report_serialize(report: BatchReport) -> Dict[str, Any]:
    """
    Convert a BatchReport into plain dicts and lists

    Returns:
        {"summary": {...}, "pages": [...]} ready for yaml.safe_dump
    """
    return {
        "summary": {
            "pages": len(report.pages),
            "snippets": report.snippetCount,
            "errors": len(report.errors),
            "warnings": len(report.warnings),
        },
        "pages": [page_serialize(p) for p in report.pages],
    }


def report_dump(report: BatchReport) -> str:
    return yaml.dump(
        report_serialize(report),
        Dumper=_ReportDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def report_write(report: BatchReport, path: Path, encoding: Optional[str] = None) -> Path:
    """
    Write a BatchReport as YAML

    Args:
        report: Collected build outcome
        path: Destination file (parent directories are created)
        encoding: Output encoding (defaults to settings.source_encoding)

    Returns:
        The path written
    """
    from ..config import appsettings

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report_dump(report), encoding=encoding or appsettings.source_encoding)
    LOG(f"Wrote {path}", level=2)
    return path


def diagnostics_collect(report: BatchReport) -> List[Diagnostic]:
    """All diagnostics of a report, errors first, each group in page order"""
    return list(report.errors) + list(report.warnings)
