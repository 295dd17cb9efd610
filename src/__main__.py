#!/usr/bin/env python3
"""
fenceline - Source-snippet resolution for documentation builds

Scans a tree of Markdown / MDX documentation pages, resolves every fenced
code block that pulls lines from a real source file, and writes a report of
render-ready snippets and diagnostics.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Fence metadata:
    ```ts file=<rootDir>/src/a.ts             whole file
    ```ts file=<rootDir>/src/a.ts#L6          single line
    ```ts file=<rootDir>/src/a.ts#L1-L7       inclusive range
    ```ts file=<rootDir>/src/a.ts#L9-         line 9 to end of file
    ```ts {6} file=<rootDir>/src/a.ts#L1-L7   highlight original line 6
    ```ts                                     inline block, passed through

Usage:
    fenceline inputdir/ outputdir/ --rootDir ../

    The report is written to outputdir/snippets.yaml. The exit status is
    non-zero when any directive failed.

Examples:
    # Resolve every page under docs/ against the repository root
    fenceline docs/ build/ --rootDir .

    # Extra root tokens and strict highlight checking
    fenceline docs/ build/ --rootDir . --root examples=../examples --strictHighlights

    # Verbose output
    fenceline docs/ build/ --rootDir . -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter
from typing import List, Tuple

from chris_plugin import chris_plugin
from .config import appsettings
from .lib import RootMap, RootMapError, SnippetAssembler, __version__, LOG, state_connectToLogger
from .lib.log import diagnostic_log
from .lib.report import diagnostics_collect, report_write as batchReport_write
from .models import BatchReport, ProgramState, pipeline


DISPLAY_TITLE = r"""
   __                     _ _
  / _| ___ _ __   ___ ___| (_)_ __   ___
 | |_ / _ \ '_ \ / __/ _ \ | | '_ \ / _ \
 |  _|  __/ | | | (_|  __/ | | | | |  __/
 |_|  \___|_| |_|\___\___|_|_|_| |_|\___|

  Source snippets for documentation builds
"""

# Define CLI arguments
parser = ArgumentParser(
    description="fenceline - resolve file= code fences in documentation pages",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--rootDir",
    default=None,
    type=str,
    help=f"Directory bound to {appsettings.root_token}. Defaults to inputdir",
)

parser.add_argument(
    "--root",
    action="append",
    default=None,
    type=str,
    help="Extra root binding TOKEN=DIR (repeatable), e.g. --root examples=../examples",
)

parser.add_argument(
    "--rootsFile",
    default=None,
    type=str,
    help="YAML file mapping root tokens to directories",
)

parser.add_argument(
    "--pattern",
    action="append",
    default=None,
    type=str,
    help="Page glob pattern (repeatable). Defaults to " + ", ".join(appsettings.page_patterns),
)

parser.add_argument(
    "--jobs",
    default=0,
    type=int,
    help=f"Directives resolved concurrently (0 = {appsettings.max_workers})",
)

parser.add_argument(
    "--strictHighlights",
    action="store_true",
    default=False,
    help="Fail directives whose highlight lines fall outside the extracted range",
)

parser.add_argument(
    "--reportFile",
    default="",
    type=str,
    help=f"Report filename within outputdir (empty = {appsettings.report_filename})",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve root tokens.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - roots: token -> absolute directory mapping
            - reportPath: Where the report will be written
            - envOK: True if environment is valid

    Exits:
        1 if inputdir is missing, --jobs is negative or a root binding is invalid
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    if state.inputdir is None or not state.inputdir.is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    if state.jobs < 0:
        print(f"Error: --jobs must be 0 or more, got {state.jobs}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    try:
        roots = RootMap()
        if state.rootsFile:
            roots = RootMap.file_load(state.rootsFile)
        if state.rootDir or appsettings.root_token not in roots:
            roots.bind(appsettings.root_token, state.rootDir or state.inputdir)
        for binding in state.root:
            split = appsettings.rootBinding_split(binding)
            if split is None:
                raise RootMapError(f"Malformed --root binding '{binding}', expected TOKEN=DIR")
            roots.bind(*split)
    except RootMapError as e:
        print(f"Error: {e}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.roots = dict(roots.roots)
    for token, directory in state.roots.items():
        LOG(f"Root {token} -> {directory}", level=2)

    state.reportPath = state.outputdir / (state.reportFile or appsettings.report_filename)
    LOG(f"Report file: {state.reportPath}", level=2)

    state.envOK = True
    return state


def pages_scan(inputstate: ProgramState) -> ProgramState:
    """
    Find documentation pages under inputdir.

    Args:
        inputstate: Program state with inputdir set

    Returns:
        ProgramState with added field:
            - pages: Sorted, de-duplicated page paths
    """

    state = inputstate.copy()

    patterns = state.pattern or appsettings.page_patterns
    found = set()
    for pattern in patterns:
        found.update(p for p in state.inputdir.rglob(pattern) if p.is_file())

    state.pages = sorted(found)
    LOG(f"Found {len(state.pages)} pages matching {', '.join(patterns)}", level=1)
    return state


def snippets_resolve(inputstate: ProgramState) -> ProgramState:
    """
    Resolve every fenced code block of every page.

    A fresh SourceCache is created for this build session; it lives only
    as long as this stage.

    Args:
        inputstate: Program state with pages and roots

    Returns:
        ProgramState with added field:
            - batchReport: BatchReport with one result per code block

    Exits:
        1 if a page cannot be read
    """

    state = inputstate.copy()

    LOG("Resolving code blocks...", level=1)

    pages: List[Tuple[str, str]] = []
    for page in state.pages:
        try:
            text = page.read_bytes().decode(appsettings.source_encoding)
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading page {page}: {e}", file=sys.stderr)
            sys.exit(1)
        pages.append((page.relative_to(state.inputdir).as_posix(), text))

    assembler = SnippetAssembler.session_create(
        RootMap(state.roots),
        highlightOutsideRangeFatal=True if state.strictHighlights else None,
        maxWorkers=state.jobs or None,
    )
    report = BatchReport(pages=assembler.pages_assemble(pages))
    LOG(
        f"Resolved {report.snippetCount} snippets, read "
        f"{assembler.resolver.cache.reads} source files",
        level=2,
    )

    for diagnostic in diagnostics_collect(report):
        diagnostic_log(diagnostic)

    state.batchReport = report
    return state


def report_write(inputstate: ProgramState) -> ProgramState:
    """
    Write the batch report as YAML.

    Args:
        inputstate: Program state with batchReport and reportPath

    Returns:
        ProgramState with added field:
            - reportWritten: True once the report is on disk

    Exits:
        1 if no report is available
    """

    state = inputstate.copy()

    if state.batchReport is None:
        print("Error: No snippet report available", file=sys.stderr)
        sys.exit(1)

    batchReport_write(state.batchReport, state.reportPath)
    state.reportWritten = True
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display build results to the user.

    Args:
        inputstate: Program state with batchReport populated

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if any directive failed
    """
    state: ProgramState = inputstate.copy()
    report: BatchReport = state.batchReport

    LOG(f"  Report:   {state.reportPath}", level=1)
    LOG(f"  Pages:    {len(report.pages)}", level=1)
    LOG(f"  Snippets: {report.snippetCount}", level=1)
    LOG(f"  Errors:   {len(report.errors)}", level=1)
    LOG(f"  Warnings: {len(report.warnings)}", level=1)

    if not report.ok:
        print(f"Error: {len(report.errors)} code blocks could not be resolved", file=sys.stderr)
        sys.exit(1)

    LOG("\n✓ All code blocks resolved", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="fenceline - source snippets for documentation builds",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - resolve every code fence of a documentation tree.

    Orchestrates the build pipeline:
        1. env_check: Validate inputdir and bind root tokens
        2. pages_scan: Find documentation pages
        3. snippets_resolve: Resolve all code blocks concurrently
        4. report_write: Write the YAML report
        5. results_report: Summarise and set exit status

    Args:
        options: CLI arguments from argparse
        inputdir: Directory containing documentation pages
        outputdir: Directory where the report will be written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, pages_scan, snippets_resolve, report_write, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
