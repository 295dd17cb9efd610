"""
Build state carried between CLI stages

Each stage of the fenceline build takes a ProgramState, copies it, fills in
its own fields and hands the copy on.
"""

from pathlib import Path
from argparse import Namespace
from typing import Optional, Type, TypeVar, List, Dict, Callable, TYPE_CHECKING
from dataclasses import dataclass, field, fields
from functools import reduce

if TYPE_CHECKING:
    from .snippets import BatchReport


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Options and intermediate results of one snippet build.

    Filled in by stage:
        - CLI: inputdir, outputdir, verbosity, rootDir, root, rootsFile,
               pattern, jobs, strictHighlights, reportFile
        - env_check: roots, reportPath, envOK
        - pages_scan: pages
        - snippets_resolve: batchReport
        - report_write: reportWritten

    Attributes:
        rootDir: Directory bound to the default root token (None = inputdir)
        root: Extra TOKEN=DIR bindings from --root
        rootsFile: YAML file with more token bindings
        pattern: Page globs (empty = settings.page_patterns)
        jobs: Worker bound for directive resolution (0 = settings.max_workers)
        strictHighlights: Out-of-range highlights fail their directive
        reportFile: Report filename (empty = settings.report_filename)
        roots: Token -> real directory, as bound by env_check
        reportPath: Where report_write puts the YAML report
        pages: Documentation pages found under inputdir
        batchReport: Outcome of every code block
    """

    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    rootDir: Optional[str] = field(default=None)
    root: List[str] = field(default_factory=list)
    rootsFile: Optional[str] = field(default=None)
    pattern: List[str] = field(default_factory=list)
    jobs: int = field(default=0)
    strictHighlights: bool = field(default=False)
    reportFile: str = field(default="")

    envOK: bool = field(default=False)
    roots: Dict[str, Path] = field(default_factory=dict)
    reportPath: Path = field(default=Path("/"))
    pages: List[Path] = field(default_factory=list)
    batchReport: Optional["BatchReport"] = field(default=None)
    reportWritten: bool = field(default=False)

    @classmethod
    def state_createFromNamespace(
        cls: Type[PS], options: Namespace, inputdir: Path, outputdir: Path
    ) -> PS:
        """
        Build the initial state from parsed CLI options.

        Options that are not ProgramState fields are ignored, and so are
        options argparse left at None (repeatable --root / --pattern that
        were never given), which keeps the dataclass defaults.
        """
        known = {f.name for f in fields(cls)}
        given = {k: v for k, v in vars(options).items() if k in known and v is not None}
        return cls(**{**given, "inputdir": inputdir, "outputdir": outputdir})

    def copy(self: PS) -> PS:
        """Shallow copy; stages replace fields rather than mutate them"""
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Run stages left to right, feeding each the state the previous one returned.

    Example:
        pipeline(state, env_check, pages_scan, snippets_resolve, report_write, results_report)
    """
    return reduce(lambda state, stage: stage(state), stages, initial_state)
