"""
Loguru logging with verbosity taken from the running ProgramState.

LOG() looks up the ProgramState connected to the current context and only
emits when its verbosity is high enough, so lib modules never need a state
argument. The snippet assembler submits work with contextvars.copy_context(),
which means resolver threads see the same state as the pipeline stage that
started them. The thread name is part of the format for that reason.

Usage:
    from fenceline.lib.log import LOG, state_connectToLogger

    state_connectToLogger(state)
    LOG("Found 12 pages", level=1)
    LOG("docs/queue.mdx: 4 code blocks", level=2)
    LOG("Directive failed: ...", level=3)

Diagnostics go through diagnostic_log() instead. They are always emitted,
at loguru's ERROR or WARNING level, with the diagnostic kind and page bound
as extra fields for sinks that want them.
"""

import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger

if TYPE_CHECKING:
    from ..models.directives import Diagnostic

_program_state: ContextVar[Optional[Any]] = ContextVar("program_state", default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<magenta>{thread.name: <22}</magenta> │ "
    "<cyan>{function: <18}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Make a ProgramState's verbosity visible to LOG() in this context.

    Args:
        state: ProgramState (anything with a verbosity attribute)
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Emit a debug message when the connected state's verbosity allows.

    Args:
        message: Text to log
        level: Verbosity needed: 1 normal, 2 with -v, 3 with -vv
        **kwargs: Passed on to loguru
    """
    state = _program_state.get()
    if state is None or getattr(state, "verbosity", 0) < level:
        return
    logger.opt(depth=1).debug(message, **kwargs)


def diagnostic_log(diagnostic: "Diagnostic") -> None:
    """Report a Diagnostic at its own severity, regardless of verbosity"""
    bound = logger.bind(kind=diagnostic.kind.value, page=diagnostic.page)
    if diagnostic.isFatal:
        bound.opt(depth=1).error(str(diagnostic))
    else:
        bound.opt(depth=1).warning(str(diagnostic))
