"""
Centralized logging using Loguru with context-aware verbosity.

LOG() respects the verbosity of the ProgramState bound to the current
context, so the engine and generator can log without threading the state
through every call.

Features:
- Verbosity gating tied to the bound ProgramState
- Timestamped, colorized stderr output
- Context-local binding via contextvars (safe across threads)
- Silent when no state is bound (library use, tests), unless
  IGN_DEBUG_MODE is set

Usage:
    from ign.lib.log import LOG, state_connectToLogger

    # At the start of a pipeline stage:
    state_connectToLogger(state)

    # Anywhere in that context:
    LOG("Template loaded", level=1)
    LOG("Created src/main.go", level=2)
    LOG("Step 3: conditionals", level=3)
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

from ..config import appsettings

# ProgramState bound to the current context
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{module: <10}</cyan> @ "
    "<cyan>{function: <20}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()  # Remove default handler
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Bind a ProgramState to the logging context.

    Args:
        state: Object with a ``verbosity`` attribute (normally ProgramState)
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if the bound state's verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity required (1=normal, 2=verbose, 3=trace)
        **kwargs: Additional loguru arguments

    Verbosity levels:
        1 = Pipeline milestones (default)
        2 = Per-file generation decisions (-v)
        3 = Directive engine passes (-vv or higher)
    """
    state = _program_state.get()
    verbosity = getattr(state, "verbosity", 0) if state else 0

    if appsettings.debug_mode or verbosity >= level:
        logger.opt(depth=1).debug(message, **kwargs)
