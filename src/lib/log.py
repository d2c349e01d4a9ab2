"""
Centralized logging using Loguru with context-aware verbosity.

This module provides a LOG() function that respects the verbosity of the
current ProgramState (command line) or RenderContext (library use) without
requiring explicit state passing, and a WARN() function for problems that
are always reported, such as carrier payloads that fail to decode.

Usage:
    from lib.log import LOG, WARN, state_connectToLogger

    # At start of pipeline function:
    state_connectToLogger(state)

    # Anywhere in that context:
    LOG("This message appears if verbosity >= 1", level=1)
    LOG("Debug details appear if verbosity >= 2", level=2)
    WARN("Dropped a carrier whose payload is not valid JSON")
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

from ..config import appsettings

# Context variable to hold the current ProgramState or RenderContext
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()  # Remove default handler
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Connect a ProgramState or RenderContext to the logging context.

    Call this at the start of each pipeline function (or render) to make the
    state's verbosity setting available to LOG() calls in that context.

    Args:
        state: Object with a verbosity attribute
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if current state's verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity level required (1=normal, 2=verbose, 3=debug);
               ignored when BLOCKDOWN_DEBUG_MODE is set
        **kwargs: Additional loguru metadata

    Example:
        LOG("Read 3 documents", level=1)
        LOG("Line 12: extracted 'tabs' block", level=3)
    """
    if appsettings.debug_mode:
        logger.opt(depth=1).debug(message, **kwargs)
        return

    state = _program_state.get()
    if state and hasattr(state, 'verbosity') and state.verbosity >= level:
        logger.opt(depth=1).debug(message, **kwargs)


def WARN(message: str, **kwargs: Any) -> None:
    """Log a warning regardless of verbosity"""
    logger.opt(depth=1).warning(message, **kwargs)
