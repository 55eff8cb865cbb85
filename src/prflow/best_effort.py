"""Explicit "try, ignore outcome" combinator.

Optional fetches and cleanup steps must never abort the operation that issues
them. Wrapping them in best_effort() keeps that intent visible at the call site
instead of hiding it behind a bare try/except.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def best_effort(operation: Callable[[], T], *, description: str) -> T | None:
    """Run operation, returning its value, or None if it raised.

    Only Exception subclasses are ignored; KeyboardInterrupt and SystemExit
    propagate. The ignored failure is logged at DEBUG level.

    Args:
        operation: Zero-argument callable to run
        description: What the operation does, for the log record

    Returns:
        The operation's return value, or None when it failed
    """
    try:
        return operation()
    except Exception as e:
        logger.debug("ignored failure while trying to %s: %s", description, e)
        return None
