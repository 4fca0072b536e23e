"""Fire-and-forget wrapper for side effects that must not fail the request."""

import logging
from collections.abc import Awaitable

logger = logging.getLogger(__name__)


async def best_effort(label: str, operation: Awaitable[object]) -> bool:
    """Await ``operation`` and report whether it succeeded.

    Any exception is logged with its traceback and converted to ``False``.
    Callers use the result only for logging and response flags, never to
    decide whether committed state should be undone.
    """
    try:
        await operation
    except Exception:
        logger.exception("Best-effort operation failed: %s", label)
        return False
    logger.debug("Best-effort operation succeeded: %s", label)
    return True
