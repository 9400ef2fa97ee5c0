"""Shared logger helpers.

Hey future me - use these instead of ad-hoc "started"/"done" log lines so every
timed operation has the same shape:

    async with log_operation(logger, "artist_sync", external_id="abc"):
        ...

    log_batch_summary(logger, "provider_fetch", succeeded=9, failed=2)
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


# Yo, the **context fields land on started/completed/failed alike so grepping one
# external_id shows the whole lifecycle. On exception we log with exc_info and re-raise -
# the caller decides what a failure means, we only time it.
@asynccontextmanager
async def log_operation(
    logger: logging.Logger,
    operation: str,
    log_level: int = logging.INFO,
    **context: Any,
) -> AsyncIterator[dict[str, Any]]:
    """Log operation start/end with automatic timing.

    Logs ``{operation}.started``, then ``{operation}.completed`` with
    ``duration_ms`` or ``{operation}.failed`` with error details.

    The yielded dict can be filled by the caller; its keys are added to the
    completion log (e.g. counts known only at the end).

    Args:
        logger: Module logger
        operation: Operation name (e.g. "artist_sync")
        log_level: Level for started/completed (failures always log at ERROR)
        **context: Extra fields for every log line
    """
    start = time.perf_counter()
    logger.log(log_level, f"{operation}.started", extra=context)
    outcome: dict[str, Any] = {}

    try:
        yield outcome
    except Exception as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.error(
            f"{operation}.failed",
            extra={
                **context,
                "duration_ms": duration_ms,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise

    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.log(
        log_level,
        f"{operation}.completed",
        extra={**context, **outcome, "duration_ms": duration_ms},
    )


def log_batch_summary(
    logger: logging.Logger,
    operation: str,
    succeeded: int,
    failed: int,
    **context: Any,
) -> None:
    """Log one summary line for a fan-out batch.

    Escalates to WARNING when anything failed, so partial outages stand out
    without flooding the log with one line per item.
    """
    level = logging.WARNING if failed else logging.INFO
    logger.log(
        level,
        f"{operation}.summary {succeeded} ok, {failed} failed",
        extra={**context, "succeeded": succeeded, "failed": failed},
    )
