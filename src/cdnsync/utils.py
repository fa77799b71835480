"""Shared utilities for cdnsync."""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog


@asynccontextmanager
async def timed_operation(
    stage: str,
    log: structlog.stdlib.BoundLogger | None = None,
    **extra: Any,
) -> AsyncIterator[dict[str, Any]]:
    """Time one pipeline stage and log how it ended.

    On success ``<stage>_finished`` is logged at info level. If the block
    raises, ``<stage>_failed`` is logged as a warning with the exception
    type and the exception propagates unchanged.

    Yields a dict holding ``outcome`` (``"ok"`` or ``"failed"``) and, once
    the block exits, ``elapsed_ms``. The block may add keys of its own;
    they are logged with the stage event.
    """
    start = time.perf_counter()
    record: dict[str, Any] = {"outcome": "ok"}
    try:
        yield record
    except Exception as exc:
        record["outcome"] = "failed"
        record["error_type"] = type(exc).__name__
        raise
    finally:
        record["elapsed_ms"] = round((time.perf_counter() - start) * 1000, 2)
        if log is not None:
            fields = {**extra, **record}
            if record["outcome"] == "ok":
                log.info(f"{stage}_finished", **fields)
            else:
                log.warning(f"{stage}_failed", **fields)
