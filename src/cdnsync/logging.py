"""Structured logging for the cdnsync command line.

Log lines go to stderr so that stdout stays free for command output. Inside
``project_context`` every event carries the project being processed, which
keeps interleaved output from several projects attributable.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog

from cdnsync.config import Settings, get_settings

# Chatty third-party loggers that only matter when something breaks
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def setup_logging(settings: Settings | None = None, *, stream: TextIO | None = None) -> None:
    """Configure structlog and stdlib logging from *settings*.

    Development runs get coloured console output; everything else is one
    JSON object per line with tracebacks rendered into the event.
    """
    settings = settings or get_settings()
    stream = stream or sys.stderr
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    renderer: structlog.typing.Processor
    if settings.is_development:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())
    else:
        renderer = structlog.processors.JSONRenderer()

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if not settings.is_development:
        processors.append(structlog.processors.format_exc_info)
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )

    # httpx and asyncio log through the standard library
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s", stream=stream, level=log_level
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def project_context(**values: Any) -> Iterator[None]:
    """Bind *values* (``project=``, ``version=``...) to every event in the block."""
    bound = {key: value for key, value in values.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
