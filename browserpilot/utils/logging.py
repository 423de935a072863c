"""Structured logging for browser control.

Logs go to stderr so a host process can keep stdout for its own protocol
(tool results, JSON-RPC). Every component logs through structlog with a
bound `component=` key; per-call keys such as `tool_use_id` ride on
contextvars via LogContext.
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional, TextIO

import structlog

if TYPE_CHECKING:
    from browserpilot.config import BrowserSettings


def _processors(include_timestamp: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors.append(structlog.processors.format_exc_info)
    return processors


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    include_timestamp: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Render one JSON object per line instead of console output
        include_timestamp: Add an ISO timestamp to each event
        stream: Destination (defaults to stderr)
    """
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=stream is None and sys.stderr.isatty())
    )

    structlog.configure(
        processors=[*_processors(include_timestamp), renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings(settings: Optional["BrowserSettings"] = None) -> None:
    """Configure logging from BrowserSettings.log_level / json_logs."""
    from browserpilot.config import get_settings

    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)


def get_logger(name: Optional[str] = None, **context) -> structlog.BoundLogger:
    """Get a logger, optionally with context already bound.

    Example:
        log = get_logger(__name__, component="cdp_backend")
    """
    logger = structlog.get_logger(name)
    return logger.bind(**context) if context else logger


class LogContext:
    """Bind keys to every log event emitted inside the block.

    Nested contexts restore the outer values on exit.

    Usage:
        with LogContext(tool_use_id="toolu_01", browser="Chrome"):
            await router.navigate(url)
    """

    def __init__(self, **context):
        self.context = context
        self._tokens: Optional[dict] = None

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._tokens is not None:
            structlog.contextvars.reset_contextvars(**self._tokens)
            self._tokens = None


@contextmanager
def log_operation(
    operation: str,
    logger: Optional[structlog.BoundLogger] = None,
    **context,
):
    """Log the start, outcome and duration of one operation.

    The yielded dict is merged into the completion event, so callers can
    attach results. Exceptions are logged and re-raised.

    Example:
        with log_operation("browser_navigate", url=url) as op:
            op["frame_id"] = await backend.navigate(url)
    """
    log = (logger or get_logger()).bind(operation=operation, **context)
    log.debug(f"{operation} started")

    outcome: dict[str, Any] = {"success": False, "error": None}
    started = time.monotonic()
    try:
        yield outcome
    except Exception as e:
        outcome["error"] = str(e)
        outcome["duration_ms"] = int((time.monotonic() - started) * 1000)
        log.error(f"{operation} failed", **outcome)
        raise

    outcome["success"] = True
    outcome["duration_ms"] = int((time.monotonic() - started) * 1000)
    log.info(f"{operation} completed", **outcome)
