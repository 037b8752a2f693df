"""Central logging configuration utilities.

A single composition-root driven ``configure_logging`` wires separate
stdout/stderr sinks and injects the current retry attempt into every log
record. Core code never touches global logging; it only emits via
``LoggingPort`` or module loggers.

The attempt is taken from ``retry_attempt_var``, which the executor sets
around each invocation of the operation. Anything the operation logs is
therefore tagged with e.g. ``2/4`` (second of four permitted attempts);
outside an execute() call the tag is ``-``.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from typing import Optional

retry_attempt_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "retry_attempt", default="-"
)

DEFAULT_FORMAT = (
    "[%(asctime)s] %(levelname)s %(name)s %(retry_attempt)s: %(message)s"
)


def coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    key = str(level).upper().strip()
    mapping = logging.getLevelNamesMapping()
    return mapping.get(key, logging.INFO)


class _RetryAttemptFilter(logging.Filter):
    """Inject the current attempt tag from contextvar into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.retry_attempt = retry_attempt_var.get()
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


class _MinLevelFilter(logging.Filter):
    def __init__(self, min_level: int):
        super().__init__()
        self.min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.min_level


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
) -> None:
    """Configure root logger with separate stdout/stderr sinks & attempt tag.

    Calling it again replaces the handlers installed by the previous call.
    """
    numeric_level = coerce_level(level)
    fmt = fmt or DEFAULT_FORMAT

    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Clear existing handlers to avoid duplication on reload
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(fmt)
    attempt_filter = _RetryAttemptFilter()

    # stdout handler for DEBUG/INFO
    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(_MaxLevelFilter(logging.INFO))
    stdout_handler.addFilter(attempt_filter)
    stdout_handler.setFormatter(formatter)

    # stderr handler for WARNING+
    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.addFilter(_MinLevelFilter(logging.WARNING))
    stderr_handler.addFilter(attempt_filter)
    stderr_handler.setFormatter(formatter)

    root.addHandler(stdout_handler)
    root.addHandler(stderr_handler)

    logging.getLogger("resilient").debug("Logging configured level=%s", numeric_level)
