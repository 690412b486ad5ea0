"""Structured logging utilities.

Every record carries the id of the optimizer or simulation run that emitted
it, so scoring, solving and balancing lines from one request can be grepped
together even when runs interleave across threads.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from housekeeping.utils.config import get_settings


_LOGGER_INITIALIZED = False

NO_RUN_ID = "-"

_current_run_id: ContextVar[str] = ContextVar("housekeeping_run_id", default=NO_RUN_ID)


class RunIdFilter(logging.Filter):
    """Stamp `record.run_id` from the active run context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _current_run_id.get()
        return True


def current_run_id() -> str:
    return _current_run_id.get()


@contextmanager
def run_context(run_id: str) -> Iterator[str]:
    """Bind `run_id` to every log record emitted inside the block."""
    token = _current_run_id.set(run_id)
    try:
        yield run_id
    finally:
        _current_run_id.reset(token)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-wide logging once."""

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    settings = get_settings()
    resolved_level = (level or settings.log_level).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RunIdFilter())
    logging.basicConfig(
        level=resolved_level,
        format=(
            "%(asctime)s | %(levelname)s | %(name)s | run=%(run_id)s | %(message)s"
        ),
        handlers=[handler],
    )
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger for the requested module."""
    configure_logging()
    return logging.getLogger(name)
