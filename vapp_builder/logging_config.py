"""Logging setup with per-build correlation ids."""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar

from vapp_builder.config import settings

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"


def generate_correlation_id() -> str:
    return uuid.uuid4().hex[:12]


def set_correlation_id(value: str | None = None) -> str:
    """Set the correlation id for the current build; returns it."""
    value = value or generate_correlation_id()
    correlation_id_var.set(value)
    return value


class CorrelationIdFilter(logging.Filter):
    """Stamp records with the current correlation id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


def setup_logging(level: str | None = None) -> None:
    """Configure root logging for the builder.

    Safe to call more than once; the handler is only installed once.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    for handler in root.handlers:
        if any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)
