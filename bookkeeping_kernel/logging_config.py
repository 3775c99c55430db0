"""
Structured JSON logging for the bookkeeping core.

Every record leaves the ``bookkeeping`` logger hierarchy as one JSON line:
timestamp, level, logger and message, then the run-scoped context fields
(fiscal year, account, asset...), then whatever the call site passed in
``extra``. Decimals are written as strings so amounts survive the trip.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

CONTEXT_FIELDS = ("correlation_id", "run_id", "fiscal_year", "account_id", "asset_id")

_CONTEXT: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"bookkeeping_log_{name}", default=None) for name in CONTEXT_FIELDS
}


class LogContext:
    """Run-scoped fields copied onto every record logged in the current context.

    Unknown field names and None values are ignored by ``set`` and ``bind``.
    """

    @staticmethod
    def set(**fields: str | None) -> None:
        for name, value in fields.items():
            if value is not None and name in _CONTEXT:
                _CONTEXT[name].set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        values = {name: var.get() for name, var in _CONTEXT.items()}
        return {name: value for name, value in values.items() if value is not None}

    @staticmethod
    def clear() -> None:
        for var in _CONTEXT.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore them."""
        tokens = [
            (_CONTEXT[name], _CONTEXT[name].set(value))
            for name, value in fields.items()
            if value is not None and name in _CONTEXT
        ]
        try:
            yield LogContext
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON formatting
# ---------------------------------------------------------------------------

# Attributes every LogRecord has; anything else came in through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """exc_type, exc_message, and exc_<attr> for each public exception attribute."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if name.startswith("_") or name == "code":
            continue
        if isinstance(value, tuple):
            value = list(value)
        fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        }
        payload.update(extras)

        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            payload.update(_exception_fields(exc))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Logger factory and setup
# ---------------------------------------------------------------------------

ROOT_LOGGER_NAME = "bookkeeping"

_setup_lock = threading.Lock()
_handler_installed = False


def get_logger(name: str) -> logging.Logger:
    """``get_logger("engines.tax")`` -> the ``bookkeeping.engines.tax`` logger."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Install the JSON handler on the ``bookkeeping`` logger.

    Only the first call has an effect until ``reset_logging`` runs. Records
    do not propagate to the root logger.
    """
    global _handler_installed
    with _setup_lock:
        if _handler_installed:
            return
        _handler_installed = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Remove the handler and restore defaults. Used by the test suite."""
    global _handler_installed
    with _setup_lock:
        _handler_installed = False
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
