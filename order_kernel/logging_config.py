"""
Structured JSON logging for the order pricing engines.

Each record becomes one JSON object on one line:

    {"ts": ..., "level": "INFO", "logger": "order_kernel.engines.totals",
     "message": "order_totals_aggregated", "order_id": "SO-42",
     "distributor_id": "D-7", "net_amount": "1652.2832", ...}

``message`` is an event name, never prose.  Keyword data passed through
``extra=`` lands at the top level of the object.  The order scope
(``order_id`` and ``distributor_id``) is bound once by the pricing entry
point with ``bind_order_scope`` and is stamped on every record emitted
inside it, so the engines themselves never pass ids around for logging.

Errors logged with ``exc_info`` are rendered under an ``error`` key that
carries the exception's machine-readable ``code`` and its structured
attributes (``OrderEngineError`` subclasses set these).
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

from order_kernel.domain.values import Currency, Money

__all__ = [
    "ORDER_SCOPE_FIELDS",
    "StructuredFormatter",
    "bind_order_scope",
    "clear_order_scope",
    "configure_logging",
    "current_order_scope",
    "get_logger",
    "reset_logging",
]

ORDER_SCOPE_FIELDS = ("order_id", "distributor_id")

_EMPTY_SCOPE: Mapping[str, str] = MappingProxyType({})
_order_scope: ContextVar[Mapping[str, str]] = ContextVar(
    "order_log_scope", default=_EMPTY_SCOPE
)


# ---------------------------------------------------------------------------
# Order scope
# ---------------------------------------------------------------------------


def current_order_scope() -> dict[str, str]:
    """The order fields bound for the current context."""
    return dict(_order_scope.get())


@contextmanager
def bind_order_scope(
    *,
    order_id: str | None = None,
    distributor_id: str | None = None,
) -> Iterator[dict[str, str]]:
    """
    Stamp ``order_id`` / ``distributor_id`` on records logged in the block.

    None leaves an outer binding in place.  The previous scope is restored
    on exit, including when the block raises.
    """
    scope = dict(_order_scope.get())
    if order_id is not None:
        scope["order_id"] = order_id
    if distributor_id is not None:
        scope["distributor_id"] = distributor_id

    token = _order_scope.set(MappingProxyType(scope))
    try:
        yield dict(scope)
    finally:
        _order_scope.reset(token)


def clear_order_scope() -> None:
    _order_scope.set(_EMPTY_SCOPE)


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _jsonable(value: Any) -> Any:
    """json.dumps hook for the value types the engines log."""
    if isinstance(value, Money):
        return {"amount": str(value.amount), "currency": value.currency.code}
    if isinstance(value, Currency):
        return value.code
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def _error_payload(exc: BaseException) -> dict[str, Any]:
    fields = {
        key: val for key, val in vars(exc).items()
        if not key.startswith("_")
    }
    payload: dict[str, Any] = {
        "type": type(exc).__name__,
        "message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        payload["code"] = code
    if fields:
        payload["fields"] = fields
    return payload


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_order_scope.get(),
        }
        payload.update(
            (key, val) for key, val in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload["error"] = _error_payload(record.exc_info[1])
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_jsonable, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_ROOT = "order_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger ``order_kernel.<name>``; configuration applies to the whole tree."""
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the ``order_kernel`` tree. Later calls are no-ops."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger(_ROOT)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Undo ``configure_logging``. Test suites call this between runs."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_ROOT)
    for handler in list(root.handlers):
        if isinstance(handler.formatter, StructuredFormatter):
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)
