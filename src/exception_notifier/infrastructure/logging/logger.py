# src/exception_notifier/infrastructure/logging/logger.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Structured JSON logging for the exception notifier.

One JSON object per line with stable keys (``ts``, ``level``, ``logger``,
``message``), the ``fault_id`` of the fault being processed, a short
exception summary when ``exc_info`` is attached, and whatever the caller
passed through ``extra=``.

The fault id lives in a context variable: it is bound when a fault is
captured and follows the notification task, so classification, blame and
delivery lines all correlate.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
    log.warning("blame.timeout", extra={"path": path})
"""

from __future__ import annotations

import json
import logging
import os
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "configure_root_logging",
    "get_json_logger",
    "set_fault_context",
    "get_fault_id",
]

_FAULT_ID_CTX: ContextVar[str | None] = ContextVar("exception_notifier_fault_id", default=None)

# Attributes every LogRecord carries; anything else came from ``extra=``.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"}
)


def set_fault_context(*, fault_id: str | None) -> None:
    """Bind ``fault_id`` to the running context; ``None`` clears it."""
    _FAULT_ID_CTX.set(fault_id)


def get_fault_id() -> str | None:
    return _FAULT_ID_CTX.get(None)


class _JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fault_id = getattr(record, "fault_id", None) or _FAULT_ID_CTX.get(None)
        if fault_id:
            payload["fault_id"] = fault_id

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_type"] = record.exc_info[0].__name__
            payload["exc_message"] = str(record.exc_info[1])

        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and key not in payload
        )
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def configure_root_logging(level: str | int | None = None) -> None:
    """Attach one JSON stream handler to the root logger.

    Safe to call repeatedly: the level is always (re)applied, the handler is
    only added when the root logger has none.

    Args:
        level: Level or level name; falls back to ``LOG_LEVEL`` then ``INFO``.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL") or "INFO"
    if isinstance(level, str):
        level = level.upper()

    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
        root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return the module logger ``name``; output goes through the root handler.

    Does not configure the root logger; call :func:`configure_root_logging`
    once at startup.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
