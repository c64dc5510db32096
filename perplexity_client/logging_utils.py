"""Structured event logging helpers.

Each helper takes an event name plus key/value fields, e.g.
``log_info("response_received", status=200, latency_ms=41)``. Fields travel
as LogRecord extras so JsonFormatter renders them as top-level keys, while
plain-text handlers still get a readable ``event k=v`` message.

Never pass header values or the API key as fields.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from .logging import RECORD_ATTRS, get_logger

_logger = get_logger()


def _kv(fields: Dict[str, Any]) -> str:
    parts = []
    for k, v in fields.items():
        if v is not None:
            parts.append(f"{k}={v}")
    return " ".join(parts)


def _log(level: int, event: str, fields: Dict[str, Any]) -> None:
    if not _logger.isEnabledFor(level):
        return
    tail = _kv(fields)
    msg = f"{event} {tail}" if tail else event
    extra: Dict[str, Any] = {"event": event}
    # A field named like a LogRecord attribute ("name", "msg", ...) would make logging raise
    extra.update({k: v for k, v in fields.items() if k not in RECORD_ATTRS})
    _logger.log(level, msg, extra=extra)


def log_debug(event: str, **kv: Any) -> None:
    _log(logging.DEBUG, event, kv)


def log_info(event: str, **kv: Any) -> None:
    _log(logging.INFO, event, kv)


def log_warning(event: str, **kv: Any) -> None:
    _log(logging.WARNING, event, kv)


def log_error(event: str, **kv: Any) -> None:
    _log(logging.ERROR, event, kv)
