"""JSON logging utilities based on stdlib logging.

Provides setup_logging() and get_logger(name). Nothing is configured on
import; applications call setup_logging() when they want JSON lines.
"""
from __future__ import annotations

import json
import logging as _logging
import os
import sys
from typing import Any, Dict

LOGGER_NAME = "perplexity_client"

# Attributes every LogRecord carries; anything else came in through ``extra``
RECORD_ATTRS = frozenset(vars(_logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class JsonFormatter(_logging.Formatter):
    """One JSON object per record; ``extra`` fields become top-level keys."""

    def format(self, record: _logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "pid": os.getpid(),
        }
        for key, value in record.__dict__.items():
            if key not in RECORD_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str | int | None = None, *, logger_name: str = LOGGER_NAME) -> _logging.Logger:
    """Attach a single JSON stdout handler to the package logger.

    ``level`` defaults to the configured PERPLEXITY_LOG_LEVEL.
    """
    if level is None:
        from .config import get_settings

        level = get_settings().log_level
    level_value = _logging.getLevelName(level) if isinstance(level, str) else level
    logger = _logging.getLogger(logger_name)
    logger.setLevel(level_value)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    handler = _logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


def get_logger(name: str = LOGGER_NAME) -> _logging.Logger:
    return _logging.getLogger(name)
