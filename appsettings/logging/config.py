"""Structured logging for the settings layer.

Records are emitted as one JSON object per line. Only the context fields the
store and its services attach (operation, path, key, ...) are copied from a
record's ``extra``; anything else is dropped, so setting values or credentials
passed by callers never reach the log.
"""
from __future__ import annotations

import json
import logging
from typing import IO, Any, Iterable, Optional

CONTEXT_FIELDS = ("operation", "path", "from_path", "version", "key", "entries")


class SettingsJsonFormatter(logging.Formatter):
    """Format records as compact JSON with a whitelisted ``context`` object."""

    def __init__(self, context_fields: Iterable[str] = CONTEXT_FIELDS) -> None:
        super().__init__()
        self._context_fields = tuple(context_fields)

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            name: _plain(getattr(record, name))
            for name in self._context_fields
            if hasattr(record, name)
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Route ``appsettings`` loggers to a JSON stream handler.

    The handler is attached to the ``appsettings`` logger rather than the
    root, so the host application's own logging setup is left alone. Calling
    this again only updates the level.
    """
    logger = logging.getLogger("appsettings")
    logger.setLevel(level)
    if not any(isinstance(h.formatter, SettingsJsonFormatter) for h in logger.handlers):
        handler = logging.StreamHandler(stream)
        handler.setFormatter(SettingsJsonFormatter())
        logger.addHandler(handler)
    return logger


__all__ = ["CONTEXT_FIELDS", "SettingsJsonFormatter", "configure_logging"]
