from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Dict, Iterable, Sequence

from settings import get_settings

# Context fields the engine passes through ``extra=``; anything else is dropped.
_DEFAULT_EXTRA_KEYS = (
    "reading_id",
    "alert_id",
    "location_id",
    "equipment_id",
    "equipment_type",
    "temperature",
    "direction",
    "severity",
    "status",
    "period",
    "reason",
)

_ENGINE_LOGGERS = ("app", "datastore", "services")

_configured = False


class ContextualFormatter(logging.Formatter):
    """Append whitelisted ``extra`` fields (alert ids, equipment ids, ...) to each line."""

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = [
            f"{key}={getattr(record, key)}"
            for key in self._extra_keys
            if getattr(record, key, None) is not None
        ]
        if not context:
            return message
        return f"{message} | {' '.join(context)}"


def build_logging_config(level: str | int) -> Dict[str, Any]:
    """Return the ``dictConfig`` payload used by :func:`configure_logging`."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "contextual": {
                "()": "logging_config.ContextualFormatter",
                "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
                "style": "%",
                "extra_keys": list(_DEFAULT_EXTRA_KEYS),
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "contextual",
            }
        },
        "loggers": {name: {"level": level} for name in _ENGINE_LOGGERS},
        "root": {"handlers": ["default"], "level": "WARNING"},
    }


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging with contextual formatting.

    Engine packages log at the configured level; third-party libraries stay
    at WARNING so request noise does not bury alert lines.
    """
    global _configured
    if _configured:
        return

    settings = get_settings()
    dictConfig(build_logging_config(level if level is not None else settings.log_level))
    _configured = True
