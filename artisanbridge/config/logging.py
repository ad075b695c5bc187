"""Logging helpers for the Artisan bridge daemon.

Every line is one JSON object: timestamp, level, short logger name, the
roaster device the bridge serves, the message, and any ``extra=`` fields.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from logging.config import dictConfig
from logging.handlers import SysLogHandler
from pathlib import Path
from typing import Any

import msgspec

from .model import RuntimeConfig

SYSLOG_SOCKET = Path("/dev/log")
SYSLOG_SOCKET_FALLBACK = Path("/var/run/log")
SYSLOG_IDENT = "artisanbridge "

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime", "device"}


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (bytes, bytearray)):
        # Telemetry payloads are JSON text; keep stray bytes visible.
        return bytes(value).decode("utf-8", errors="backslashreplace")
    return str(value)


class DeviceContextFilter(logging.Filter):
    """Stamp the served device id onto every record."""

    def __init__(self, device_id: str = "") -> None:
        super().__init__()
        self.device_id = device_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.device = self.device_id
        return True


class StructuredLogFormatter(logging.Formatter):
    PREFIX = "artisanbridge."

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name.removeprefix(self.PREFIX),
        }
        device = getattr(record, "device", "")
        if device:
            payload["device"] = device
        payload["message"] = record.getMessage()

        extra = {
            key: _json_value(value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return msgspec.json.encode(payload).decode("utf-8")


def _build_stream_handler() -> logging.Handler:
    return logging.StreamHandler()


def _build_syslog_handler() -> logging.Handler:
    socket_path = next((p for p in (SYSLOG_SOCKET, SYSLOG_SOCKET_FALLBACK) if p.exists()), None)
    if socket_path is None:
        return logging.StreamHandler()
    handler = SysLogHandler(address=str(socket_path), facility=SysLogHandler.LOG_DAEMON)
    handler.ident = SYSLOG_IDENT
    return handler


def configure_logging(config: RuntimeConfig) -> None:
    """Configure root logging based on runtime settings."""

    level_name = "DEBUG" if config.debug_logging else "INFO"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "device": {
                    "()": DeviceContextFilter,
                    "device_id": config.device_id,
                }
            },
            "formatters": {
                "structured": {
                    "()": StructuredLogFormatter,
                }
            },
            "handlers": {
                "artisanbridge": {
                    "()": _build_syslog_handler if config.log_syslog else _build_stream_handler,
                    "level": level_name,
                    "formatter": "structured",
                    "filters": ["device"],
                }
            },
            "root": {
                "level": level_name,
                "handlers": ["artisanbridge"],
            },
        }
    )

    logging.getLogger("artisanbridge").info("Logging configured at level %s", level_name)
