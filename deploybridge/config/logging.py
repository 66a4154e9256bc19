"""Structured logging for the deploy engine.

Every record becomes one JSON object.  Deploy code passes channels, outcomes
and artifact chunks as ``extra`` fields; they are rendered without decoding
binary data.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from enum import Enum
from logging import Handler
from logging.config import dictConfig
from logging.handlers import SysLogHandler
from pathlib import Path
from typing import Any, Final

import msgspec

from .model import EngineConfig

SYSLOG_SOCKET = Path("/dev/log")
SYSLOG_SOCKET_FALLBACK = Path("/var/run/log")
LOG_STREAM_ENV: Final[str] = "DEPLOYBRIDGE_LOG_STREAM"

# Artifacts can be hundreds of kilobytes; only the head is logged.
MAX_LOGGED_BYTES: Final[int] = 16

_RESERVED_LOG_KEYS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

# Library loggers that are chatty at INFO.
_QUIET_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "transitions")


def _hex(data: bytes) -> str:
    head = " ".join(f"{b:02X}" for b in data[:MAX_LOGGED_BYTES])
    if len(data) > MAX_LOGGED_BYTES:
        return f"[{head} ...] ({len(data)} bytes)"
    return f"[{head}]"


def _serialise_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _hex(bytes(value))
    if isinstance(value, msgspec.Struct):
        return {key: _serialise_value(item) for key, item in msgspec.structs.asdict(value).items()}
    return str(value)


class StructuredLogFormatter(logging.Formatter):
    """One JSON document per record, logger names relative to the package."""

    PREFIX = "deploybridge."

    def format(self, record: logging.LogRecord) -> str:
        name = record.name.removeprefix(self.PREFIX)
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": name,
            "message": record.getMessage(),
        }

        extras = {
            key: _serialise_value(value)
            for key, value in vars(record).items()
            if key not in _RESERVED_LOG_KEYS and not key.startswith("_")
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)

        return msgspec.json.encode(payload).decode("utf-8")


def _syslog_socket() -> Path | None:
    for candidate in (SYSLOG_SOCKET, SYSLOG_SOCKET_FALLBACK):
        if candidate.exists():
            return candidate
    return None


def _build_handler(force_stream: bool = False) -> Handler:
    """Stream when asked to (config or environment), else syslog if present."""
    socket_path = None if force_stream or os.environ.get(LOG_STREAM_ENV) else _syslog_socket()
    if socket_path is None:
        return logging.StreamHandler()

    handler = SysLogHandler(address=str(socket_path), facility=SysLogHandler.LOG_USER)
    handler.ident = "deploybridge "
    return handler


def configure_logging(config: EngineConfig) -> None:
    level_name = "DEBUG" if config.debug_logging else "INFO"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": "deploybridge.config.logging.StructuredLogFormatter",
                }
            },
            "handlers": {
                "deploybridge": {
                    "()": _build_handler,
                    "force_stream": config.log_stream,
                    "level": level_name,
                    "formatter": "structured",
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
            "root": {
                "level": level_name,
                "handlers": ["deploybridge"],
            },
        }
    )

    logging.getLogger("deploybridge").debug("Logging configured at level %s", level_name)


__all__ = ["StructuredLogFormatter", "configure_logging"]
