"""Logging setup for mstodo-sync.

Loggers live under the ``mstodo_sync`` namespace. Library code obtains one
with :func:`get_logger` and passes structured fields as keyword arguments:

    >>> logger = get_logger("engine")
    >>> logger.info("Batch settled", new=2, updated=1)

Applications call :func:`configure_logging` once to attach a handler.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any, Literal

__all__ = [
    "HumanFormatter",
    "JSONFormatter",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]

ROOT_LOGGER = "mstodo_sync"

LogFormat = Literal["human", "json"]

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"}
)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED}


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(_extra_fields(record))
        if record.levelno >= logging.ERROR:
            data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class HumanFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger: message key=value``"""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{stamp} {record.levelname:<7} {record.name}: {record.getMessage()}"
        fields = _extra_fields(record)
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger:
    """Thin wrapper that turns keyword arguments into ``extra`` fields."""

    def __init__(self, name: str):
        self.name = name
        self._logger = logging.getLogger(name)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _log(self, level: int, msg: str, exc_info: Any = None, **fields: Any) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, msg, exc_info=exc_info, extra=fields or None, stacklevel=3)

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._log(logging.ERROR, msg, **fields)

    def child(self, suffix: str) -> StructuredLogger:
        return StructuredLogger(f"{self.name}.{suffix}")


def get_logger(name: str) -> StructuredLogger:
    """Return a structured logger under the ``mstodo_sync`` namespace."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return StructuredLogger(name)


def configure_logging(
    level: str | int | None = None,
    format: LogFormat | None = None,
    stream: Any = None,
) -> None:
    """Attach a single stream handler to the package logger.

    Args:
        level: Log level name or number. Defaults to ``MSTODO_SYNC_LOG_LEVEL``
            or ``WARNING``.
        format: ``"human"`` or ``"json"``. Defaults to ``MSTODO_SYNC_LOG_FORMAT``
            or ``"human"``.
        stream: Output stream, stderr by default.
    """
    level = level or os.environ.get("MSTODO_SYNC_LOG_LEVEL", "WARNING")
    format = format or os.environ.get("MSTODO_SYNC_LOG_FORMAT", "human")  # type: ignore[assignment]

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    for handler in list(root.handlers):
        if getattr(handler, "_mstodo_sync", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if format == "json" else HumanFormatter())
    handler._mstodo_sync = True  # type: ignore[attr-defined]
    root.addHandler(handler)
