"""stdout logging for the API and the worker.

``LOG_JSON=false`` (local runs) prints one readable line per record;
``LOG_JSON=true`` prints JSON Lines for the aggregator.  Request id, user
id and the learning-workflow ids a record carries in ``extra`` become
top-level JSON keys.
"""

from __future__ import annotations

import json
import logging
import sys

from portal.middleware.request_context import RequestContextFilter

_QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "httpcore",
    "httpx",
    "sqlalchemy.engine",
)


class _ContainerFormatter(logging.Formatter):
    """``2024-05-01T12:00:00.123+0000 INFO     portal.x  message``

    WARNING and above also name the source line.
    """

    _FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"

    def __init__(self) -> None:
        super().__init__(self._FMT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = super().formatTime(record, datefmt)
        # Milliseconds go between the seconds and the UTC offset
        return f"{stamp[:-5]}.{int(record.msecs):03d}{stamp[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if record.levelno >= logging.WARNING:
            line += f"  [{record.filename}:{record.lineno}]"
        return line


class _JsonFormatter(logging.Formatter):
    _EXTRA_KEYS = (
        "request_id",
        "user_id",
        "course_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, value)
            for key in self._EXTRA_KEYS
            if (value := getattr(record, key, None)) not in (None, "-")
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Route the root logger to stdout; unknown level names mean INFO."""
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
