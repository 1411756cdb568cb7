"""Structured logging for quiz lifecycle, persistence and HTTP events.

Every record can carry the id of the HTTP request and of the quiz
session it belongs to. Both are read from context variables when the
caller does not pass them in ``extra``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional

from ..config import Settings, get_settings
from .context import get_request_id, get_session_id

_CONFIGURED_FLAG = "_logiq_logging_configured"

# Printed first and in this order; any other ``extra`` key follows.
_EVENT_FIELDS = (
    "event",
    "request_id",
    "session_id",
    "mode",
    "question_count",
    "time_remaining_ms",
    "iq_score",
    "key",
    "reason",
    "method",
    "path",
    "status_code",
    "duration_ms",
)

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(session_id)s] %(message)s"

_STANDARD_ATTRS = frozenset(
    logging.makeLogRecord({}).__dict__.keys() | {"message", "asctime"}
)


class _SessionContextFilter(logging.Filter):
    """Fill ``request_id`` and ``session_id`` from the active context."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        if getattr(record, "session_id", None) is None:
            record.session_id = get_session_id()
        return True


class _QuizJsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _EVENT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        for name, value in record.__dict__.items():
            if name in _STANDARD_ATTRS or name in payload or name.startswith("_"):
                continue
            if value is not None:
                payload[name] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class _QuizTextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, "session_id", None) is None:
            record.session_id = "-"
        return super().format(record)


def build_handler(settings: Settings, stream: Optional[IO[str]] = None) -> logging.Handler:
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(_SessionContextFilter())
    if settings.log_format == "json":
        handler.setFormatter(_QuizJsonFormatter())
    else:
        handler.setFormatter(_QuizTextFormatter())
    return handler


def configure_logging(
    settings: Optional[Settings] = None,
    stream: Optional[IO[str]] = None,
    force: bool = False,
) -> None:
    """Route all ``logiq`` and uvicorn logs through one root handler.

    Runs once per process unless *force* is set.
    """
    root = logging.getLogger()
    if getattr(root, _CONFIGURED_FLAG, False) and not force:
        return

    settings = settings or get_settings()
    root.handlers.clear()
    root.addHandler(build_handler(settings, stream))
    root.setLevel(getattr(logging, settings.log_level, logging.INFO))

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True

    setattr(root, _CONFIGURED_FLAG, True)
