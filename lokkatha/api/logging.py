"""Structured logging for the API and data layer.

JSON lines in production, a plain one-line format in development. Repositories
attach ``tale_id``, ``user_id``, ``operation`` and similar fields through
``extra=`` and the JSON formatter lifts them into the payload.
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Structured fields passed through ``extra=`` that end up in the JSON payload
_EXTRA_FIELDS = ("tale_id", "user_id", "event_type", "operation", "duration", "error_type")

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "asyncpg")

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pid": record.process,
        }
        payload.update(
            (name, getattr(record, name)) for name in _EXTRA_FIELDS if hasattr(record, name)
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # default=str covers datetimes and UUIDs passed as extras
        return json.dumps(payload, default=str)


def configure_logging(json_format: bool = True, level: int | str = logging.INFO) -> None:
    """Install one stderr handler on the root logger, replacing any others."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(_TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
