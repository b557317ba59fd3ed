"""
JSON log output for the scheduling service.

Every record becomes one JSON object per line on stderr. Scheduling code passes
identifiers through ``extra`` and they show up as top-level keys, so a booking
can be followed across modules by its trace_id or appointment_id.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from shared.config import get_settings

# Extra attributes promoted to top-level JSON fields when present on a record
CONTEXT_FIELDS = (
    "trace_id",
    "barbershop_id",
    "barber_id",
    "service_id",
    "appointment_id",
    "request_path",
    "error_code",
)

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "httpx")


def _plain(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class JSONFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line with CONTEXT_FIELDS lifted out of ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            {name: _plain(getattr(record, name)) for name in CONTEXT_FIELDS if hasattr(record, name)}
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(level: str | None = None) -> None:
    """
    Install the JSON handler on the root logger.

    Args:
        level: Overrides LOG_LEVEL from settings when given.
    """
    level_name = (level or get_settings().LOG_LEVEL).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    root.debug(f"JSON logging enabled at {level_name}")
