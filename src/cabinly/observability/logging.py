"""JSON log lines on stdout, tagged with the request correlation ID."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_correlation_id

_DEFAULT_LEVEL = "INFO"


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Structured context is passed as ``extra={"extra_fields": {...}}`` and is
    merged into the top level of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_obj["correlationId"] = correlation_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_obj.update(extra_fields)

        return json.dumps(log_obj, default=str, ensure_ascii=False)


def _configured_level() -> int:
    name = os.environ.get("LOG_LEVEL", _DEFAULT_LEVEL).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return a logger that writes JSON to stdout.

    Handlers are attached once per logger name, so repeated calls (module
    reloads in tests) do not duplicate output.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(_configured_level())
        logger.propagate = False

    return logger
