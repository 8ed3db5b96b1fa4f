from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from floorops.api.middleware.request_id import get_request_id
from floorops.infrastructure.observability.otel import current_span_ids

_logging_ready = False

# The access-log middleware already emits one line per request.
_QUIET_LOGGERS = ("uvicorn.access",)

# Extras copied from ``logger.x(..., extra={...})`` into the JSON line when present.
_EXTRA_KEYS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "actor",
    "table_id",
    "order_id",
    "reservation_id",
    "bill_id",
    "tax_setting_id",
    "old_status",
    "new_status",
    "promotion_code",
    "event_type",
    "error_code",
    "error",
    "channel",
    "event_count",
    "subscribers",
)


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: getattr(record, key)
        for key in _EXTRA_KEYS
        if getattr(record, key, None) is not None
    }


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        trace_id, span_id = current_span_ids()
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": get_request_id(),
            "trace_id": trace_id,
            "span_id": span_id,
            **_extras(record),
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging() -> None:
    global _logging_ready
    if _logging_ready:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_ready = True
