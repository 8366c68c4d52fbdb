"""Single-line JSON log formatter.

Enabled with ``SAFESQL_STRUCTURED_LOGGING=true``.  Output schema per line::

    {
        "timestamp": "2026-01-01T12:00:00.000000+00:00",
        "level": "INFO",
        "logger": "safesql_engine.gateway",
        "message": "query served",
        "sql_fingerprint": "9f2c...",   // present when passed via ``extra``
        "exc_info": "Traceback ..."     // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

# Context attributes callers attach with ``logger.info(..., extra={...})``.
_CONTEXT_FIELDS = ("sql_fingerprint", "operation", "backend", "rows")


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in _CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)
