"""Logging setup, log privacy helpers and stage profiling."""

from __future__ import annotations

from safesql_engine.telemetry.json_formatter import JSONFormatter
from safesql_engine.telemetry.log_config import configure_logging
from safesql_engine.telemetry.privacy import fingerprint_sql, redact_connection_details
from safesql_engine.telemetry.profiling import ProfileCollector, profile_operation

__all__ = [
    "JSONFormatter",
    "ProfileCollector",
    "configure_logging",
    "fingerprint_sql",
    "profile_operation",
    "redact_connection_details",
]
