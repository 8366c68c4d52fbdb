"""Process-wide logging setup.

All log output goes to stderr: stdout belongs to the MCP stdio transport
and to ``--json`` CLI output.
"""

from __future__ import annotations

import logging
import sys

from safesql_engine.telemetry.json_formatter import JSONFormatter

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"

# Third-party loggers that are noisy at INFO.
_QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncpg", "sqlglot")


def configure_logging(debug: bool = False, structured: bool = False, level: int | None = None) -> None:
    """Install a single stderr handler on the root logger.

    *debug* forces DEBUG; otherwise *level* applies, defaulting to INFO.
    Safe to call more than once; previous handlers are replaced.
    """
    handler = logging.StreamHandler(sys.stderr)
    if structured:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    if debug:
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(level if level is not None else logging.INFO)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
