"""Async SQLAlchemy execution backend.

Supports both backends the gateway can front:

* embedded: a SQLite file opened read-only through ``aiosqlite``
  (``sqlite+aiosqlite:///file:<path>?mode=ro&uri=true``) with
  ``PRAGMA query_only`` set on every connection;
* networked: PostgreSQL through ``asyncpg`` where every transaction is
  read-only and bounded by ``statement_timeout``.

SQL is sent with ``exec_driver_sql`` so that colons inside literals
(``'10:30'``) are never taken for bind parameters.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from safesql_engine.config import BackendType, Settings
from safesql_engine.errors import ExecutionError
from safesql_engine.executor.base import FetchResult
from safesql_engine.telemetry.privacy import fingerprint_sql, redact_connection_details
from safesql_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

_POSTGRES_SCHEMES = ("postgres://", "postgresql://")


def to_asyncpg_url(url: str) -> str:
    """Rewrite ``postgres://`` and ``postgresql://`` URLs for the asyncpg driver."""
    for scheme in _POSTGRES_SCHEMES:
        if url.startswith(scheme):
            return "postgresql+asyncpg://" + url[len(scheme) :]
    return url


def sqlite_readonly_url(db_path: Path | str) -> str:
    """Return an aiosqlite URL that opens *db_path* read-only."""
    resolved = Path(db_path).expanduser().resolve()
    return f"sqlite+aiosqlite:///file:{resolved.as_posix()}?mode=ro&uri=true"


def normalize_value(value: Any) -> Any:
    """Convert driver values that JSON cannot carry natively.

    ``Decimal`` becomes ``int`` when integral and ``float`` otherwise; binary
    values become lowercase hex strings.  Everything else is returned as-is.
    """
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    return value


def _failure_cause(exc: BaseException) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return type(exc.orig).__name__
    return type(exc).__name__


class SqlAlchemyExecutor:
    """Runs vetted SQL on an :class:`AsyncEngine`.

    Parameters
    ----------
    engine:
        The engine to run against.  The executor owns it and disposes it
        in :meth:`dispose`.
    backend_type:
        Which backend the engine points at; decides whether real plans are
        available.
    """

    def __init__(self, engine: AsyncEngine, backend_type: BackendType) -> None:
        self._engine = engine
        self._backend_type = backend_type

    @property
    def backend_type(self) -> BackendType:
        return self._backend_type

    @profile_operation("executor.fetch")
    async def fetch_rows(self, sql: str, max_rows: int) -> FetchResult:
        """Run *sql* and return at most *max_rows* rows as ordered dicts."""
        try:
            async with self._engine.connect() as conn:
                result = await conn.exec_driver_sql(sql)
                columns = tuple(result.keys())
                fetched = result.fetchmany(max_rows + 1)
                result.close()
                await conn.rollback()
        except (SQLAlchemyError, OSError) as exc:
            self._log_failure("query", sql, exc)
            raise ExecutionError(_failure_cause(exc)) from exc

        truncated = len(fetched) > max_rows
        rows = [
            {column: normalize_value(value) for column, value in zip(columns, row)}
            for row in fetched[:max_rows]
        ]
        return FetchResult(columns=columns, rows=rows, truncated=truncated)

    @profile_operation("executor.explain")
    async def explain_plan(self, sql: str) -> Any | None:
        """Return PostgreSQL's ``EXPLAIN (FORMAT JSON)`` document, or ``None`` on SQLite."""
        if self._backend_type is not BackendType.NETWORKED:
            return None

        try:
            async with self._engine.connect() as conn:
                result = await conn.exec_driver_sql(f"EXPLAIN (FORMAT JSON) {sql}")
                document = result.scalar()
                await conn.rollback()
        except (SQLAlchemyError, OSError) as exc:
            self._log_failure("explain", sql, exc)
            raise ExecutionError(_failure_cause(exc)) from exc

        if isinstance(document, (str, bytes)):
            return json.loads(document)
        return document

    async def dispose(self) -> None:
        await self._engine.dispose()

    def _log_failure(self, action: str, sql: str, exc: BaseException) -> None:
        # Driver messages can echo literals from the query, so only class
        # names and the SQL fingerprint are logged.
        logger.warning(
            "Backend %s failed on %s backend: %s (%s) [%s]",
            action,
            self._backend_type.value,
            type(exc).__name__,
            _failure_cause(exc),
            fingerprint_sql(sql),
        )


# ---------------------------------------------------------------------------
# Engine construction
# ---------------------------------------------------------------------------


def create_embedded_engine(db_path: Path | str) -> AsyncEngine:
    """Create a read-only aiosqlite engine for the SQLite file at *db_path*."""
    url = sqlite_readonly_url(db_path)
    engine = create_async_engine(url, echo=False)

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragmas(dbapi_conn: object, _: object) -> None:
        cursor = dbapi_conn.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA query_only=ON")
        cursor.close()

    logger.info("Created read-only SQLite engine: %s", url)
    return engine


def create_networked_engine(database_url: str, statement_timeout_ms: int = 30_000) -> AsyncEngine:
    """Create a read-only asyncpg engine with a per-statement timeout."""
    url = to_asyncpg_url(database_url)
    engine = create_async_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_timeout=10,
        echo=False,
        connect_args={
            "server_settings": {
                "default_transaction_read_only": "on",
                "statement_timeout": str(statement_timeout_ms),
            }
        },
    )
    logger.info("Created read-only PostgreSQL engine: %s", redact_connection_details(url))
    return engine


def build_executor(settings: Settings) -> SqlAlchemyExecutor:
    """Build the executor for the backend selected in *settings*.

    Raises
    ------
    UnsupportedBackendError
        If ``settings.backend_type`` is not a known backend.
    """
    config = settings.to_gateway_config()
    if config.backend_type is BackendType.NETWORKED:
        if settings.database_url is None:
            raise ValueError("database_url is required for the networked backend")
        engine = create_networked_engine(
            settings.database_url.get_secret_value(),
            settings.statement_timeout_ms,
        )
    else:
        engine = create_embedded_engine(settings.database_path)
    return SqlAlchemyExecutor(engine, config.backend_type)
