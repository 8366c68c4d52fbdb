"""Shared fixtures for the engine, CLI and integration suites."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from safesql_engine.config import BackendType, GatewayConfig
from safesql_engine.executor.base import FetchResult
from safesql_engine.gateway import SafeSqlGateway
from safesql_engine.sql_toolkit import Dialect, reset_toolkit
from safesql_engine.telemetry.profiling import ProfileCollector

SAMPLE_USERS = [
    (1, "Jane Doe", "jane.doe@example.com", "+1 (555) 123-4567", "987-65-4321"),
    (2, "John Roe", "john.roe@mail.example.co.uk", "555-987-6543", "123-45-6789"),
    (3, "Ana Li", "al@example.org", None, None),
    (4, "Sam Poe", "sam.poe@example.net", "5550001111", "111-22-3333"),
    (5, "Kim Ito", "kim.ito@example.com", "555 222 3333", "444-55-6666"),
]


class FakeExecutor:
    """In-memory :class:`QueryExecutor` that records what it was asked to run."""

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        plan: Any = None,
        *,
        honour_max_rows: bool = True,
        error: BaseException | None = None,
    ) -> None:
        self.rows = rows or []
        self.plan = plan
        self.honour_max_rows = honour_max_rows
        self.error = error
        self.fetch_calls: list[tuple[str, int]] = []
        self.explain_calls: list[str] = []
        self.disposed = False

    async def fetch_rows(self, sql: str, max_rows: int) -> FetchResult:
        self.fetch_calls.append((sql, max_rows))
        if self.error is not None:
            raise self.error
        rows = self.rows[:max_rows] if self.honour_max_rows else list(self.rows)
        columns = tuple(self.rows[0]) if self.rows else ()
        return FetchResult(columns=columns, rows=rows, truncated=len(self.rows) > max_rows)

    async def explain_plan(self, sql: str) -> Any:
        self.explain_calls.append(sql)
        return self.plan

    async def dispose(self) -> None:
        self.disposed = True


@pytest.fixture(autouse=True)
def _fresh_singletons():
    """Each test starts with a fresh toolkit and profile collector."""
    reset_toolkit()
    ProfileCollector.reset()
    yield
    reset_toolkit()
    ProfileCollector.reset()


@pytest.fixture
def sample_db(tmp_path: Path) -> Path:
    """A SQLite file with a ``users`` table and a ``safe_users_v`` view over it."""
    db_path = tmp_path / "example.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(
            "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT, phone TEXT, ssn TEXT)"
        )
        conn.execute("CREATE TABLE secret_table (id INTEGER PRIMARY KEY, token TEXT)")
        conn.execute("CREATE VIEW safe_users_v AS SELECT id, name, email, phone, ssn FROM users")
        conn.executemany("INSERT INTO users VALUES (?, ?, ?, ?, ?)", SAMPLE_USERS)
        conn.execute("INSERT INTO secret_table VALUES (1, 'hunter2')")
        conn.commit()
    finally:
        conn.close()
    return db_path


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig(
        backend_type=BackendType.EMBEDDED,
        dialect=Dialect.SQLITE,
        whitelist=frozenset({"safe_users_v"}),
        row_cap=200,
    )


@pytest.fixture
def fake_executor_cls() -> type[FakeExecutor]:
    return FakeExecutor


@pytest.fixture
def make_gateway(gateway_config: GatewayConfig) -> Callable[..., tuple[SafeSqlGateway, FakeExecutor]]:
    """Factory building a gateway over a :class:`FakeExecutor`.

    Keyword arguments go to the executor, except ``row_cap`` and
    ``whitelist`` which override the config.
    """

    def _make(**kwargs: Any) -> tuple[SafeSqlGateway, FakeExecutor]:
        overrides = {key: kwargs.pop(key) for key in ("row_cap", "whitelist") if key in kwargs}
        config = gateway_config.model_copy(update=overrides)
        executor = FakeExecutor(**kwargs)
        return SafeSqlGateway(config, executor), executor

    return _make
