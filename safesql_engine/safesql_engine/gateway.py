"""SafeSQL gateway -- the query and explain pipelines.

``query``:   text -> validate -> whitelist -> row cap -> execute -> mask
``explain``: text -> validate -> whitelist -> engine plan -> redact -> render

Every stage before execution is pure.  Any :class:`GatewayError` raised by a
stage ends the call; no later stage runs and no partial rows are returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from safesql_engine.config import GatewayConfig
from safesql_engine.executor.base import QueryExecutor
from safesql_engine.executor.row_limiter import apply_row_cap
from safesql_engine.masking.pii import mask_rows
from safesql_engine.models.plan import PlanNode
from safesql_engine.models.result import ExplainResult, PlanFidelity, QueryResult
from safesql_engine.models.statement import RelationReference, SqlStatement
from safesql_engine.parser.statement_validator import validate_statement
from safesql_engine.parser.whitelist import check_whitelist, extract_relations
from safesql_engine.planner.plan_redactor import degraded_plan, redact_plan, render_plan
from safesql_engine.telemetry.privacy import fingerprint_sql
from safesql_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedQuery:
    """A statement that passed validation and the whitelist, ready to run."""

    statement: SqlStatement
    relations: tuple[RelationReference, ...]
    vetted_sql: str

    @property
    def fingerprint(self) -> str:
        return fingerprint_sql(self.statement.text)


class SafeSqlGateway:
    """Runs untrusted SQL through the safety pipeline.

    Parameters
    ----------
    config:
        Frozen runtime configuration (backend, whitelist, row cap).
    executor:
        Execution backend.  May be omitted for offline use, in which case
        only :meth:`prepare_query` and :meth:`describe_config` are usable and
        :meth:`explain_safe` always returns the degraded outline.
    """

    def __init__(self, config: GatewayConfig, executor: QueryExecutor | None = None) -> None:
        self._config = config
        self._executor = executor

    @property
    def config(self) -> GatewayConfig:
        return self._config

    def _validate(self, sql: str) -> tuple[SqlStatement, tuple[RelationReference, ...]]:
        statement = validate_statement(sql, self._config.dialect)
        check_whitelist(statement, self._config.whitelist)
        return statement, extract_relations(statement)

    def prepare_query(self, sql: str) -> PreparedQuery:
        """Validate, whitelist and row-cap *sql* without touching the backend."""
        statement, relations = self._validate(sql)
        return PreparedQuery(
            statement=statement,
            relations=relations,
            vetted_sql=apply_row_cap(statement, self._config.row_cap),
        )

    @profile_operation("gateway.query")
    async def query(self, sql: str) -> QueryResult:
        """Run *sql* and return masked rows, never more than the row cap."""
        if self._executor is None:
            raise RuntimeError("SafeSqlGateway.query requires an executor")

        prepared = self.prepare_query(sql)
        fetched = await self._executor.fetch_rows(prepared.vetted_sql, self._config.row_cap)

        # The executor honours max_rows, but the cap is re-applied here so
        # the bound holds for any QueryExecutor implementation.
        rows = mask_rows(fetched.rows[: self._config.row_cap])
        truncated = fetched.truncated or len(fetched.rows) > self._config.row_cap

        logger.info(
            "Served query [%s]: %d row(s)%s",
            prepared.fingerprint,
            len(rows),
            " (truncated at cap)" if truncated else "",
            extra={"sql_fingerprint": prepared.fingerprint, "rows": len(rows)},
        )
        return QueryResult(rows=rows, row_cap=self._config.row_cap, truncated=truncated)

    @profile_operation("gateway.explain")
    async def explain_safe(self, sql: str) -> ExplainResult:
        """Return a redacted plan for *sql*.

        The plan is computed for the caller's validated text itself, not
        the row-capped wrapper.  Backends without a structured plan, and plans
        that cannot be read, yield the degraded outline.
        """
        statement, _ = self._validate(sql)
        fingerprint = fingerprint_sql(statement.text)

        raw_plan = None
        if self._executor is not None:
            raw_plan = await self._executor.explain_plan(statement.text)

        tree: PlanNode
        fidelity = PlanFidelity.ESTIMATED
        if raw_plan is None:
            tree, fidelity = degraded_plan(), PlanFidelity.DEGRADED
        else:
            try:
                tree = redact_plan(raw_plan)
            except ValueError:
                logger.warning("Engine plan was unreadable; using degraded outline [%s]", fingerprint)
                tree, fidelity = degraded_plan(), PlanFidelity.DEGRADED

        logger.info(
            "Served %s plan [%s]",
            fidelity.value,
            fingerprint,
            extra={"sql_fingerprint": fingerprint},
        )
        return ExplainResult(tree=tree, text=render_plan(tree), fidelity=fidelity)

    def describe_config(self) -> dict[str, object]:
        """The config resource: ``backendType``, ``whitelist`` and ``rowCap``."""
        return self._config.describe()

    async def close(self) -> None:
        if self._executor is not None:
            await self._executor.dispose()
