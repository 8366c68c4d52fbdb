"""Gateway error hierarchy.

Every failure a caller can see is a :class:`GatewayError`.  Messages are
written to be shown verbatim: they never contain connection strings,
credentials, or backend tracebacks.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base class for all user-visible gateway failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        """Stable error kind reported to callers (the class name)."""
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class ParseError(GatewayError):
    """The text is empty or is not valid SQL in the active dialect."""


class MultipleStatementsError(GatewayError):
    """The text contains more than one top-level statement."""

    def __init__(self, count: int) -> None:
        super().__init__("Only one statement allowed.")
        self.count = count


class NotSelectError(GatewayError):
    """The statement is not a read-only SELECT."""

    def __init__(self, statement_kind: str) -> None:
        super().__init__("Only SELECT queries are allowed.")
        self.statement_kind = statement_kind


class ForbiddenRelationError(GatewayError):
    """The statement reads from a relation outside the whitelist.

    ``relation`` is the first offender in sorted order; ``offenders`` holds
    all of them.  ``allowed`` is the whitelist itself, which is safe to
    disclose.
    """

    def __init__(
        self,
        relation: str,
        allowed: frozenset[str] | set[str],
        offenders: tuple[str, ...] = (),
    ) -> None:
        self.relation = relation
        self.allowed = tuple(sorted(allowed))
        self.offenders = offenders or (relation,)
        listed = ", ".join(self.allowed) if self.allowed else "(none)"
        super().__init__(f'"{relation}" is not whitelisted. Allowed views: {listed}')

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["relation"] = self.relation
        data["allowed"] = list(self.allowed)
        return data


class UnsupportedBackendError(GatewayError):
    """The configured backend type is not one the gateway can run against."""

    def __init__(self, backend: str) -> None:
        super().__init__(f"Unsupported backend type: {backend}")
        self.backend = backend


class ExecutionError(GatewayError):
    """The backend failed while running vetted SQL.

    Only the driver exception's class name is kept; its message may echo
    connection parameters or schema details.
    """

    def __init__(self, cause: str) -> None:
        super().__init__(f"Query execution failed ({cause}).")
        self.cause = cause
