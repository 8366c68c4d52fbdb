"""SQL Toolkit -- implementation-agnostic SQL parsing and analysis.

Usage::

    from safesql_engine.sql_toolkit import get_sql_toolkit, Dialect

    tk = get_sql_toolkit()
    result = tk.parser.parse_multi("SELECT * FROM safe_users_v", Dialect.SQLITE)
    scope = tk.scope_analyzer.extract_tables(result.single)
    capped = tk.row_limiter.wrap_with_limit(result.single, 200, Dialect.SQLITE)

The default implementation delegates to SQLGlot.  A different backend can be
swapped in via ``register_implementation()`` without touching consumer code.
"""

from ._factory import get_sql_toolkit, register_implementation, reset_toolkit
from ._protocols import (
    SqlParser,
    SqlRenderer,
    SqlRowLimiter,
    SqlScopeAnalyzer,
    SqlStatementInspector,
    SqlToolkit,
)
from ._types import (
    Dialect,
    LimitResult,
    ParseResult,
    ScopeResult,
    SqlNode,
    SqlNodeKind,
    SqlParseError,
    SqlToolkitError,
    TableRef,
)

__all__ = [
    "Dialect",
    "LimitResult",
    "ParseResult",
    "ScopeResult",
    "SqlNode",
    "SqlNodeKind",
    "SqlParseError",
    "SqlParser",
    "SqlRenderer",
    "SqlRowLimiter",
    "SqlScopeAnalyzer",
    "SqlStatementInspector",
    "SqlToolkit",
    "SqlToolkitError",
    "TableRef",
    "get_sql_toolkit",
    "register_implementation",
    "reset_toolkit",
]
