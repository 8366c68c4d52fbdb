"""Statement validation and relation whitelisting."""

from __future__ import annotations

from safesql_engine.parser.statement_validator import classify_statement, validate_statement
from safesql_engine.parser.whitelist import check_whitelist, extract_relations

__all__ = [
    "check_whitelist",
    "classify_statement",
    "extract_relations",
    "validate_statement",
]
