"""PII masking for result rows."""

from __future__ import annotations

from safesql_engine.masking.pii import MASKING_RULES, MaskingRule, is_pii_column, mask_row, mask_rows, mask_value

__all__ = [
    "MASKING_RULES",
    "MaskingRule",
    "is_pii_column",
    "mask_row",
    "mask_rows",
    "mask_value",
]
