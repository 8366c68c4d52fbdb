"""Heuristic PII masking for result rows.

A string value is masked when either signal fires:

1. **Name signal**: the lowercased column name mentions ``email``,
   ``phone``, ``mobile``, ``ssn``, or both ``contact`` and ``number``, or
   both ``social`` and ``security``.
2. **Shape signal**: the value looks like an email address, an SSN
   (``ddd-dd-dddd``), or contains a phone-like run of digits.

Exactly one masker is then applied, chosen by shape in the fixed order
SSN, email, phone, with a fallback that stars out every ASCII letter and
digit.  Non-string values (including ``None``) are never touched.

This is a heuristic, not a classifier.  The phone shape deliberately
over-matches (dates such as ``2024-01-15`` fire it), trading false
positives for fewer leaks.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from safesql_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

# -- Shape patterns -----------------------------------------------------------

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"\+?\d[\d\-\s().]{6,}")
_SSN_RE = re.compile(r"^\d{3}-\d{2}-\d{4}$")
_ALNUM_RE = re.compile(r"[A-Za-z0-9]")
_DIGIT_RE = re.compile(r"\d")

# -- Column name signals ------------------------------------------------------

_NAME_KEYWORDS: tuple[str, ...] = ("email", "phone", "mobile", "ssn")
_NAME_KEYWORD_PAIRS: tuple[tuple[str, str], ...] = (
    ("contact", "number"),
    ("social", "security"),
)


def is_pii_column(column: str) -> bool:
    """Return True when the column name alone suggests personal data."""
    name = column.lower()
    if any(keyword in name for keyword in _NAME_KEYWORDS):
        return True
    return any(first in name and second in name for first, second in _NAME_KEYWORD_PAIRS)


# -- Maskers ------------------------------------------------------------------


def mask_ssn(value: str) -> str:
    """``123-45-6789`` -> ``***-**-6789``."""
    digits = _DIGIT_RE.findall(value)
    return "***-**-" + "".join(digits[-4:])


def mask_email(value: str) -> str:
    """Keep the first and last character of the local part and the top-level label.

    ``john.doe@example.com`` -> ``j******e@*******.com``.  Local parts of
    two characters or fewer are fully starred.
    """
    local, _, domain = value.rpartition("@")
    if len(local) <= 2:
        masked_local = "*" * len(local)
    else:
        masked_local = local[0] + "*" * (len(local) - 2) + local[-1]

    labels = domain.split(".")
    masked_labels = ["*" * len(label) for label in labels[:-1]] + labels[-1:]
    return f"{masked_local}@{'.'.join(masked_labels)}"


def mask_phone(value: str) -> str:
    """Star every digit except the last two; punctuation and spacing are kept.

    ``+1 (555) 123-4567`` -> ``+* (***) ***-**67``.
    """
    digit_positions = [match.start() for match in _DIGIT_RE.finditer(value)]
    to_mask = set(digit_positions[:-2])
    return "".join("*" if i in to_mask else ch for i, ch in enumerate(value))


def mask_fallback(value: str) -> str:
    return _ALNUM_RE.sub("*", value)


# -- Rules --------------------------------------------------------------------


@dataclass(frozen=True)
class MaskingRule:
    """A shape predicate paired with the masker it selects."""

    name: str
    detects: Callable[[str], bool]
    mask: Callable[[str], str]


# Evaluated in order; the first rule whose predicate matches wins.
MASKING_RULES: tuple[MaskingRule, ...] = (
    MaskingRule("ssn", lambda v: _SSN_RE.match(v) is not None, mask_ssn),
    MaskingRule("email", lambda v: _EMAIL_RE.match(v) is not None, mask_email),
    MaskingRule("phone", lambda v: _PHONE_RE.search(v) is not None, mask_phone),
)

_FALLBACK_RULE = MaskingRule("fallback", lambda v: True, mask_fallback)


def _matching_rule(value: str) -> MaskingRule | None:
    for rule in MASKING_RULES:
        if rule.detects(value):
            return rule
    return None


def mask_value(column: str, value: Any) -> Any:
    """Return *value* masked if it is PII-bearing, otherwise unchanged."""
    if not isinstance(value, str):
        return value

    rule = _matching_rule(value)
    if rule is None:
        if not is_pii_column(column):
            return value
        rule = _FALLBACK_RULE
    return rule.mask(value)


def mask_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new row with every PII-bearing value masked.

    Keys, their order, and value types are preserved; *row* is not modified.
    """
    return {column: mask_value(column, value) for column, value in row.items()}


@profile_operation("pii.mask")
def mask_rows(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Apply :func:`mask_row` to every row."""
    return [mask_row(row) for row in rows]
