"""Unit tests for safesql_engine.masking.pii."""

from __future__ import annotations

import pytest

from safesql_engine.masking.pii import (
    MASKING_RULES,
    is_pii_column,
    mask_email,
    mask_fallback,
    mask_phone,
    mask_row,
    mask_rows,
    mask_ssn,
    mask_value,
)

# ---------------------------------------------------------------------------
# Column name signal
# ---------------------------------------------------------------------------


class TestColumnNames:
    @pytest.mark.parametrize(
        "column",
        ["email", "Email_Address", "phone", "work_phone", "MOBILE", "ssn", "contact_number", "social_security_no"],
    )
    def test_pii_names(self, column):
        assert is_pii_column(column)

    @pytest.mark.parametrize("column", ["id", "name", "contact", "number", "social", "notes"])
    def test_non_pii_names(self, column):
        assert not is_pii_column(column)


# ---------------------------------------------------------------------------
# Maskers
# ---------------------------------------------------------------------------


class TestMaskers:
    def test_ssn(self):
        assert mask_ssn("987-65-4321") == "***-**-4321"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("john.doe@example.com", "j******e@*******.com"),
            ("jane.doe@example.com", "j******e@*******.com"),
            ("abc@example.org", "a*c@*******.org"),
            ("jo@example.com", "**@*******.com"),
            ("a@b.io", "*@*.io"),
            ("a.b@mail.example.co.uk", "a*b@****.*******.**.uk"),
        ],
    )
    def test_email(self, value, expected):
        assert mask_email(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("+1 (555) 123-4567", "+* (***) ***-**67"),
            ("555-123-4567", "***-***-**67"),
            ("2024-01-15", "****-**-15"),
        ],
    )
    def test_phone(self, value, expected):
        assert mask_phone(value) == expected

    def test_fallback_stars_ascii_alphanumerics_only(self):
        assert mask_fallback("Ab-9 x/é") == "**-* */é"

    def test_rule_order(self):
        assert [rule.name for rule in MASKING_RULES] == ["ssn", "email", "phone"]


# ---------------------------------------------------------------------------
# mask_value
# ---------------------------------------------------------------------------


class TestMaskValue:
    @pytest.mark.parametrize("value", [None, 42, 3.5, True, False])
    def test_non_strings_untouched_even_in_pii_columns(self, value):
        assert mask_value("ssn", value) is value

    def test_plain_text_in_plain_column(self):
        assert mask_value("name", "Alice Smith") == "Alice Smith"

    def test_short_number_is_not_a_phone(self):
        assert mask_value("notes", "order 12345") == "order 12345"

    def test_email_by_shape_in_any_column(self):
        assert mask_value("contact", "john.doe@example.com") == "j******e@*******.com"

    def test_ssn_by_shape_in_any_column(self):
        assert mask_value("notes", "987-65-4321") == "***-**-4321"

    def test_ssn_shape_wins_over_phone_column(self):
        assert mask_value("phone", "123-45-6789") == "***-**-6789"

    def test_phone_run_inside_text(self):
        assert mask_value("notes", "Call 555-123-4567 now") == "Call ***-***-**67 now"

    def test_date_like_value_is_masked(self):
        assert mask_value("created", "2024-01-15") == "****-**-15"

    def test_name_signal_without_shape_uses_fallback(self):
        assert mask_value("email", "hidden") == "******"
        assert mask_value("contact_number", "n/a") == "*/*"

    def test_empty_string_in_pii_column(self):
        assert mask_value("ssn", "") == ""

    def test_deterministic(self):
        assert mask_value("email", "x.y@z.com") == mask_value("email", "x.y@z.com")


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


class TestMaskRow:
    def test_keys_order_and_types_preserved(self):
        row = {"id": 1, "email": "john.doe@example.com", "phone": None, "name": "John"}
        masked = mask_row(row)
        assert list(masked) == ["id", "email", "phone", "name"]
        assert masked == {"id": 1, "email": "j******e@*******.com", "phone": None, "name": "John"}

    def test_input_not_mutated(self):
        row = {"email": "john.doe@example.com"}
        mask_row(row)
        assert row == {"email": "john.doe@example.com"}

    def test_mask_rows(self):
        rows = [{"ssn": "111-22-3333"}, {"ssn": None}]
        assert mask_rows(rows) == [{"ssn": "***-**-3333"}, {"ssn": None}]

    def test_mask_rows_empty(self):
        assert mask_rows([]) == []
