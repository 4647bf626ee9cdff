"""Tests for query type definitions and enums."""

import pytest

from archive_query.query.types import (
    OPERATOR_SYMBOL,
    And,
    Filter,
    FilterField,
    FilterOperator,
    Leaf,
    Not,
    Or,
    ParsedQuery,
    iter_leaves,
)


class TestFilterField:
    def test_all_values_present(self) -> None:
        expected = {
            "from", "to", "cc", "bcc", "subject", "hasAttachments",
            "timestamp", "ingestionSourceId", "tags", "path",
        }
        assert {f.value for f in FilterField} == expected

    def test_is_str_enum(self) -> None:
        assert isinstance(FilterField.FROM, str)


class TestFilterOperator:
    def test_every_operator_has_a_symbol(self) -> None:
        for op in FilterOperator:
            assert op in OPERATOR_SYMBOL, f"Missing symbol for {op}"

    def test_round_trip(self) -> None:
        for op in FilterOperator:
            assert FilterOperator(op.value) is op


class TestFilter:
    def test_string_field_accepts_string(self) -> None:
        assert Filter(FilterField.FROM, FilterOperator.EQ, "john").value == "john"

    def test_string_field_rejects_bool(self) -> None:
        with pytest.raises(TypeError):
            Filter(FilterField.SUBJECT, FilterOperator.EQ, True)

    def test_timestamp_rejects_string(self) -> None:
        with pytest.raises(TypeError):
            Filter(FilterField.TIMESTAMP, FilterOperator.LT, "2024-01-01")

    def test_timestamp_rejects_bool(self) -> None:
        with pytest.raises(TypeError):
            Filter(FilterField.TIMESTAMP, FilterOperator.LT, False)

    def test_has_attachments_requires_bool(self) -> None:
        with pytest.raises(TypeError):
            Filter(FilterField.HAS_ATTACHMENTS, FilterOperator.EQ, "true")

    def test_is_frozen(self, from_john: Filter) -> None:
        with pytest.raises((AttributeError, TypeError)):
            from_john.value = "jane"  # type: ignore[misc]


class TestIterLeaves:
    def test_left_to_right(self, from_john: Filter, has_attachment: Filter, before_2024: Filter) -> None:
        expr = Or(And(Leaf(from_john), Not(Leaf(has_attachment))), Leaf(before_2024))
        assert list(iter_leaves(expr)) == [from_john, has_attachment, before_2024]

    def test_deep_chain(self, from_john: Filter) -> None:
        expr = Leaf(from_john)
        for _ in range(5000):
            expr = And(expr, Leaf(from_john))
        assert sum(1 for _ in iter_leaves(expr)) == 5001


class TestParsedQuery:
    def test_defaults(self) -> None:
        parsed = ParsedQuery()
        assert parsed.keywords == ""
        assert parsed.filters == ()
        assert parsed.expression is None
