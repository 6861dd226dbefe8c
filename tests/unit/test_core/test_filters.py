"""Unit tests for the filter engine."""
from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pagekit.core.exceptions import UnsupportedOperatorException, ValidationException
from pagekit.core.pagination.filters import (
    And,
    Condition,
    FilterEngine,
    FilterOperator,
    Not,
    Or,
    all_of,
    any_of,
    matches,
    parse_filter,
)

RECORD = {
    "id": "42",
    "first_name": "Ada",
    "last_name": "Lovelace",
    "email": "Ada@Example.com",
    "age": 36,
    "salary": 91500.5,
    "active": True,
    "status": "ACTIVE",
    "created_at": datetime(2025, 3, 1, 9, 0, tzinfo=UTC),
    "manager_id": None,
}


# ──────────────────────────────────────────────────────────────
# Leaf predicates
# ──────────────────────────────────────────────────────────────


class TestLeafOperators:
    """Each operator against a single record."""

    @pytest.mark.parametrize(
        ("field", "op", "value", "expected"),
        [
            ("status", "eq", "ACTIVE", True),
            ("status", "eq", "INACTIVE", False),
            ("status", "neq", "INACTIVE", True),
            ("age", "gt", 35, True),
            ("age", "gt", 36, False),
            ("age", "gte", 36, True),
            ("age", "lt", 40, True),
            ("age", "lte", 35, False),
            ("salary", "gte", 91500, True),
            ("status", "in", ["ACTIVE", "PENDING"], True),
            ("status", "in", ["INACTIVE"], False),
            ("status", "not_in", ["INACTIVE", "PENDING"], True),
            ("status", "not_in", ["ACTIVE"], False),
            ("last_name", "contains", "LACE", True),
            ("last_name", "starts_with", "love", True),
            ("email", "ends_with", "@example.COM", True),
            ("email", "contains", "nobody", False),
            ("last_name", "gt", "Babbage", True),
            ("created_at", "gte", datetime(2025, 1, 1, tzinfo=UTC), True),
            ("created_at", "lt", datetime(2025, 1, 1, tzinfo=UTC), False),
        ],
    )
    def test_operator(self, field, op, value, expected):
        assert matches(RECORD, Condition(field, op, value)) is expected

    def test_text_operators_can_be_case_sensitive(self):
        cond = Condition("last_name", FilterOperator.CONTAINS, "LACE", case_sensitive=True)

        assert matches(RECORD, cond) is False

    def test_equality_is_exact_by_default(self):
        assert matches(RECORD, Condition("status", "eq", "active")) is False
        assert matches(RECORD, Condition("status", "eq", "active", case_sensitive=False)) is True

    def test_is_null_tests_presence(self):
        assert matches(RECORD, Condition("manager_id", "is_null")) is True
        assert matches(RECORD, Condition("missing_field", "is_null")) is True
        assert matches(RECORD, Condition("age", "is_null")) is False
        assert matches(RECORD, Condition("age", "is_not_null")) is True
        assert matches(RECORD, Condition("manager_id", "is_not_null")) is False

    def test_null_attribute_fails_value_operators(self):
        """Every non-null operator fails on a null attribute, including neq."""
        assert matches(RECORD, Condition("manager_id", "eq", "1")) is False
        assert matches(RECORD, Condition("manager_id", "neq", "1")) is False
        assert matches(RECORD, Condition("manager_id", "not_in", ["1"])) is False

    def test_unknown_operator_is_rejected(self):
        with pytest.raises(ValidationException):
            Condition("age", "between", (1, 2))


# ──────────────────────────────────────────────────────────────
# Operand coercion (query strings deliver text)
# ──────────────────────────────────────────────────────────────


class TestCoercion:
    def test_numeric_text_operand(self):
        assert matches(RECORD, Condition("age", "gte", "30")) is True
        assert matches(RECORD, Condition("age", "eq", "36")) is True
        assert matches(RECORD, Condition("salary", "lt", "100000.0")) is True

    def test_timestamp_text_operand(self):
        assert matches(RECORD, Condition("created_at", "gt", "2025-02-01T00:00:00+00:00")) is True

    def test_boolean_text_operand(self):
        assert matches(RECORD, Condition("active", "eq", "true")) is True
        assert matches(RECORD, Condition("active", "eq", "false")) is False

    def test_set_operand_text_values(self):
        assert matches(RECORD, Condition("age", "in", ("35", "36"))) is True

    def test_uncoercible_text_fails(self):
        assert matches(RECORD, Condition("age", "gt", "thirty")) is False
        assert matches(RECORD, Condition("age", "eq", "thirty")) is False


# ──────────────────────────────────────────────────────────────
# Combinators
# ──────────────────────────────────────────────────────────────


class TestCombinators:
    def test_absent_expression_matches_everything(self):
        assert matches(RECORD, None) is True

    def test_empty_and_matches_everything(self):
        assert matches(RECORD, And()) is True

    def test_empty_or_matches_nothing(self):
        assert matches(RECORD, Or()) is False

    def test_and_requires_every_child(self):
        expr = all_of(Condition("status", "eq", "ACTIVE"), Condition("age", "gt", 40))

        assert matches(RECORD, expr) is False

    def test_or_requires_any_child(self):
        expr = any_of(Condition("status", "eq", "INACTIVE"), Condition("age", "gt", 30))

        assert matches(RECORD, expr) is True

    def test_not_inverts(self):
        assert matches(RECORD, Not(Condition("status", "eq", "ACTIVE"))) is False

    def test_or_branches_see_the_full_record(self):
        """Each OR branch evaluates independently against the same record."""
        expr = And(
            (
                Or((Condition("age", "lt", 18), Condition("last_name", "starts_with", "lov"))),
                Or((Condition("status", "eq", "PENDING"), Condition("email", "contains", "ada"))),
            )
        )

        assert matches(RECORD, expr) is True

    def test_nested_tree(self):
        expr = Or(
            (
                And((Condition("status", "eq", "INACTIVE"), Condition("age", "gt", 30))),
                Not(Or((Condition("age", "lt", 30), Condition("email", "contains", "corp")))),
            )
        )

        assert matches(RECORD, expr) is True

    @pytest.mark.parametrize(
        "expr",
        [
            Condition("age", "gte", 36),
            Condition("age", "gt", "thirty"),
            Condition("manager_id", "eq", "1"),
            Or((Condition("status", "eq", "X"), Condition("age", "lt", 50))),
            Not(Condition("active", "contains", "t")),
        ],
    )
    def test_and_is_idempotent(self, expr):
        assert matches(RECORD, And((expr, expr))) == matches(RECORD, expr)


# ──────────────────────────────────────────────────────────────
# Type policy
# ──────────────────────────────────────────────────────────────


class TestLenientPolicy:
    """Mismatched leaves narrow results and never raise."""

    def test_range_on_boolean_fails(self):
        assert matches(RECORD, Condition("active", "gt", 0)) is False

    def test_text_operator_on_number_fails(self):
        assert matches(RECORD, Condition("age", "contains", "3")) is False

    def test_negated_mismatch_does_not_widen(self):
        """NOT over a mismatched leaf is still no match."""
        assert matches(RECORD, Not(Condition("age", "contains", "3"))) is False

    def test_mismatch_inside_or_defers_to_other_branch(self):
        expr = Or((Condition("age", "contains", "3"), Condition("status", "eq", "ACTIVE")))

        assert matches(RECORD, expr) is True

    def test_unknown_field_fails_closed_with_schema(self):
        engine = FilterEngine(fields={"age", "status"})

        assert engine.matches(RECORD, Condition("colour", "is_null")) is False
        assert engine.matches(RECORD, Not(Condition("colour", "eq", "red"))) is False

    def test_set_operator_with_scalar_operand_fails(self):
        assert matches(RECORD, Condition("status", "in", "ACTIVE")) is False


class TestStrictPolicy:
    def test_type_mismatch_raises(self):
        engine = FilterEngine(strict=True)

        with pytest.raises(UnsupportedOperatorException) as exc_info:
            engine.matches(RECORD, Condition("age", "contains", "3"))

        assert exc_info.value.status_code == 422
        assert exc_info.value.extra["field"] == "age"
        assert exc_info.value.extra["value_type"] == "int"

    def test_unknown_field_raises(self):
        engine = FilterEngine(strict=True, fields={"age"})

        with pytest.raises(ValidationException):
            list(engine.apply([RECORD], Condition("colour", "eq", "red")))

    def test_apply_validates_before_evaluating(self):
        engine = FilterEngine(strict=True)

        with pytest.raises(ValidationException):
            list(engine.apply([], Condition("status", "in", "ACTIVE")))

    def test_valid_filter_passes(self):
        engine = FilterEngine(strict=True, fields=RECORD.keys())

        assert engine.matches(RECORD, Condition("age", "gte", 18)) is True

    def test_null_attribute_is_not_a_mismatch(self):
        engine = FilterEngine(strict=True)

        assert engine.matches(RECORD, Condition("manager_id", "gt", "1")) is False


# ──────────────────────────────────────────────────────────────
# Apply and parse
# ──────────────────────────────────────────────────────────────


class TestApply:
    def test_apply_is_lazy_and_preserves_order(self, records):
        engine = FilterEngine()
        result = engine.apply(records, Condition("status", "eq", "ACTIVE"))

        assert not isinstance(result, list)
        ids = [r["id"] for r in result]
        assert ids[:4] == ["1", "4", "7", "10"]
        assert len(ids) == 50

    def test_apply_never_mutates(self, records):
        snapshot = [dict(r) for r in records]

        list(FilterEngine().apply(records, Condition("age", "gt", 30)))

        assert records == snapshot


class TestParseFilter:
    def test_empty_means_no_filter(self):
        assert parse_filter(None) is None
        assert parse_filter({}) is None

    def test_nested_dict(self):
        expr = parse_filter(
            {
                "and": [
                    {"field": "status", "op": "eq", "value": "ACTIVE"},
                    {
                        "or": [
                            {"field": "age", "operator": "gte", "value": 30},
                            {"not": {"field": "email", "op": "ends_with", "value": ".org"}},
                        ]
                    },
                ]
            }
        )

        assert expr == And(
            (
                Condition("status", "eq", "ACTIVE"),
                Or(
                    (
                        Condition("age", "gte", 30),
                        Not(Condition("email", "ends_with", ".org")),
                    )
                ),
            )
        )
        assert matches(RECORD, expr) is True

    def test_values_key_for_sets(self):
        expr = parse_filter({"field": "status", "op": "in", "values": ["ACTIVE", "PENDING"]})

        assert expr == Condition("status", "in", ("ACTIVE", "PENDING"))

    @pytest.mark.parametrize(
        "data",
        [
            {"field": "age"},
            {"op": "eq", "value": 1},
            {"and": "not-a-list"},
            {"and": [{}]},
            {"field": "age", "op": "between", "value": 1},
        ],
    )
    def test_invalid_nodes(self, data):
        with pytest.raises(ValidationException):
            parse_filter(data)
