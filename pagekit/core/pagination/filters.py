"""Nested boolean filter expressions evaluated against in-memory records.

An expression is a tree of ``Condition`` leaves combined with ``And``,
``Or`` and ``Not``. Evaluation is a recursive fold; every leaf is evaluated
against the same, full record.

Type policy:
    Lenient (default): a leaf whose operator does not apply to the value's
    runtime type evaluates to *unknown*. Unknown propagates through the
    combinators with three-valued logic (``NOT unknown`` is unknown) and a
    record whose whole expression is unknown does not match. A malformed
    leaf therefore only ever narrows a result set.

    Strict: the same situations raise ``UnsupportedOperatorException``
    (type mismatch) or ``ValidationException`` (unknown field, malformed
    operand).

Null policy:
    ``is_null`` / ``is_not_null`` test presence (missing or ``None``). Every
    other operator is unknown on a null attribute, in both modes.

Example:
    expr = And((
        Condition("status", "eq", "ACTIVE"),
        Or((Condition("age", "gte", 30), Condition("email", "ends_with", "@corp.io"))),
    ))
    active = [r for r in records if matches(r, expr)]
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any
from uuid import UUID

from pagekit.core.exceptions import UnsupportedOperatorException, ValidationException
from pagekit.core.pagination.values import (
    ValueKind,
    get_value,
    is_null,
    kind_of,
    to_epoch,
)

logger = logging.getLogger(__name__)


class FilterOperator(StrEnum):
    """Leaf predicate operators."""

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


RANGE_OPERATORS = frozenset(
    {FilterOperator.GT, FilterOperator.GTE, FilterOperator.LT, FilterOperator.LTE}
)
TEXT_OPERATORS = frozenset(
    {FilterOperator.CONTAINS, FilterOperator.STARTS_WITH, FilterOperator.ENDS_WITH}
)
SET_OPERATORS = frozenset({FilterOperator.IN, FilterOperator.NOT_IN})


def _operator(value: Any) -> FilterOperator:
    try:
        return FilterOperator(value)
    except ValueError:
        raise ValidationException(
            detail=f"Unknown filter operator '{value}'",
            extra={"operator": str(value), "allowed": [op.value for op in FilterOperator]},
        ) from None


@dataclass(frozen=True)
class Condition:
    """Leaf predicate ``(field, op, value)``.

    Attributes:
        field: Record attribute to test.
        op: Operator; plain strings are converted to ``FilterOperator``.
        value: Operand. A collection for ``in`` / ``not_in``; ignored for null checks.
        case_sensitive: Override the operator's default string comparison. Text
            operators default to case-insensitive, equality and set operators to exact.
    """

    field: str
    op: FilterOperator
    value: Any = None
    case_sensitive: bool | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "op", _operator(self.op))
        if isinstance(self.value, list | set | frozenset):
            object.__setattr__(self, "value", tuple(self.value))


@dataclass(frozen=True)
class And:
    """Matches when every child matches; with no children it matches everything."""

    children: tuple[FilterExpression, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class Or:
    """Matches when any child matches; with no children it matches nothing."""

    children: tuple[FilterExpression, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class Not:
    child: FilterExpression


FilterExpression = Condition | And | Or | Not


def all_of(*children: FilterExpression) -> And:
    return And(children)


def any_of(*children: FilterExpression) -> Or:
    return Or(children)


class _Mismatch:
    pass


_MISMATCH = _Mismatch()
_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no"})


def _coerce(record_value: Any, operand: Any) -> Any:
    """Convert a string operand to the record value's type.

    Query-string collaborators deliver every operand as text; ``"30"`` must
    compare against an integer age and ``"2025-01-01"`` against a timestamp.
    Returns ``_MISMATCH`` when the text cannot be read as that type.
    """
    if not isinstance(operand, str) or isinstance(record_value, str):
        return operand
    text = operand.strip()
    try:
        if isinstance(record_value, bool):
            lowered = text.lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            return _MISMATCH
        if isinstance(record_value, int):
            try:
                return int(text)
            except ValueError:
                return float(text)
        if isinstance(record_value, float):
            return float(text)
        if isinstance(record_value, Decimal):
            return Decimal(text)
        if isinstance(record_value, datetime):
            return datetime.fromisoformat(text)
        if isinstance(record_value, date):
            return date.fromisoformat(text)
        if isinstance(record_value, UUID):
            return UUID(text)
    except (ValueError, InvalidOperation):
        return _MISMATCH
    return operand


def _comparable(value: Any, case_sensitive: bool) -> tuple[ValueKind, Any]:
    kind = kind_of(value)
    if kind is ValueKind.TIMESTAMP:
        return kind, to_epoch(value)
    if kind is ValueKind.STRING:
        text = str(value)
        return kind, text if case_sensitive else text.casefold()
    return kind, value


def _equals(value: Any, operand: Any, case_sensitive: bool) -> bool:
    operand = _coerce(value, operand)
    if operand is _MISMATCH:
        return False
    left_kind, left = _comparable(value, case_sensitive)
    right_kind, right = _comparable(operand, case_sensitive)
    if left_kind is ValueKind.STRING and right_kind is ValueKind.STRING:
        return left == right
    if ValueKind.TIMESTAMP in (left_kind, right_kind):
        return left_kind is right_kind and left == right
    return value == operand


class FilterEngine:
    """Evaluates filter expressions under a fixed type policy.

    Attributes:
        strict: Raise on type mismatches and unknown fields instead of failing closed.
        fields: Known record schema. When given, leaves on other fields fail closed
            (lenient) or raise ``ValidationException`` (strict).
    """

    def __init__(self, *, strict: bool = False, fields: Collection[str] | None = None) -> None:
        self.strict = strict
        self.fields = frozenset(fields) if fields is not None else None

    def matches(self, record: Any, expression: FilterExpression | None) -> bool:
        """Return True when ``record`` satisfies ``expression``."""
        if expression is None:
            return True
        return self._evaluate(record, expression) is True

    def apply(
        self,
        records: Iterable[Any],
        expression: FilterExpression | None,
    ) -> Iterator[Any]:
        """Lazily yield the records matching ``expression``."""
        if expression is None:
            yield from records
            return
        if self.strict:
            self.validate(expression)
        for record in records:
            if self._evaluate(record, expression) is True:
                yield record

    def validate(self, expression: FilterExpression) -> None:
        """Check the expression's structure once, independent of any record.

        Raises:
            ValidationException: On an unknown field (when the schema is known)
                or a set operator whose operand is not a collection.
        """
        match expression:
            case Condition():
                self._check_field(expression)
                if expression.op in SET_OPERATORS and not _is_collection(expression.value):
                    self._malformed(expression, "expects a list of values")
            case And(children=children) | Or(children=children):
                for child in children:
                    self.validate(child)
            case Not(child=child):
                self.validate(child)
            case _:
                msg = f"Not a filter expression: {expression!r}"
                raise TypeError(msg)

    def _evaluate(self, record: Any, expression: FilterExpression) -> bool | None:
        match expression:
            case Condition():
                return self._evaluate_condition(record, expression)
            case And(children=children):
                result: bool | None = True
                for child in children:
                    outcome = self._evaluate(record, child)
                    if outcome is False:
                        return False
                    if outcome is None:
                        result = None
                return result
            case Or(children=children):
                result = False
                for child in children:
                    outcome = self._evaluate(record, child)
                    if outcome is True:
                        return True
                    if outcome is None:
                        result = None
                return result
            case Not(child=child):
                outcome = self._evaluate(record, child)
                return None if outcome is None else not outcome
            case _:
                msg = f"Not a filter expression: {expression!r}"
                raise TypeError(msg)

    def _evaluate_condition(self, record: Any, cond: Condition) -> bool | None:
        if not self._check_field(cond):
            return None

        value = get_value(record, cond.field)
        op = cond.op
        if op is FilterOperator.IS_NULL:
            return is_null(value)
        if op is FilterOperator.IS_NOT_NULL:
            return not is_null(value)
        if is_null(value):
            return None

        if op in SET_OPERATORS:
            if not _is_collection(cond.value):
                return self._malformed(cond, "expects a list of values")
            case_sensitive = cond.case_sensitive is not False
            hit = any(_equals(value, candidate, case_sensitive) for candidate in cond.value)
            return hit if op is FilterOperator.IN else not hit

        if op in (FilterOperator.EQ, FilterOperator.NEQ):
            equal = _equals(value, cond.value, cond.case_sensitive is not False)
            return equal if op is FilterOperator.EQ else not equal

        if op in TEXT_OPERATORS:
            return self._evaluate_text(value, cond)

        return self._evaluate_range(value, cond)

    def _evaluate_text(self, value: Any, cond: Condition) -> bool | None:
        if not isinstance(value, str) or not isinstance(cond.value, str):
            return self._mismatch(cond, value)
        text, needle = value, cond.value
        if not cond.case_sensitive:
            text, needle = text.casefold(), needle.casefold()
        if cond.op is FilterOperator.CONTAINS:
            return needle in text
        if cond.op is FilterOperator.STARTS_WITH:
            return text.startswith(needle)
        return text.endswith(needle)

    def _evaluate_range(self, value: Any, cond: Condition) -> bool | None:
        operand = _coerce(value, cond.value)
        if operand is _MISMATCH or is_null(operand):
            return self._mismatch(cond, value)
        case_sensitive = bool(cond.case_sensitive)
        left_kind, left = _comparable(value, case_sensitive)
        right_kind, right = _comparable(operand, case_sensitive)
        orderable = (ValueKind.NUMBER, ValueKind.TIMESTAMP, ValueKind.STRING)
        if (
            left_kind is not right_kind
            or left_kind not in orderable
            or isinstance(value, bool)
            or isinstance(operand, bool)
        ):
            return self._mismatch(cond, value)
        if cond.op is FilterOperator.GT:
            return left > right
        if cond.op is FilterOperator.GTE:
            return left >= right
        if cond.op is FilterOperator.LT:
            return left < right
        return left <= right

    def _check_field(self, cond: Condition) -> bool:
        if self.fields is None or cond.field in self.fields:
            return True
        if self.strict:
            raise ValidationException(
                detail=f"Unknown filter field '{cond.field}'",
                extra={"field": cond.field},
            )
        logger.debug("Filter on unknown field fails closed", extra={"field": cond.field})
        return False

    def _mismatch(self, cond: Condition, value: Any) -> None:
        if self.strict:
            raise UnsupportedOperatorException(
                field=cond.field,
                operator=cond.op.value,
                value_type=type(value).__name__,
            )
        return None

    def _malformed(self, cond: Condition, reason: str) -> None:
        if self.strict:
            raise ValidationException(
                detail=f"Operator '{cond.op.value}' on field '{cond.field}' {reason}",
                extra={"field": cond.field, "operator": cond.op.value},
            )
        return None


def _is_collection(value: Any) -> bool:
    return isinstance(value, Collection) and not isinstance(value, str | bytes | Mapping)


def matches(
    record: Any,
    expression: FilterExpression | None,
    *,
    strict: bool = False,
    fields: Collection[str] | None = None,
) -> bool:
    """Evaluate ``expression`` against a single record."""
    return FilterEngine(strict=strict, fields=fields).matches(record, expression)


def parse_filter(data: Mapping[str, Any] | None) -> FilterExpression | None:
    """Build an expression from its nested-dict form.

    Accepted shapes::

        {"and": [...]}   {"or": [...]}   {"not": {...}}
        {"field": "age", "op": "gte", "value": 30}

    An empty or missing mapping means "no filter".

    Raises:
        ValidationException: If a node has an unknown shape or operator.
    """
    if not data:
        return None
    if not isinstance(data, Mapping):
        raise ValidationException(detail="Filter node must be an object", extra={"node": repr(data)})

    if "and" in data or "or" in data:
        key = "and" if "and" in data else "or"
        children = data[key]
        if not isinstance(children, list | tuple):
            raise ValidationException(detail=f"'{key}' expects a list of filters")
        parsed = tuple(_require(parse_filter(child), key) for child in children)
        return And(parsed) if key == "and" else Or(parsed)
    if "not" in data:
        return Not(_require(parse_filter(data["not"]), "not"))

    field = data.get("field")
    op = data.get("op", data.get("operator"))
    if not isinstance(field, str) or not field or op is None:
        raise ValidationException(
            detail="Filter condition requires 'field' and 'op'",
            extra={"node": dict(data)},
        )
    value = data.get("values", data.get("value"))
    return Condition(field, op, value, case_sensitive=data.get("case_sensitive"))


def _require(expression: FilterExpression | None, parent: str) -> FilterExpression:
    if expression is None:
        raise ValidationException(detail=f"Empty filter inside '{parent}'")
    return expression


__all__ = [
    "And",
    "Condition",
    "FilterEngine",
    "FilterExpression",
    "FilterOperator",
    "Not",
    "Or",
    "all_of",
    "any_of",
    "matches",
    "parse_filter",
]
