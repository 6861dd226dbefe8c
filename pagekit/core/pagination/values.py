"""Record field access and value normalisation shared by filtering and ordering.

Records are read-only mappings (``dict``-like) or plain objects such as
Pydantic models; attributes are looked up by key first, then by attribute.
The engine never mutates a record.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import IntEnum
from typing import Any
from uuid import UUID


class _Missing:
    """Marker for an attribute absent from a record."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class ValueKind(IntEnum):
    """Kinds of attribute values, in cross-type sort order."""

    NUMBER = 0
    NAN = 1
    TIMESTAMP = 2
    STRING = 3
    OTHER = 4
    NULL = 5


def get_value(record: Any, field: str) -> Any:
    """Return a record attribute, or MISSING when the record lacks it."""
    if isinstance(record, Mapping):
        return record.get(field, MISSING)
    return getattr(record, field, MISSING)


def is_null(value: Any) -> bool:
    return value is MISSING or value is None


def to_epoch(value: date) -> float:
    """Canonical numeric form of a timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.timestamp()
    return datetime(value.year, value.month, value.day, tzinfo=UTC).timestamp()


def kind_of(value: Any) -> ValueKind:
    if is_null(value):
        return ValueKind.NULL
    if isinstance(value, float) and value != value:
        return ValueKind.NAN
    if isinstance(value, Decimal) and value.is_nan():
        return ValueKind.NAN
    if isinstance(value, bool | int | float | Decimal):
        return ValueKind.NUMBER
    if isinstance(value, date):
        return ValueKind.TIMESTAMP
    if isinstance(value, str | UUID):
        return ValueKind.STRING
    return ValueKind.OTHER


def sort_token(value: Any) -> tuple[Any, ...]:
    """Map a value onto a tuple that orders consistently across types.

    Numbers order natively, timestamps by epoch, strings case-insensitively
    by codepoint. Missing and None values order after everything else.
    """
    kind = kind_of(value)
    if kind is ValueKind.NUMBER:
        return (kind, value, "")
    if kind is ValueKind.TIMESTAMP:
        return (kind, to_epoch(value), "")
    if kind is ValueKind.STRING:
        text = str(value)
        return (kind, text.casefold(), text)
    if kind is ValueKind.OTHER:
        return (kind, str(value), type(value).__name__)
    return (kind, 0, "")


def identifier_token(value: Any) -> tuple[Any, ...]:
    """Sort token for the unique identifier.

    Digit-only string identifiers order numerically (``"2" < "10"``) ahead of
    any other string identifier; the raw text breaks ties such as ``"07"``
    against ``"7"`` so distinct identifiers never compare equal.
    """
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return (ValueKind.NUMBER, int(value), value)
    return sort_token(value)
