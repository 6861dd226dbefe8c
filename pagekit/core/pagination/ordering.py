"""Deterministic multi-field ordering with a mandatory unique tiebreaker.

A ``SortSpec`` is an ordered list of ``(field, direction)`` pairs. The
identifier field is appended last (ascending) unless the ``SortSpec`` already sorts
on it, so any two distinct records compare unequal and cursors always point
at a single well-defined position.

Usage:
    spec = SortSpec.parse("-created_at,last_name")
    ordered = ordered_sequence(records, spec)
    compare(ordered[0], ordered[1], spec)  # Ordering.LESS
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from functools import cmp_to_key
from typing import Any

from pagekit.core.pagination.values import get_value, identifier_token, sort_token


class SortDirection(StrEnum):
    """Sort direction for a single field."""

    ASC = "asc"
    DESC = "desc"


class Ordering(IntEnum):
    """Result of comparing two records or two key tuples."""

    LESS = -1
    EQUAL = 0
    GREATER = 1


@dataclass(frozen=True)
class SortField:
    """A single ``(field, direction)`` pair."""

    field: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        if not self.field:
            msg = "Sort field name cannot be empty"
            raise ValueError(msg)
        object.__setattr__(self, "direction", SortDirection(self.direction))

    @classmethod
    def parse(cls, token: str) -> SortField:
        """Parse ``"name"``, ``"+name"``, ``"-name"`` or ``"name:desc"``."""
        token = token.strip()
        if ":" in token:
            name, _, direction = token.partition(":")
            return cls(name.strip(), SortDirection(direction.strip().lower()))
        if token.startswith("-"):
            return cls(token[1:], SortDirection.DESC)
        return cls(token.removeprefix("+"), SortDirection.ASC)


@dataclass(frozen=True)
class SortSpec:
    """Ordered sort fields plus the identifier tiebreaker.

    Attributes:
        fields: Caller-requested sort fields, most significant first.
        tiebreaker: Unique field appended ascending to make the order total.
    """

    fields: tuple[SortField, ...] = ()
    tiebreaker: str = "id"
    _effective: tuple[SortField, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.tiebreaker:
            # Without a unique tiebreaker the order is not total and cursors
            # become ambiguous: this is a caller contract violation.
            msg = "SortSpec requires a unique tiebreaker field"
            raise ValueError(msg)
        normalized = tuple(
            f if isinstance(f, SortField) else SortField.parse(str(f)) for f in self.fields
        )
        object.__setattr__(self, "fields", normalized)
        effective = normalized
        if all(f.field != self.tiebreaker for f in normalized):
            effective = (*normalized, SortField(self.tiebreaker, SortDirection.ASC))
        object.__setattr__(self, "_effective", effective)

    @classmethod
    def parse(cls, value: str | None, *, tiebreaker: str = "id") -> SortSpec:
        """Build a spec from a comma-separated string such as ``"-age,name"``."""
        if not value:
            return cls((), tiebreaker=tiebreaker)
        tokens = [t for t in value.split(",") if t.strip()]
        return cls(tuple(SortField.parse(t) for t in tokens), tiebreaker=tiebreaker)

    @property
    def effective_fields(self) -> tuple[SortField, ...]:
        """Sort fields including the tiebreaker, as used for ordering and cursors."""
        return self._effective

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.field for f in self._effective)

    @property
    def signature(self) -> str:
        """Short fingerprint identifying this ordering inside cursors."""
        canonical = ",".join(f"{f.field}:{f.direction.value}" for f in self._effective)
        return hashlib.blake2s(canonical.encode(), digest_size=6).hexdigest()

    def __len__(self) -> int:
        return len(self._effective)


def sort_key(record: Any, spec: SortSpec) -> tuple[Any, ...]:
    """Raw key tuple of a record under ``spec``; this is what cursors encode."""
    return tuple(get_value(record, f.field) for f in spec.effective_fields)


def _tokens(key: Sequence[Any], spec: SortSpec) -> tuple[tuple[Any, ...], ...]:
    return tuple(
        identifier_token(value) if sf.field == spec.tiebreaker else sort_token(value)
        for sf, value in zip(spec.effective_fields, key, strict=True)
    )


def _compare_tokens(
    left: Sequence[tuple[Any, ...]],
    right: Sequence[tuple[Any, ...]],
    spec: SortSpec,
) -> Ordering:
    for sf, a, b in zip(spec.effective_fields, left, right, strict=True):
        if a == b:
            continue
        result = Ordering.LESS if a < b else Ordering.GREATER
        if sf.direction is SortDirection.DESC:
            result = Ordering(-result)
        return result
    return Ordering.EQUAL


def compare_keys(left: Sequence[Any], right: Sequence[Any], spec: SortSpec) -> Ordering:
    """Compare two raw key tuples produced by ``sort_key`` (or decoded cursors)."""
    if len(left) != len(spec) or len(right) != len(spec):
        msg = f"Key tuples must have {len(spec)} values"
        raise ValueError(msg)
    return _compare_tokens(_tokens(left, spec), _tokens(right, spec), spec)


def compare(a: Any, b: Any, spec: SortSpec) -> Ordering:
    """Compare two records field by field; the tiebreaker decides full ties."""
    return compare_keys(sort_key(a, spec), sort_key(b, spec), spec)


def ordered_sequence(records: Iterable[Any], spec: SortSpec) -> list[Any]:
    """Return the records in the total order defined by ``spec``.

    Tokens are computed once per record rather than once per comparison.
    """
    decorated = [(_tokens(sort_key(r, spec), spec), r) for r in records]
    decorated.sort(key=cmp_to_key(lambda x, y: _compare_tokens(x[0], y[0], spec)))
    return [r for _, r in decorated]


__all__ = [
    "Ordering",
    "SortDirection",
    "SortField",
    "SortSpec",
    "compare",
    "compare_keys",
    "ordered_sequence",
    "sort_key",
]
