"""Pagination controller: filter, order, locate and window a record set.

Every call is a pure function of its inputs. The record collection is
snapshotted (``tuple(records)``) before any work, so a writer mutating the
underlying collection concurrently is never observed mid-computation. No
locks, threads or background tasks are created; an abandoned call leaves
nothing behind.

Two window modes are supported:

Offset mode (``OffsetRequest``):
    Page N of size K is ``S[(N-1)*K : N*K]`` of the filtered, ordered set.
    Windows are recomputed on every call, so deleting a record on an earlier
    page shifts later pages by one. That is inherent to offsets.

Cursor mode (``CursorRequest``):
    The cursor holds the sort-key values of the last (forward) or first
    (backward) record of the previous page. The window starts at the first
    record whose key strictly follows (precedes) those values. Because the
    lookup is by value, deleting the cursor's own record does not break
    pagination: the window simply starts at its nearest successor.
"""

from __future__ import annotations

import asyncio
import logging
import math
from bisect import bisect_left, bisect_right
from collections.abc import AsyncIterator, Collection, Iterable, Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from functools import cmp_to_key
from itertools import islice
from typing import Any, Protocol

from pagekit.core.exceptions import (
    MalformedCursorException,
    PageSizeOutOfRangeException,
    ValidationException,
)
from pagekit.core.pagination.cursor import CursorCodec, CursorData, DecodeError
from pagekit.core.pagination.filters import FilterEngine, FilterExpression
from pagekit.core.pagination.ordering import (
    SortSpec,
    compare_keys,
    ordered_sequence,
    sort_key,
)
from pagekit.core.settings import PaginationSettings, get_pagination_settings

logger = logging.getLogger(__name__)


class PaginationMode(StrEnum):
    OFFSET = "offset"
    CURSOR = "cursor"


class CursorDirection(StrEnum):
    """Cursor pagination direction (forward = after, backward = before)."""

    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class OffsetRequest:
    """Request a numbered page.

    Attributes:
        page_number: 1-based page number; values below 1 are treated as 1.
        page_size: Items per page; None uses the configured default.
        include_total_count: Report total_count and total_pages.
    """

    page_number: int = 1
    page_size: int | None = None
    include_total_count: bool = True


@dataclass(frozen=True)
class CursorRequest:
    """Request the page after (forward) or before (backward) a cursor.

    Attributes:
        direction: Forward or backward from the cursor.
        cursor: Opaque token from a previous page; None starts at the
            beginning (forward) or the end (backward).
        page_size: Items per page; None uses the configured default.
        include_total_count: Count the whole filtered set; None uses settings.
    """

    direction: CursorDirection = CursorDirection.FORWARD
    cursor: str | None = None
    page_size: int | None = None
    include_total_count: bool | None = None


PageRequest = OffsetRequest | CursorRequest


@dataclass
class PageResult:
    """A window of ordered records plus navigation metadata."""

    items: list[Any]
    sort: SortSpec
    mode: PaginationMode
    page_size: int
    has_next: bool
    has_previous: bool
    page: int | None = None
    total_pages: int | None = None
    total_count: int | None = None
    direction: CursorDirection | None = None
    _cursors: dict[int, str] = field(default_factory=dict, init=False, repr=False)

    def cursor_for(self, index: int) -> str:
        """Cursor pointing at ``items[index]``."""
        if index not in self._cursors:
            self._cursors[index] = CursorCodec.create_cursor(self.items[index], self.sort)
        return self._cursors[index]

    @property
    def start_cursor(self) -> str | None:
        return self.cursor_for(0) if self.items else None

    @property
    def end_cursor(self) -> str | None:
        return self.cursor_for(len(self.items) - 1) if self.items else None


class CancellationSignal(Protocol):
    """Anything with ``is_set()``: ``threading.Event``, ``asyncio.Event``..."""

    def is_set(self) -> bool: ...


def resolve_page_size(requested: int | None, settings: PaginationSettings) -> int:
    """Apply the default and the ``[1, max_page_size]`` bounds.

    Raises:
        PageSizeOutOfRangeException: If out of range and clamping is disabled.
    """
    if requested is None:
        return settings.default_page_size
    if 1 <= requested <= settings.max_page_size:
        return requested
    if not settings.clamp_page_size:
        raise PageSizeOutOfRangeException(requested, settings.max_page_size)
    clamped = min(max(requested, 1), settings.max_page_size)
    logger.warning(
        "Page size out of range, clamped",
        extra={"requested": requested, "page_size": clamped},
    )
    return clamped


def prepare(
    records: Iterable[Any],
    filter: FilterExpression | None,
    sort: SortSpec | None,
    *,
    settings: PaginationSettings,
    strict: bool | None = None,
    fields: Collection[str] | None = None,
) -> tuple[list[Any], SortSpec]:
    """Snapshot, filter and order ``records``; returns the ordered set and spec used."""
    sort = sort if sort is not None else SortSpec(tiebreaker=settings.identifier_field)
    strict = settings.strict_filters if strict is None else strict
    snapshot = tuple(records)
    engine = FilterEngine(strict=strict, fields=fields)
    ordered = ordered_sequence(engine.apply(snapshot, filter), sort)
    logger.debug(
        "Prepared record set",
        extra={"snapshot": len(snapshot), "matched": len(ordered), "sort": sort.signature},
    )
    return ordered, sort


def paginate(
    records: Iterable[Any],
    filter: FilterExpression | None = None,
    sort: SortSpec | None = None,
    request: PageRequest | None = None,
    *,
    settings: PaginationSettings | None = None,
    strict: bool | None = None,
    fields: Collection[str] | None = None,
) -> PageResult:
    """Filter, order and window ``records``.

    Args:
        records: Record collection; snapshotted before use.
        filter: Filter expression; None matches everything.
        sort: Sort specification; None orders by the identifier only.
        request: Offset or cursor request; None means the first cursor page.
        settings: Pagination settings; defaults to the cached settings.
        strict: Override the settings' filter type policy.
        fields: Known record schema for unknown-field detection.

    Returns:
        PageResult with the window and navigation metadata.

    Raises:
        MalformedCursorException: If the request's cursor cannot be decoded.
        PageSizeOutOfRangeException: If the size is out of range and clamping is off.
        UnsupportedOperatorException: On a filter type mismatch in strict mode.
        ValidationException: On an invalid filter in strict mode.
    """
    settings = settings or get_pagination_settings()
    request = request if request is not None else CursorRequest()
    page_size = resolve_page_size(request.page_size, settings)
    ordered, sort = prepare(
        records, filter, sort, settings=settings, strict=strict, fields=fields
    )

    if isinstance(request, OffsetRequest):
        return _offset_window(ordered, sort, request, page_size)
    if isinstance(request, CursorRequest):
        return _cursor_window(ordered, sort, request, page_size, settings)
    msg = f"Unsupported page request: {type(request).__name__}"
    raise TypeError(msg)


def _offset_window(
    ordered: list[Any],
    sort: SortSpec,
    request: OffsetRequest,
    page_size: int,
) -> PageResult:
    page = max(request.page_number, 1)
    start = (page - 1) * page_size
    total = len(ordered)
    include_total = request.include_total_count
    return PageResult(
        items=ordered[start : start + page_size],
        sort=sort,
        mode=PaginationMode.OFFSET,
        page_size=page_size,
        has_next=page * page_size < total,
        has_previous=page > 1,
        page=page,
        total_pages=math.ceil(total / page_size) if include_total else None,
        total_count=total if include_total else None,
    )


def decode_position(token: str, sort: SortSpec) -> CursorData | None:
    """Decode a cursor for ``sort``.

    Returns:
        The cursor data, or None when it was minted under a different
        ordering (shape or signature mismatch) and cannot be located.

    Raises:
        MalformedCursorException: If the token is not a valid cursor.
    """
    decoded = CursorCodec.decode(token)
    if isinstance(decoded, DecodeError):
        logger.info("Rejected malformed cursor", extra={"reason": decoded.reason})
        raise MalformedCursorException(extra={"kind": decoded.kind.value})
    if len(decoded.values) != len(sort) or (
        decoded.signature is not None and decoded.signature != sort.signature
    ):
        logger.warning(
            "Cursor does not match the active ordering, ignoring it",
            extra={
                "expected_fields": len(sort),
                "cursor_fields": len(decoded.values),
                "signature_match": decoded.signature == sort.signature,
            },
        )
        return None
    return decoded


def _cursor_window(
    ordered: list[Any],
    sort: SortSpec,
    request: CursorRequest,
    page_size: int,
    settings: PaginationSettings,
) -> PageResult:
    position = decode_position(request.cursor, sort) if request.cursor else None
    total = len(ordered)
    forward = request.direction is CursorDirection.FORWARD

    if position is not None:
        key = cmp_to_key(lambda a, b: compare_keys(a, b, sort))
        target = key(position.values)

        def record_key(record: Any) -> Any:
            return key(sort_key(record, sort))

        if forward:
            start = bisect_right(ordered, target, key=record_key)
        else:
            end = bisect_left(ordered, target, key=record_key)
    elif forward:
        start = 0
    else:
        end = total

    if forward:
        window = ordered[start : start + page_size + 1]
        has_next = len(window) > page_size
        items = window[:page_size]
        has_previous = start > 0
    else:
        start = max(end - page_size, 0)
        items = ordered[start:end]
        has_next = end < total
        has_previous = start > 0

    include_total = request.include_total_count
    if include_total is None:
        include_total = settings.include_total_count

    logger.debug(
        "Cursor window selected",
        extra={
            "direction": request.direction.value,
            "start": start,
            "returned": len(items),
            "has_next": has_next,
            "has_previous": has_previous,
        },
    )
    return PageResult(
        items=items,
        sort=sort,
        mode=PaginationMode.CURSOR,
        page_size=page_size,
        has_next=has_next,
        has_previous=has_previous,
        total_count=total if include_total else None,
        direction=request.direction,
    )


def stream(
    records: Iterable[Any],
    filter: FilterExpression | None = None,
    sort: SortSpec | None = None,
    *,
    limit: int = 0,
    cancel: CancellationSignal | None = None,
    settings: PaginationSettings | None = None,
    strict: bool | None = None,
    fields: Collection[str] | None = None,
) -> Iterator[Any]:
    """Yield every matching record in order, one at a time.

    Ordering needs the whole filtered set, so that much is materialised;
    nothing beyond it is buffered. ``cancel`` is checked before each record
    and the generator stops as soon as it is set.

    Args:
        limit: Stop after this many records; 0 means unbounded.
        cancel: Optional cancellation signal.

    Raises:
        ValidationException: If ``limit`` is negative.
    """
    if limit < 0:
        raise ValidationException(detail="Stream limit must not be negative", extra={"limit": limit})
    settings = settings or get_pagination_settings()
    ordered, _ = prepare(records, filter, sort, settings=settings, strict=strict, fields=fields)
    emitted = 0
    for record in islice(ordered, limit or None):
        if cancel is not None and cancel.is_set():
            logger.info("Stream cancelled by caller", extra={"emitted": emitted})
            return
        yield record
        emitted += 1


async def astream(
    records: Iterable[Any],
    filter: FilterExpression | None = None,
    sort: SortSpec | None = None,
    *,
    limit: int = 0,
    cancel: CancellationSignal | None = None,
    settings: PaginationSettings | None = None,
    strict: bool | None = None,
    fields: Collection[str] | None = None,
) -> AsyncIterator[Any]:
    """Async variant of ``stream`` that yields to the event loop between records."""
    for record in stream(
        records,
        filter,
        sort,
        limit=limit,
        cancel=cancel,
        settings=settings,
        strict=strict,
        fields=fields,
    ):
        yield record
        await asyncio.sleep(0)


__all__ = [
    "CancellationSignal",
    "CursorDirection",
    "CursorRequest",
    "OffsetRequest",
    "PageRequest",
    "PageResult",
    "PaginationMode",
    "astream",
    "decode_position",
    "paginate",
    "prepare",
    "resolve_page_size",
    "stream",
]
