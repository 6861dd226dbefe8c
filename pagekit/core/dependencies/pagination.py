"""Query-string pagination, sorting and filtering dependencies for FastAPI routes.

Query parameters map onto the engine's canonical ``(filter, sort, request)``:

    page, limit                 -> OffsetRequest
    cursor, direction, limit    -> CursorRequest
    sort=-age,last_name         -> SortSpec
    any other field_op=value    -> flat AND filter

Filter parameters use ``<field>_<operator>=<value>``; a bare ``<field>=value``
means equality. ``in`` / ``not_in`` take comma-separated values and the null
checks take a boolean:

    GET /records?status=ACTIVE&age_gte=30&department_in=Sales,Support
    GET /records?email_is_null=false&last_name_starts_with=sm

Usage:
    from pagekit.core.dependencies.pagination import (
        CursorPagination,
        QueryFilter,
        QuerySort,
    )

    @router.get("/records", response_model=Connection[Record])
    async def list_records(
        page: CursorPagination,
        expr: QueryFilter,
        sort: QuerySort,
    ) -> Connection[Record]:
        result = paginate(RECORDS, expr, sort, page)
        return assemble(result, ResultShape.CONNECTION)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Annotated

from fastapi import Depends, Query, Request

from pagekit.core.exceptions import ValidationException
from pagekit.core.pagination.controller import CursorDirection, CursorRequest, OffsetRequest
from pagekit.core.pagination.filters import And, Condition, FilterOperator, SET_OPERATORS
from pagekit.core.pagination.ordering import SortSpec
from pagekit.core.settings import get_pagination_settings

RESERVED_PARAMS = frozenset(
    {"page", "limit", "cursor", "direction", "sort", "include_total", "q"}
)

# Longest suffix first so "_not_in" wins over "_in" and "_gte" over "_gt"
_SUFFIXES = sorted(
    ((f"_{op.value}", op) for op in FilterOperator),
    key=lambda item: len(item[0]),
    reverse=True,
)
_FALSE_STRINGS = frozenset({"false", "0", "no"})


def split_filter_key(key: str) -> tuple[str, FilterOperator]:
    """Split ``"age_gte"`` into ``("age", FilterOperator.GTE)``."""
    for suffix, op in _SUFFIXES:
        if key.endswith(suffix) and len(key) > len(suffix):
            return key[: -len(suffix)], op
    return key, FilterOperator.EQ


def parse_query_filters(
    params: Mapping[str, str] | Iterable[tuple[str, str]],
    *,
    reserved: frozenset[str] = RESERVED_PARAMS,
) -> And | None:
    """Build a flat AND filter from query parameters.

    Args:
        params: Query parameters; repeated keys are supported as pairs.
        reserved: Parameter names that are never filters.

    Returns:
        An ``And`` of conditions, or None when no filter parameters are present.
    """
    items = params.items() if isinstance(params, Mapping) else params
    conditions = []
    for key, raw in items:
        if key in reserved:
            continue
        field, op = split_filter_key(key)
        if op in SET_OPERATORS:
            value: object = tuple(v.strip() for v in raw.split(",") if v.strip())
        elif op in (FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL):
            if raw.strip().lower() in _FALSE_STRINGS:
                op = (
                    FilterOperator.IS_NOT_NULL
                    if op is FilterOperator.IS_NULL
                    else FilterOperator.IS_NULL
                )
            value = None
        else:
            value = raw
        conditions.append(Condition(field, op, value))
    return And(tuple(conditions)) if conditions else None


def get_offset_request(
    page: Annotated[int, Query(description="1-based page number")] = 1,
    limit: Annotated[
        int | None,
        Query(description="Items per page; out-of-range values are clamped"),
    ] = None,
    include_total: Annotated[
        bool,
        Query(description="Include total_count and total_pages"),
    ] = True,
) -> OffsetRequest:
    return OffsetRequest(page_number=page, page_size=limit, include_total_count=include_total)


def get_cursor_request(
    cursor: Annotated[
        str | None,
        Query(description="Opaque cursor from a previous page"),
    ] = None,
    direction: Annotated[
        CursorDirection,
        Query(description="Page after (forward) or before (backward) the cursor"),
    ] = CursorDirection.FORWARD,
    limit: Annotated[
        int | None,
        Query(description="Items per page; out-of-range values are clamped"),
    ] = None,
    include_total: Annotated[
        bool | None,
        Query(description="Include total_count (requires a full scan)"),
    ] = None,
) -> CursorRequest:
    return CursorRequest(
        direction=direction,
        cursor=cursor or None,
        page_size=limit,
        include_total_count=include_total,
    )


def get_sort_spec(
    sort: Annotated[
        str | None,
        Query(description="Comma-separated fields, '-' prefix for descending"),
    ] = None,
) -> SortSpec:
    """Parse the ``sort`` parameter; the configured identifier breaks ties."""
    settings = get_pagination_settings()
    try:
        return SortSpec.parse(sort, tiebreaker=settings.identifier_field)
    except ValueError as e:
        raise ValidationException(
            detail=f"Invalid sort parameter: {e}",
            extra={"sort": sort},
        ) from e


def get_query_filter(request: Request) -> And | None:
    return parse_query_filters(request.query_params.multi_items())


# Type aliases for cleaner route signatures
OffsetPagination = Annotated[OffsetRequest, Depends(get_offset_request)]
CursorPagination = Annotated[CursorRequest, Depends(get_cursor_request)]
QuerySort = Annotated[SortSpec, Depends(get_sort_spec)]
QueryFilter = Annotated[And | None, Depends(get_query_filter)]

__all__ = [
    "RESERVED_PARAMS",
    "CursorPagination",
    "OffsetPagination",
    "QueryFilter",
    "QuerySort",
    "get_cursor_request",
    "get_offset_request",
    "get_query_filter",
    "get_sort_spec",
    "parse_query_filters",
    "split_filter_key",
]
