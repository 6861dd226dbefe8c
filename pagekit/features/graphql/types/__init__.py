"""GraphQL type definitions for filtered, sorted, cursor-paginated queries."""

from __future__ import annotations

from pagekit.features.graphql.types.pagination import (
    FilterConditionInput,
    FilterInput,
    FilterOperatorEnum,
    PageInfoInput,
    PageInfoType,
    SortDirectionEnum,
    SortInput,
    build_connection,
    create_connection,
    create_edge,
    page_info_from_connection,
    to_cursor_request,
    to_filter_expression,
    to_sort_spec,
)

__all__ = [
    "FilterConditionInput",
    "FilterInput",
    "FilterOperatorEnum",
    "PageInfoInput",
    "PageInfoType",
    "SortDirectionEnum",
    "SortInput",
    "build_connection",
    "create_connection",
    "create_edge",
    "page_info_from_connection",
    "to_cursor_request",
    "to_filter_expression",
    "to_sort_spec",
]
