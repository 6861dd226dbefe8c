"""FastAPI dependencies for route handlers.

Usage:
    from pagekit.core.dependencies import CursorPagination, QueryFilter, QuerySort
"""

from pagekit.core.dependencies.pagination import (
    CursorPagination,
    OffsetPagination,
    QueryFilter,
    QuerySort,
    get_cursor_request,
    get_offset_request,
    get_query_filter,
    get_sort_spec,
    parse_query_filters,
)

__all__ = [
    "CursorPagination",
    "OffsetPagination",
    "QueryFilter",
    "QuerySort",
    "get_cursor_request",
    "get_offset_request",
    "get_query_filter",
    "get_sort_spec",
    "parse_query_filters",
]
