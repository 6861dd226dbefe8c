"""Response shapes for paginated and ranked results.

Three shapes are available, all rendered from the same ``PageResult``:

1. ``OffsetPage``: numbered pages with item count metadata, for REST
   listings where clients jump to arbitrary pages.

2. ``Connection`` (Relay-style):
   - Edges carrying a node and its cursor
   - ``PageInfo`` with navigation flags and boundary cursors
   - ``to_cursor_page()`` for a flatter REST rendering

3. ``RankedList``: search results, each item carrying its relevance score.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class OffsetPage(BaseModel, Generic[T]):
    """A numbered page of items.

    Attributes:
        items: Items on this page
        page: 1-based page number
        page_size: Requested page size after clamping
        total_count: Number of matching items (when requested)
        total_pages: Number of pages (when requested)
        has_next: Whether a following page exists
        has_previous: Whether a preceding page exists
    """

    items: list[T] = Field(default_factory=list, description="Items on this page")
    page: int = Field(ge=1, description="1-based page number")
    page_size: int = Field(ge=1, description="Items per page")
    total_count: int | None = Field(default=None, description="Total matching items")
    total_pages: int | None = Field(default=None, description="Total number of pages")
    has_next: bool = Field(default=False, description="Whether a next page exists")
    has_previous: bool = Field(default=False, description="Whether a previous page exists")


class PageInfo(BaseModel):
    """Relay-style navigation metadata for a cursor page."""

    has_previous_page: bool = Field(description="Whether previous items exist")
    has_next_page: bool = Field(description="Whether more items exist")
    start_cursor: str | None = Field(default=None, description="Cursor of the first item")
    end_cursor: str | None = Field(default=None, description="Cursor of the last item")


class Edge(BaseModel, Generic[T]):
    node: T = Field(description="The data item")
    cursor: str = Field(description="Cursor for this item")


class Connection(BaseModel, Generic[T]):
    """Relay-style connection for cursor pagination.

    Client navigation:
        # First page
        GET /records?limit=10

        # Next page (end_cursor of the previous response)
        GET /records?limit=10&cursor=eyJ2IjoxLCJrIjpb...

        # Previous page (start_cursor of the current response)
        GET /records?limit=10&direction=backward&cursor=eyJ2IjoxLCJrIjpb...

    Attributes:
        edges: Items with their cursors
        page_info: Navigation metadata
        total_count: Size of the whole filtered set (when requested)
    """

    edges: list[Edge[T]] = Field(
        default_factory=list,
        description="List of edges (items with cursors)",
    )
    page_info: PageInfo = Field(description="Pagination metadata")
    total_count: int | None = Field(default=None, description="Total count (optional)")

    @property
    def nodes(self) -> list[T]:
        """Items without their edge wrappers."""
        return [edge.node for edge in self.edges]

    def to_cursor_page(self) -> CursorPage[T]:
        return CursorPage(
            items=self.nodes,
            next_cursor=self.page_info.end_cursor if self.page_info.has_next_page else None,
            prev_cursor=self.page_info.start_cursor if self.page_info.has_previous_page else None,
            has_more=self.page_info.has_next_page,
            total_count=self.total_count,
        )


class CursorPage(BaseModel, Generic[T]):
    """Flat REST-style cursor page.

    Attributes:
        items: Items on this page
        next_cursor: Cursor for the next page (None if no more)
        prev_cursor: Cursor for the previous page (None if at start)
        has_more: Whether more items exist after this page
        total_count: Total count (optional)
    """

    items: list[T] = Field(default_factory=list, description="List of items")
    next_cursor: str | None = Field(default=None, description="Cursor to fetch next page")
    prev_cursor: str | None = Field(default=None, description="Cursor to fetch previous page")
    has_more: bool = Field(default=False, description="Whether more items exist")
    total_count: int | None = Field(default=None, description="Total count (optional)")


class ScoredItem(BaseModel, Generic[T]):
    node: T = Field(description="The matched item")
    score: float = Field(description="Relevance score, higher is better")
    cursor: str = Field(description="Cursor for this item")


class RankedList(BaseModel, Generic[T]):
    """Search results in relevance order.

    Attributes:
        items: Scored items, best match first
        next_cursor: Cursor for the next page of results (None if no more)
        has_more: Whether more results exist after this page
        total_count: Number of matching results (when requested)
    """

    items: list[ScoredItem[T]] = Field(default_factory=list, description="Scored items")
    next_cursor: str | None = Field(default=None, description="Cursor to fetch next page")
    has_more: bool = Field(default=False, description="Whether more results exist")
    total_count: int | None = Field(default=None, description="Total matching results")


__all__ = [
    "Connection",
    "CursorPage",
    "Edge",
    "OffsetPage",
    "PageInfo",
    "RankedList",
    "ScoredItem",
]
