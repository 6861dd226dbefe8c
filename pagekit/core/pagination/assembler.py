"""Shape a ``PageResult`` into a response envelope.

Usage:
    result = paginate(records, expr, spec, CursorRequest(page_size=10))
    connection = assemble(result, ResultShape.CONNECTION)
    connection.page_info.end_cursor  # feed back as the next request's cursor
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pagekit.core.pagination.controller import PageResult, PaginationMode
from pagekit.core.pagination.schemas import (
    Connection,
    Edge,
    OffsetPage,
    PageInfo,
    RankedList,
    ScoredItem,
)
from pagekit.core.pagination.search import ScoredRecord


class ResultShape(StrEnum):
    OFFSET_PAGE = "offset_page"
    CONNECTION = "connection"
    RANKED_LIST = "ranked_list"


def _node(item: Any) -> Any:
    return item.record if isinstance(item, ScoredRecord) else item


def to_offset_page(result: PageResult) -> OffsetPage[Any]:
    if result.mode is not PaginationMode.OFFSET or result.page is None:
        msg = "An offset page can only be assembled from an offset-mode result"
        raise ValueError(msg)
    return OffsetPage(
        items=[_node(item) for item in result.items],
        page=result.page,
        page_size=result.page_size,
        total_count=result.total_count,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_previous=result.has_previous,
    )


def to_connection(result: PageResult) -> Connection[Any]:
    edges = [
        Edge(node=_node(item), cursor=result.cursor_for(i))
        for i, item in enumerate(result.items)
    ]
    return Connection(
        edges=edges,
        page_info=PageInfo(
            has_previous_page=result.has_previous,
            has_next_page=result.has_next,
            start_cursor=edges[0].cursor if edges else None,
            end_cursor=edges[-1].cursor if edges else None,
        ),
        total_count=result.total_count,
    )


def to_ranked_list(result: PageResult) -> RankedList[Any]:
    items = []
    for i, item in enumerate(result.items):
        if not isinstance(item, ScoredRecord):
            msg = "A ranked list can only be assembled from search results"
            raise TypeError(msg)
        items.append(ScoredItem(node=item.record, score=item.score, cursor=result.cursor_for(i)))
    return RankedList(
        items=items,
        next_cursor=result.end_cursor if result.has_next else None,
        has_more=result.has_next,
        total_count=result.total_count,
    )


def assemble(
    result: PageResult,
    shape: ResultShape | str,
) -> OffsetPage[Any] | Connection[Any] | RankedList[Any]:
    """Render ``result`` in the requested shape.

    Raises:
        ValueError: For an offset page from a cursor-mode result, or an unknown shape.
        TypeError: For a ranked list from results that were not scored.
    """
    shape = ResultShape(shape)
    if shape is ResultShape.OFFSET_PAGE:
        return to_offset_page(result)
    if shape is ResultShape.CONNECTION:
        return to_connection(result)
    return to_ranked_list(result)


__all__ = [
    "ResultShape",
    "assemble",
    "to_connection",
    "to_offset_page",
    "to_ranked_list",
]
