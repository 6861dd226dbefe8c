"""Record query service backing the RPC surface.

Each method translates a request message into the engine's canonical
``(filter, sort, request)`` triple and the resulting ``PageResult`` back into
a response message.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Collection, Iterable, Iterator, Sequence
from typing import Any

from pagekit.core.exceptions import NotFoundException
from pagekit.core.pagination.controller import (
    CancellationSignal,
    CursorRequest,
    OffsetRequest,
    astream,
    paginate,
    stream,
)
from pagekit.core.pagination.ordering import SortSpec
from pagekit.core.pagination.search import RelevanceScorer, SearchField, search
from pagekit.core.pagination.values import get_value
from pagekit.core.services.base import BaseService
from pagekit.core.settings import (
    PaginationSettings,
    SearchSettings,
    get_pagination_settings,
    get_search_settings,
)
from pagekit.features.rpc.schemas import (
    GetRecordRequest,
    ListRecordsOffsetRequest,
    ListRecordsOffsetResponse,
    ListRecordsRequest,
    ListRecordsResponse,
    SearchRecordsRequest,
    SearchRecordsResponse,
    SearchResult,
    SortOption,
    StreamRecordsRequest,
)

RecordSource = Collection[Any] | Callable[[], Iterable[Any]]


class RecordQueryService(BaseService):
    """Lists, streams and searches an in-memory record collection.

    Args:
        source: The records, or a callable returning the current records.
        search_fields: Fields (or composite tuples) used by ``search_records``.
        schema_fields: Known record fields for unknown-field detection.
    """

    def __init__(
        self,
        source: RecordSource,
        *,
        search_fields: Sequence[SearchField] = (),
        schema_fields: Collection[str] | None = None,
        settings: PaginationSettings | None = None,
        search_settings: SearchSettings | None = None,
    ) -> None:
        super().__init__()
        self._source = source
        self._settings = settings or get_pagination_settings()
        self._search_settings = search_settings or get_search_settings()
        self._schema_fields = schema_fields
        self._scorer = (
            RelevanceScorer.from_settings(search_fields, self._search_settings)
            if search_fields
            else None
        )

    def _records(self) -> Iterable[Any]:
        return self._source() if callable(self._source) else self._source

    def _sort(self, options: list[SortOption]) -> SortSpec:
        return SortSpec(
            tuple(option.to_sort_field() for option in options),
            tiebreaker=self._settings.identifier_field,
        )

    def get_record(self, request: GetRecordRequest) -> Any:
        """Return the record whose identifier equals ``request.id``.

        Raises:
            NotFoundException: If no record has that identifier.
        """
        field = self._settings.identifier_field
        for record in self._records():
            if str(get_value(record, field)) == request.id:
                return record
        self._lazy.debug(lambda: f"service.get_record({request.id}) -> not found")
        raise NotFoundException(
            detail=f"Record with ID {request.id} not found",
            extra={"id": request.id},
        )

    def list_records_offset(self, request: ListRecordsOffsetRequest) -> ListRecordsOffsetResponse:
        result = paginate(
            self._records(),
            request.filter.to_expression() if request.filter else None,
            self._sort(request.sort),
            OffsetRequest(
                page_number=request.page_number,
                page_size=request.page_size or None,
            ),
            settings=self._settings,
            fields=self._schema_fields,
        )
        self._lazy.debug(
            lambda: f"service.list_records_offset(page={result.page}) -> {len(result.items)} records"
        )
        return ListRecordsOffsetResponse(
            records=result.items,
            total_count=result.total_count or 0,
            total_pages=result.total_pages or 0,
            current_page=result.page or 1,
            has_next_page=result.has_next,
            has_previous_page=result.has_previous,
        )

    def list_records_cursor(self, request: ListRecordsRequest) -> ListRecordsResponse:
        """Forward cursor listing; ``next_page_token`` is empty once exhausted."""
        result = paginate(
            self._records(),
            request.filter.to_expression() if request.filter else None,
            self._sort(request.sort),
            CursorRequest(
                cursor=request.page_token or None,
                page_size=request.page_size or None,
                include_total_count=request.include_total_count,
            ),
            settings=self._settings,
            fields=self._schema_fields,
        )
        return ListRecordsResponse(
            records=result.items,
            next_page_token=(result.end_cursor or "") if result.has_next else "",
            has_more=result.has_next,
            total_count=result.total_count,
        )

    def stream_records(
        self,
        request: StreamRecordsRequest,
        cancel: CancellationSignal | None = None,
    ) -> Iterator[Any]:
        """Yield matching records one at a time until exhausted or cancelled."""
        self.logger.info("Streaming records", extra={"limit": request.limit})
        return stream(
            self._records(),
            request.filter.to_expression() if request.filter else None,
            self._sort(request.sort),
            limit=request.limit,
            cancel=cancel,
            settings=self._settings,
            fields=self._schema_fields,
        )

    def astream_records(
        self,
        request: StreamRecordsRequest,
        cancel: CancellationSignal | None = None,
    ) -> AsyncIterator[Any]:
        self.logger.info("Streaming records", extra={"limit": request.limit})
        return astream(
            self._records(),
            request.filter.to_expression() if request.filter else None,
            self._sort(request.sort),
            limit=request.limit,
            cancel=cancel,
            settings=self._settings,
            fields=self._schema_fields,
        )

    def search_records(self, request: SearchRecordsRequest) -> SearchRecordsResponse:
        """Relevance-ranked search; an explicit sort overrides the ranking."""
        if self._scorer is None:
            msg = "RecordQueryService was created without search fields"
            raise RuntimeError(msg)
        result = search(
            self._records(),
            request.query,
            self._scorer,
            filter=request.filter.to_expression() if request.filter else None,
            sort=self._sort(request.sort) if request.sort else None,
            request=CursorRequest(
                cursor=request.page_token or None,
                page_size=request.page_size or self._search_settings.default_page_size,
                include_total_count=request.include_total_count,
            ),
            settings=self._settings,
            search_settings=self._search_settings,
            schema_fields=self._schema_fields,
        )
        self.logger.info(
            "Search completed",
            extra={"query": request.query, "returned": len(result.items)},
        )
        return SearchRecordsResponse(
            results=[SearchResult(record=item.record, score=item.score) for item in result.items],
            next_page_token=(result.end_cursor or "") if result.has_next else "",
            has_more=result.has_next,
            total_count=result.total_count,
        )


__all__ = ["RecordQueryService", "RecordSource"]
