"""Record query service for binary-schema (RPC) collaborators."""

from pagekit.features.rpc.schemas import (
    FilterCondition,
    GetRecordRequest,
    ListRecordsOffsetRequest,
    ListRecordsOffsetResponse,
    ListRecordsRequest,
    ListRecordsResponse,
    RecordFilter,
    SearchRecordsRequest,
    SearchRecordsResponse,
    SearchResult,
    SortOption,
    SortOrder,
    StreamRecordsRequest,
)
from pagekit.features.rpc.service import RecordQueryService

__all__ = [
    "FilterCondition",
    "GetRecordRequest",
    "ListRecordsOffsetRequest",
    "ListRecordsOffsetResponse",
    "ListRecordsRequest",
    "ListRecordsResponse",
    "RecordFilter",
    "RecordQueryService",
    "SearchRecordsRequest",
    "SearchRecordsResponse",
    "SearchResult",
    "SortOption",
    "SortOrder",
    "StreamRecordsRequest",
]
