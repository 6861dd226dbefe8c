"""Request and response messages for the record query service.

Messages follow protobuf conventions: zero values mean "unset" (``page_size=0``
uses the configured default, an empty ``page_token`` starts at the beginning,
``SortOrder.UNSPECIFIED`` sorts ascending) and an exhausted cursor listing
returns an empty ``next_page_token``.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pagekit.core.pagination.filters import (
    SET_OPERATORS,
    And,
    Condition,
    FilterExpression,
    FilterOperator,
    Not,
    Or,
)
from pagekit.core.pagination.ordering import SortDirection, SortField


class SortOrder(IntEnum):
    UNSPECIFIED = 0
    ASC = 1
    DESC = 2


class FilterCondition(BaseModel):
    """Single predicate; ``values`` is used by IN / NOT_IN."""

    field: str = Field(min_length=1, description="Record field to test")
    operator: FilterOperator = Field(default=FilterOperator.EQ, description="Operator")
    value: Any = Field(default=None, description="Operand")
    values: list[Any] = Field(default_factory=list, description="Operands for set operators")
    case_sensitive: bool | None = Field(default=None, description="Case sensitivity override")

    def to_expression(self) -> Condition:
        value = self.values if self.operator in SET_OPERATORS else self.value
        return Condition(self.field, self.operator, value, case_sensitive=self.case_sensitive)


class RecordFilter(BaseModel):
    """Filter message.

    All ``conditions`` must hold, at least one ``any_of`` group must match
    (when given) and no ``none_of`` group may match; empty groups impose nothing.
    """

    conditions: list[FilterCondition] = Field(default_factory=list)
    any_of: list[RecordFilter] = Field(default_factory=list)
    none_of: list[RecordFilter] = Field(default_factory=list)

    def to_expression(self) -> FilterExpression | None:
        children: list[FilterExpression] = [c.to_expression() for c in self.conditions]
        if self.any_of:
            children.append(Or(tuple(group.to_expression() or And() for group in self.any_of)))
        children.extend(Not(expr) for group in self.none_of if (expr := group.to_expression()) is not None)
        return And(tuple(children)) if children else None


class SortOption(BaseModel):
    field: str = Field(min_length=1)
    order: SortOrder = SortOrder.UNSPECIFIED

    def to_sort_field(self) -> SortField:
        direction = SortDirection.DESC if self.order is SortOrder.DESC else SortDirection.ASC
        return SortField(self.field, direction)


class _Request(BaseModel):
    model_config = ConfigDict(frozen=True)

    filter: RecordFilter | None = None
    sort: list[SortOption] = Field(default_factory=list)


class GetRecordRequest(BaseModel):
    id: str = Field(min_length=1)


class ListRecordsRequest(_Request):
    page_size: int = Field(default=0, description="0 uses the default page size")
    page_token: str = Field(default="", description="Cursor from a previous response")
    include_total_count: bool = False


class ListRecordsOffsetRequest(_Request):
    page_size: int = Field(default=0, description="0 uses the default page size")
    page_number: int = Field(default=1, description="1-based page number")


class StreamRecordsRequest(_Request):
    limit: int = Field(default=0, ge=0, description="0 streams every match")


class SearchRecordsRequest(_Request):
    query: str = Field(default="", description="Free-text query")
    page_size: int = Field(default=0, description="0 uses the default page size")
    page_token: str = Field(default="", description="Cursor from a previous response")
    include_total_count: bool = False


class ListRecordsResponse(BaseModel):
    records: list[Any] = Field(default_factory=list)
    next_page_token: str = ""
    has_more: bool = False
    total_count: int | None = None


class ListRecordsOffsetResponse(BaseModel):
    records: list[Any] = Field(default_factory=list)
    total_count: int = 0
    total_pages: int = 0
    current_page: int = 1
    has_next_page: bool = False
    has_previous_page: bool = False


class SearchResult(BaseModel):
    record: Any
    score: float


class SearchRecordsResponse(BaseModel):
    results: list[SearchResult] = Field(default_factory=list)
    next_page_token: str = ""
    has_more: bool = False
    total_count: int | None = None


__all__ = [
    "FilterCondition",
    "GetRecordRequest",
    "ListRecordsOffsetRequest",
    "ListRecordsOffsetResponse",
    "ListRecordsRequest",
    "ListRecordsResponse",
    "RecordFilter",
    "SearchRecordsRequest",
    "SearchRecordsResponse",
    "SearchResult",
    "SortOption",
    "SortOrder",
    "StreamRecordsRequest",
]
