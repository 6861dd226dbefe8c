"""GraphQL pagination, filter and sort types with converters to the engine.

Structured inputs map directly onto the engine's filter tree (including
nested AND/OR/NOT) and sort specification; ``first/after`` and
``last/before`` map onto forward and backward cursor requests.

Example:
    RecordConnection = create_connection(RecordNode, "Record")

    @strawberry.type
    class Query:
        @strawberry.field
        def records(
            self,
            filter: FilterInput | None = None,
            sort: list[SortInput] | None = None,
            page: PageInfoInput | None = None,
        ) -> RecordConnection:
            result = paginate(
                RECORDS,
                to_filter_expression(filter),
                to_sort_spec(sort),
                to_cursor_request(page),
            )
            return build_connection(result, RecordConnection, to_node=RecordNode.from_record)

Query:
    records(
      filter: {or: [{condition: {field: "status", operator: EQ, value: "ACTIVE"}},
                    {condition: {field: "age", operator: GTE, value: 50}}]}
      sort: [{field: "lastName", direction: ASC}]
      page: {first: 10, after: "eyJ2IjoxLCJrIjpb..."}
    ) { edges { cursor node { id } } pageInfo { hasNextPage endCursor } }
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

import strawberry
from strawberry.scalars import JSON

from pagekit.core.exceptions import ValidationException
from pagekit.core.pagination.assembler import to_connection
from pagekit.core.pagination.controller import CursorDirection, CursorRequest, PageResult
from pagekit.core.pagination.filters import (
    SET_OPERATORS,
    And,
    Condition,
    FilterExpression,
    FilterOperator,
    Not,
    Or,
)
from pagekit.core.pagination.ordering import SortDirection, SortField, SortSpec
from pagekit.core.pagination.schemas import Connection
from pagekit.core.settings import get_pagination_settings

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


# ============================================================================
# Enums
# ============================================================================


@strawberry.enum(description="Filter condition operators")
class FilterOperatorEnum(Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


@strawberry.enum(description="Sort direction")
class SortDirectionEnum(Enum):
    ASC = "asc"
    DESC = "desc"


# ============================================================================
# Inputs
# ============================================================================


@strawberry.input(description="A single field/operator/value predicate")
class FilterConditionInput:
    field: str = strawberry.field(description="Record field to test")
    operator: FilterOperatorEnum = strawberry.field(description="Comparison operator")
    value: JSON | None = strawberry.field(
        default=None,
        description="Operand for single-value operators",
    )
    values: list[JSON] | None = strawberry.field(
        default=None,
        description="Operands for IN / NOT_IN",
    )
    case_sensitive: bool | None = strawberry.field(
        default=None,
        description="Override the operator's default case sensitivity",
    )


@strawberry.input(description="Filter tree node; set exactly one member")
class FilterInput:
    """Recursive filter input.

    Exactly one of ``and``, ``or``, ``not`` or ``condition`` must be set.
    """

    and_: list[FilterInput] | None = strawberry.field(
        default=None,
        name="and",
        description="Matches when every child matches",
    )
    or_: list[FilterInput] | None = strawberry.field(
        default=None,
        name="or",
        description="Matches when any child matches",
    )
    not_: FilterInput | None = strawberry.field(
        default=None,
        name="not",
        description="Matches when the child does not",
    )
    condition: FilterConditionInput | None = strawberry.field(
        default=None,
        description="Leaf predicate",
    )


@strawberry.input(description="Sort on one field")
class SortInput:
    field: str = strawberry.field(description="Record field to sort by")
    direction: SortDirectionEnum = strawberry.field(
        default=SortDirectionEnum.ASC,
        description="Sort direction",
    )


@strawberry.input(description="Input for cursor-based pagination")
class PageInfoInput:
    """Relay cursor connection arguments.

    ``first``/``after`` pages forward, ``last``/``before`` pages backward.
    """

    first: int | None = strawberry.field(
        default=None,
        description="Number of items to return from the start",
    )
    after: str | None = strawberry.field(
        default=None,
        description="Cursor to start pagination from (exclusive)",
    )
    last: int | None = strawberry.field(
        default=None,
        description="Number of items to return from the end",
    )
    before: str | None = strawberry.field(
        default=None,
        description="Cursor to end pagination at (exclusive)",
    )


# ============================================================================
# Outputs
# ============================================================================


@strawberry.type(description="Pagination metadata following GraphQL Relay specification")
class PageInfoType:
    has_previous_page: bool = strawberry.field(description="Whether previous items exist")
    has_next_page: bool = strawberry.field(description="Whether more items exist")
    start_cursor: str | None = strawberry.field(
        default=None,
        description="Cursor of the first item",
    )
    end_cursor: str | None = strawberry.field(
        default=None,
        description="Cursor of the last item",
    )
    total_count: int | None = strawberry.field(
        default=None,
        description="Total count (optional, can be expensive)",
    )


def create_edge(node_type: type, type_name_prefix: str) -> type:
    """Create a Relay Edge type for ``node_type``.

    Example:
        RecordEdge = create_edge(RecordNode, "Record")
        # type RecordEdge { node: RecordNode!, cursor: String! }
    """
    namespace = {
        "__annotations__": {"node": node_type, "cursor": str},
        "node": strawberry.field(description="The node containing the actual data"),
        "cursor": strawberry.field(description="Opaque cursor for this edge"),
    }
    return strawberry.type(
        type(f"{type_name_prefix}Edge", (), namespace),
        name=f"{type_name_prefix}Edge",
        description=f"Edge containing a {type_name_prefix} node and cursor",
    )


def create_connection(
    node_type: type,
    type_name_prefix: str,
    edge_type: type | None = None,
) -> type:
    """Create a Relay Connection type (edges, page_info, total_count) for ``node_type``.

    The edge type is available afterwards as ``Connection.edge_type``.
    """
    edge_type = edge_type or create_edge(node_type, type_name_prefix)
    namespace = {
        "__annotations__": {
            "edges": list[edge_type],
            "page_info": PageInfoType,
            "total_count": int | None,
        },
        "edges": strawberry.field(description="List of edges containing nodes and their cursors"),
        "page_info": strawberry.field(description="Pagination information"),
        "total_count": strawberry.field(
            default=None,
            description="Size of the filtered set (when requested)",
        ),
    }
    connection = strawberry.type(
        type(f"{type_name_prefix}Connection", (), namespace),
        name=f"{type_name_prefix}Connection",
        description=f"Relay connection for {type_name_prefix} with cursor-based pagination",
    )
    connection.edge_type = edge_type
    return connection


# ============================================================================
# Converters
# ============================================================================


def to_filter_expression(node: FilterInput | None) -> FilterExpression | None:
    """Convert a ``FilterInput`` tree to a filter expression.

    Raises:
        ValidationException: If a node sets zero or several members.
    """
    if node is None:
        return None
    members = [
        name
        for name, value in (
            ("and", node.and_),
            ("or", node.or_),
            ("not", node.not_),
            ("condition", node.condition),
        )
        if value is not None
    ]
    if len(members) != 1:
        raise ValidationException(
            detail="Each filter node must set exactly one of and, or, not, condition",
            extra={"members": members},
        )

    if node.and_ is not None:
        return And(tuple(_child(child) for child in node.and_))
    if node.or_ is not None:
        return Or(tuple(_child(child) for child in node.or_))
    if node.not_ is not None:
        return Not(_child(node.not_))

    cond = node.condition
    op = FilterOperator(cond.operator.value)
    value: Any = cond.values if op in SET_OPERATORS and cond.values is not None else cond.value
    return Condition(cond.field, op, value, case_sensitive=cond.case_sensitive)


def _child(node: FilterInput) -> FilterExpression:
    expression = to_filter_expression(node)
    if expression is None:
        raise ValidationException(detail="Filter children cannot be null")
    return expression


def to_sort_spec(sort: list[SortInput] | None) -> SortSpec:
    settings = get_pagination_settings()
    try:
        fields = tuple(
            SortField(item.field, SortDirection(item.direction.value)) for item in sort or ()
        )
        return SortSpec(fields, tiebreaker=settings.identifier_field)
    except ValueError as e:
        raise ValidationException(
            detail=f"Invalid sort input: {e}", extra={"sort": [item.field for item in sort or ()]}
        ) from e


def to_cursor_request(
    page: PageInfoInput | None,
    *,
    include_total_count: bool | None = None,
) -> CursorRequest:
    """Map Relay arguments to a cursor request.

    Raises:
        ValidationException: If forward and backward arguments are combined.
    """
    if page is None:
        return CursorRequest(include_total_count=include_total_count)
    forward = page.first is not None or page.after is not None
    backward = page.last is not None or page.before is not None
    if forward and backward:
        raise ValidationException(
            detail="Cannot combine first/after with last/before",
            extra={"arguments": ["first", "after", "last", "before"]},
        )
    if backward:
        return CursorRequest(
            direction=CursorDirection.BACKWARD,
            cursor=page.before,
            page_size=page.last,
            include_total_count=include_total_count,
        )
    return CursorRequest(
        direction=CursorDirection.FORWARD,
        cursor=page.after,
        page_size=page.first,
        include_total_count=include_total_count,
    )


def page_info_from_connection(connection: Connection[Any]) -> PageInfoType:
    info = connection.page_info
    return PageInfoType(
        has_previous_page=info.has_previous_page,
        has_next_page=info.has_next_page,
        start_cursor=info.start_cursor,
        end_cursor=info.end_cursor,
        total_count=connection.total_count,
    )


def build_connection(
    result: PageResult,
    connection_type: type,
    to_node: Callable[[Any], Any] = lambda record: record,
) -> Any:
    """Build a ``connection_type`` instance from a page result.

    Args:
        result: Page result from ``paginate`` or ``search``.
        connection_type: Type created by ``create_connection``.
        to_node: Converts a record to the GraphQL node type.
    """
    connection = to_connection(result)
    edge_type = connection_type.edge_type
    return connection_type(
        edges=[edge_type(node=to_node(edge.node), cursor=edge.cursor) for edge in connection.edges],
        page_info=page_info_from_connection(connection),
        total_count=connection.total_count,
    )
