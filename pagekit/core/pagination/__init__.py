"""In-memory filtering, ordering and pagination for record collections.

Pages can be addressed two ways:
- Offset: numbered pages, simple but shifting when earlier records change
- Cursor: opaque value-based position markers, stable across inserts and deletes

Offset Style:
    result = paginate(records, expr, SortSpec.parse("-age"), OffsetRequest(page_number=2))
    return assemble(result, ResultShape.OFFSET_PAGE)

Connection Style:
    result = paginate(records, expr, spec, CursorRequest(cursor=after, page_size=20))
    return assemble(result, ResultShape.CONNECTION)

Search:
    result = search(records, "ada", [("first_name", "last_name"), "email"])
    return assemble(result, ResultShape.RANKED_LIST)

The cursor encodes the sort-key values of a record; clients pass it back unchanged.
"""

from pagekit.core.pagination.assembler import ResultShape, assemble
from pagekit.core.pagination.controller import (
    CursorDirection,
    CursorRequest,
    OffsetRequest,
    PageRequest,
    PageResult,
    PaginationMode,
    astream,
    paginate,
    stream,
)
from pagekit.core.pagination.cursor import CursorCodec, CursorData, DecodeError, DecodeErrorKind
from pagekit.core.pagination.filters import (
    And,
    Condition,
    FilterEngine,
    FilterExpression,
    FilterOperator,
    Not,
    Or,
    matches,
    parse_filter,
)
from pagekit.core.pagination.ordering import (
    Ordering,
    SortDirection,
    SortField,
    SortSpec,
    compare,
    compare_keys,
    ordered_sequence,
    sort_key,
)
from pagekit.core.pagination.schemas import (
    Connection,
    CursorPage,
    Edge,
    OffsetPage,
    PageInfo,
    RankedList,
    ScoredItem,
)
from pagekit.core.pagination.search import RelevanceScorer, ScoredRecord, search

__all__ = [
    # Filter
    "And",
    "Condition",
    # Schemas
    "Connection",
    # Controller
    "CursorDirection",
    # Cursor utilities
    "CursorCodec",
    "CursorData",
    "CursorPage",
    "CursorRequest",
    "DecodeError",
    "DecodeErrorKind",
    "Edge",
    "FilterEngine",
    "FilterExpression",
    "FilterOperator",
    "Not",
    "OffsetPage",
    "OffsetRequest",
    "Or",
    # Ordering
    "Ordering",
    "PageInfo",
    "PageRequest",
    "PageResult",
    "PaginationMode",
    "RankedList",
    # Search
    "RelevanceScorer",
    # Assembler
    "ResultShape",
    "ScoredItem",
    "ScoredRecord",
    "SortDirection",
    "SortField",
    "SortSpec",
    "assemble",
    "astream",
    "compare",
    "compare_keys",
    "matches",
    "ordered_sequence",
    "paginate",
    "parse_filter",
    "search",
    "sort_key",
    "stream",
]
