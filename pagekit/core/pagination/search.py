"""Relevance-ranked search over in-memory records.

Each configured search field contributes to a record's score:

    query equals the whole field value        exact weight (100)
    query is contained in the field value     substring weight (40)
    query starts a component of a composite   prefix weight (20) per component

A composite field (e.g. ``("first_name", "last_name")``) is matched against
its components joined by a space, so "ada lovelace" is an exact match on the
full name while "love" is both a substring and a component prefix. Matching
is case-insensitive. Records scoring zero are excluded; an empty query scores
every record 1 and so returns everything.

Results are ranked by score descending with the identifier as tiebreaker and
paginated with the regular controller, so cursors work across search pages.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pagekit.core.pagination.controller import (
    CursorRequest,
    PageRequest,
    PageResult,
    paginate,
)
from pagekit.core.pagination.filters import FilterEngine, FilterExpression
from pagekit.core.pagination.ordering import SortDirection, SortField, SortSpec
from pagekit.core.pagination.values import MISSING, get_value, is_null
from pagekit.core.settings import (
    PaginationSettings,
    SearchSettings,
    get_pagination_settings,
    get_search_settings,
)

logger = logging.getLogger(__name__)

SCORE_FIELD = "_score"

SearchField = str | tuple[str, ...]


class ScoredRecord(Mapping[str, Any]):
    """Read-only view of a record with its relevance score under ``_score``.

    Every other attribute is read through to the wrapped record, so filters,
    sort specifications and cursors treat it like the record itself.
    """

    __slots__ = ("record", "score")

    def __init__(self, record: Any, score: float) -> None:
        self.record = record
        self.score = score

    def __getitem__(self, key: str) -> Any:
        if key == SCORE_FIELD:
            return self.score
        value = get_value(self.record, key)
        if value is MISSING:
            raise KeyError(key)
        return value

    def __iter__(self) -> Iterator[str]:
        yield SCORE_FIELD
        if isinstance(self.record, Mapping):
            yield from (k for k in self.record if k != SCORE_FIELD)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"ScoredRecord(score={self.score!r}, record={self.record!r})"


@dataclass(frozen=True)
class RelevanceScorer:
    """Scores records against a free-text query.

    Attributes:
        fields: Field names or tuples of names (composite fields).
    """

    fields: tuple[SearchField, ...]
    exact_weight: float = 100.0
    substring_weight: float = 40.0
    prefix_weight: float = 20.0

    def __post_init__(self) -> None:
        if not self.fields:
            msg = "RelevanceScorer requires at least one search field"
            raise ValueError(msg)
        object.__setattr__(
            self,
            "fields",
            tuple(f if isinstance(f, str) else tuple(f) for f in self.fields),
        )

    @classmethod
    def from_settings(
        cls,
        fields: Sequence[SearchField],
        settings: SearchSettings | None = None,
    ) -> RelevanceScorer:
        settings = settings or get_search_settings()
        return cls(
            tuple(fields),
            exact_weight=settings.exact_match_weight,
            substring_weight=settings.substring_match_weight,
            prefix_weight=settings.prefix_match_weight,
        )

    def score(self, record: Any, query: str) -> float:
        term = query.strip().casefold()
        if not term:
            return 1.0
        total = 0.0
        for spec in self.fields:
            components = (spec,) if isinstance(spec, str) else spec
            parts = [
                str(value)
                for name in components
                if not is_null(value := get_value(record, name))
            ]
            if not parts:
                continue
            text = " ".join(parts).casefold()
            if text == term:
                total += self.exact_weight
            elif term in text:
                total += self.substring_weight
            if len(components) > 1:
                total += self.prefix_weight * sum(
                    1 for part in parts if part.casefold().startswith(term)
                )
        return total


def relevance_sort(identifier_field: str = "id") -> SortSpec:
    """Score descending, identifier ascending."""
    return SortSpec((SortField(SCORE_FIELD, SortDirection.DESC),), tiebreaker=identifier_field)


def search(
    records: Iterable[Any],
    query: str,
    fields: Sequence[SearchField] | RelevanceScorer,
    *,
    filter: FilterExpression | None = None,
    sort: SortSpec | None = None,
    request: PageRequest | None = None,
    settings: PaginationSettings | None = None,
    search_settings: SearchSettings | None = None,
    strict: bool | None = None,
    schema_fields: Collection[str] | None = None,
) -> PageResult:
    """Score, filter and paginate ``records`` for ``query``.

    Args:
        records: Record collection; snapshotted before use.
        query: Free-text query; blank matches everything with score 1.
        fields: Search fields, or a configured scorer.
        filter: Optional filter applied before scoring.
        sort: Explicit ordering; None ranks by relevance.
        request: Page request; defaults to the first cursor page.
        schema_fields: Known record schema for unknown-field detection.

    Returns:
        PageResult whose items are ``ScoredRecord`` views.
    """
    settings = settings or get_pagination_settings()
    search_settings = search_settings or get_search_settings()
    scorer = (
        fields
        if isinstance(fields, RelevanceScorer)
        else RelevanceScorer.from_settings(fields, search_settings)
    )
    strict = settings.strict_filters if strict is None else strict

    engine = FilterEngine(strict=strict, fields=schema_fields)
    scored = [
        ScoredRecord(record, score)
        for record in engine.apply(tuple(records), filter)
        if (score := scorer.score(record, query)) > 0
    ]
    logger.debug("Search scored records", extra={"query": query, "matched": len(scored)})

    if sort is None or not sort.fields:
        sort = relevance_sort(settings.identifier_field)
    if request is None:
        request = CursorRequest(page_size=search_settings.default_page_size)
    return paginate(scored, None, sort, request, settings=settings)


__all__ = [
    "SCORE_FIELD",
    "RelevanceScorer",
    "ScoredRecord",
    "SearchField",
    "relevance_sort",
    "search",
]
