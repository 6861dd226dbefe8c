"""Pagination settings for the paging engine.

This module provides the static configuration the embedding application
supplies to the engine: page size bounds, the clamping policy, the filter
evaluation policy and the identifier used as sort tiebreaker.

Environment variables use PAGINATION_ prefix.
Example: PAGINATION_MAX_PAGE_SIZE=100, PAGINATION_STRICT_FILTERS=true
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaginationSettings(BaseSettings):
    """Pagination configuration settings.

    Attributes:
        max_page_size: Maximum allowed items per page (hard limit).
        default_page_size: Page size used when a caller does not specify one.
        clamp_page_size: Clamp out-of-range page sizes instead of rejecting them.
        strict_filters: Raise on filter type mismatches instead of failing the leaf.
        identifier_field: Unique field appended to every sort as tiebreaker.
        include_total_count: Compute total_count in cursor mode by default.

    Example:
        settings = PaginationSettings()
        page_size = min(requested, settings.max_page_size)
    """

    max_page_size: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Maximum allowed page size (hard limit)",
    )
    default_page_size: int = Field(
        default=20,
        ge=1,
        le=10000,
        description="Default page size when none is requested",
    )
    clamp_page_size: bool = Field(
        default=True,
        description="Clamp out-of-range page sizes to the nearest bound",
    )
    strict_filters: bool = Field(
        default=False,
        description="Raise UnsupportedOperator on type mismatches instead of failing the predicate",
    )
    identifier_field: str = Field(
        default="id",
        min_length=1,
        description="Unique record field used as final sort tiebreaker",
    )
    include_total_count: bool = Field(
        default=False,
        description="Compute total_count for cursor pages when the caller does not say",
    )

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _default_within_max(self) -> PaginationSettings:
        if self.default_page_size > self.max_page_size:
            msg = "default_page_size cannot exceed max_page_size"
            raise ValueError(msg)
        return self
