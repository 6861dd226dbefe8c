"""Relevance search settings.

The weights are fixed constants of the scoring model:

    exact full-field match   100
    substring match           40
    prefix of a component     20

Environment variables use SEARCH_ prefix.
Example: SEARCH_EXACT_MATCH_WEIGHT=100
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchSettings(BaseSettings):
    """Relevance scoring configuration."""

    exact_match_weight: float = Field(
        default=100.0,
        gt=0,
        description="Score for a query equal to the whole field value",
    )
    substring_match_weight: float = Field(
        default=40.0,
        gt=0,
        description="Score for a query contained in the field value",
    )
    prefix_match_weight: float = Field(
        default=20.0,
        gt=0,
        description="Score for each component field starting with the query",
    )
    default_page_size: int = Field(
        default=20,
        ge=1,
        le=1000,
        description="Default page size for search results",
    )

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )
