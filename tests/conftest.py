"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: cache isolation and explicit settings instances
    - Record Fixtures: the 150-record synthetic collection
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from pagekit.core.settings import PaginationSettings, SearchSettings, clear_all_caches

BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)
STATUSES = ("ACTIVE", "INACTIVE", "PENDING")
FIRST_NAMES = ("John", "Jane", "Bob", "Alice", "Charlie")
LAST_NAMES = ("Doe", "Smith", "Johnson", "Williams", "Brown")
DEPARTMENTS = ("Engineering", "Sales", "Marketing", "Support")
RECORD_FIELDS = frozenset(
    {
        "id",
        "first_name",
        "last_name",
        "email",
        "age",
        "status",
        "created_at",
        "department",
        "salary",
        "manager_id",
    }
)


def make_records(count: int = 150) -> list[dict[str, Any]]:
    """Synthetic records with ids "1".."count" and cycling attributes."""
    return [
        {
            "id": str(i + 1),
            "first_name": FIRST_NAMES[i % 5],
            "last_name": LAST_NAMES[i % 5],
            "email": f"user{i + 1}@example.com",
            "age": 20 + (i % 40),
            "status": STATUSES[i % 3],
            "created_at": BASE_TIME - timedelta(days=i),
            "department": DEPARTMENTS[i % 4],
            "salary": 50000 + i * 1000,
            "manager_id": None if i % 10 == 0 else str((i // 10) * 10 + 1),
        }
        for i in range(count)
    ]


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep cached settings and PAGINATION_/SEARCH_ env vars from leaking between tests."""
    for name in (
        "PAGINATION_MAX_PAGE_SIZE",
        "PAGINATION_DEFAULT_PAGE_SIZE",
        "PAGINATION_CLAMP_PAGE_SIZE",
        "PAGINATION_STRICT_FILTERS",
        "PAGINATION_IDENTIFIER_FIELD",
        "PAGINATION_INCLUDE_TOTAL_COUNT",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_all_caches()
    yield
    clear_all_caches()


@pytest.fixture
def settings() -> PaginationSettings:
    """Default pagination settings (max page size 100, clamping on, lenient filters)."""
    return PaginationSettings()


@pytest.fixture
def search_settings() -> SearchSettings:
    return SearchSettings()


# ============================================================================
# Record Fixtures
# ============================================================================


@pytest.fixture
def records() -> list[dict[str, Any]]:
    """150 records, ids "1".."150", status cycling ACTIVE/INACTIVE/PENDING."""
    return make_records()


@pytest.fixture
def record_fields() -> frozenset[str]:
    return RECORD_FIELDS
