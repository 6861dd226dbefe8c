"""Unit tests for the pagination controller."""
from __future__ import annotations

import asyncio
import base64
import json
import logging
import threading

import pytest

from pagekit.core.exceptions import (
    MalformedCursorException,
    PageSizeOutOfRangeException,
    UnsupportedOperatorException,
    ValidationException,
)
from pagekit.core.pagination.controller import (
    CursorDirection,
    CursorRequest,
    OffsetRequest,
    PaginationMode,
    astream,
    paginate,
    resolve_page_size,
    stream,
)
from pagekit.core.pagination.cursor import CursorCodec
from pagekit.core.pagination.filters import And, Condition, FilterEngine, Or
from pagekit.core.pagination.ordering import SortSpec, ordered_sequence
from pagekit.core.settings import PaginationSettings

CONTROLLER_LOGGER = "pagekit.core.pagination.controller"
ACTIVE = Condition("status", "eq", "ACTIVE")


def ids(items):
    return [r["id"] for r in items]


def forward_pages(records, expr, spec, page_size, settings):
    """Follow end_cursor until the last page; returns the list of pages."""
    pages = []
    cursor = None
    while True:
        result = paginate(
            records, expr, spec, CursorRequest(cursor=cursor, page_size=page_size), settings=settings
        )
        pages.append(result)
        if not result.has_next:
            return pages
        cursor = result.end_cursor


# ──────────────────────────────────────────────────────────────
# Concrete scenarios (150 records)
# ──────────────────────────────────────────────────────────────


class TestScenarios:
    def test_first_cursor_page(self, records, settings):
        result = paginate(records, None, SortSpec.parse("id"), CursorRequest(page_size=10), settings=settings)

        assert ids(result.items) == [str(i) for i in range(1, 11)]
        assert result.has_next is True
        assert result.has_previous is False
        assert result.mode is PaginationMode.CURSOR
        assert CursorCodec.decode(result.end_cursor).values == ("10",)

    def test_second_cursor_page(self, records, settings):
        spec = SortSpec.parse("id")
        first = paginate(records, None, spec, CursorRequest(page_size=10), settings=settings)

        second = paginate(
            records, None, spec, CursorRequest(cursor=first.end_cursor, page_size=10), settings=settings
        )

        assert ids(second.items) == [str(i) for i in range(11, 21)]
        assert second.has_previous is True
        assert second.has_next is True

    def test_filtered_cursor_page(self, records, settings):
        result = paginate(records, ACTIVE, SortSpec(), CursorRequest(page_size=5), settings=settings)

        assert ids(result.items) == ["1", "4", "7", "10", "13"]

    def test_offset_mode_shifts_after_delete(self, records, settings):
        """Offset windows are recomputed each call; deleting id 5 shifts page 1 by one."""
        request = OffsetRequest(page_number=1, page_size=20)
        before = paginate(records, None, SortSpec(), request, settings=settings)

        remaining = [r for r in records if r["id"] != "5"]
        after = paginate(remaining, None, SortSpec(), request, settings=settings)

        assert ids(before.items) == [str(i) for i in range(1, 21)]
        assert "5" not in ids(after.items)
        assert ids(after.items)[-1] == "21"
        assert after.total_count == 149

    def test_malformed_cursor_is_a_client_error(self, records, settings):
        with pytest.raises(MalformedCursorException) as exc_info:
            paginate(
                records,
                None,
                SortSpec(),
                CursorRequest(cursor="!!!not-base-valid!!!", page_size=10),
                settings=settings,
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.type == "malformed-cursor"

    @pytest.mark.parametrize("raw", ["NaN", "sNaN", "Infinity"])
    def test_non_finite_decimal_cursor_is_a_client_error(self, records, settings, raw):
        payload = json.dumps({"v": 1, "k": [["x", raw], ["s", "5"]]}).encode()
        token = base64.urlsafe_b64encode(payload).decode().rstrip("=")

        with pytest.raises(MalformedCursorException) as exc_info:
            paginate(
                records,
                None,
                SortSpec.parse("age"),
                CursorRequest(cursor=token, page_size=10),
                settings=settings,
            )

        assert exc_info.value.extra["kind"] == "malformed"


# ──────────────────────────────────────────────────────────────
# Properties
# ──────────────────────────────────────────────────────────────


class TestProperties:
    @pytest.mark.parametrize(
        ("expr", "sort", "page_size"),
        [
            (None, "", 10),
            (ACTIVE, "-age,last_name", 7),
            (Or((Condition("age", "lt", 25), Condition("department", "eq", "Sales"))), "-created_at", 9),
            (None, "manager_id,-salary", 13),
            (Condition("age", "gt", 100), "age", 5),
        ],
    )
    def test_monotonic_windows(self, records, settings, expr, sort, page_size):
        """Concatenated forward pages equal the full filtered, ordered sequence."""
        spec = SortSpec.parse(sort)
        expected = ordered_sequence(FilterEngine().apply(records, expr), spec)

        pages = forward_pages(records, expr, spec, page_size, settings)
        collected = [r for page in pages for r in page.items]

        assert ids(collected) == ids(expected)
        assert len(set(ids(collected))) == len(collected)

    @pytest.mark.parametrize(("sort", "page_size"), [("", 10), ("-age,first_name", 7), ("status", 12)])
    def test_forward_backward_symmetry(self, records, settings, sort, page_size):
        spec = SortSpec.parse(sort)
        forward = [r for page in forward_pages(records, ACTIVE, spec, page_size, settings) for r in page.items]

        backward_pages = []
        cursor = None
        while True:
            result = paginate(
                records,
                ACTIVE,
                spec,
                CursorRequest(CursorDirection.BACKWARD, cursor, page_size),
                settings=settings,
            )
            backward_pages.insert(0, result.items)
            if not result.has_previous:
                break
            cursor = result.start_cursor
        backward = [r for items in backward_pages for r in items]

        assert ids(backward) == ids(forward)

    def test_boundary_page_size_is_clamped(self, records, settings):
        result = paginate(
            records,
            None,
            None,
            CursorRequest(page_size=settings.max_page_size + 1000),
            settings=settings,
        )

        assert len(result.items) == settings.max_page_size
        assert result.page_size == settings.max_page_size


# ──────────────────────────────────────────────────────────────
# Cursor mode
# ──────────────────────────────────────────────────────────────


class TestCursorMode:
    def test_deleted_cursor_target_resumes_at_successor(self, records, settings):
        first = paginate(records, None, None, CursorRequest(page_size=10), settings=settings)

        remaining = [r for r in records if r["id"] != "10"]
        second = paginate(
            remaining, None, None, CursorRequest(cursor=first.end_cursor, page_size=10), settings=settings
        )

        assert ids(second.items) == [str(i) for i in range(11, 21)]

    def test_insert_before_cursor_does_not_shift_window(self, records, settings):
        spec = SortSpec.parse("-created_at")
        first = paginate(records, None, spec, CursorRequest(page_size=10), settings=settings)
        newer = {**records[0], "id": "999", "created_at": records[0]["created_at"].replace(year=2030)}

        second = paginate(
            [newer, *records], None, spec, CursorRequest(cursor=first.end_cursor, page_size=10), settings=settings
        )

        assert ids(second.items) == [str(i) for i in range(11, 21)]

    def test_cursor_from_another_ordering_restarts(self, records, settings, caplog):
        by_id = paginate(records, None, SortSpec.parse("id"), CursorRequest(page_size=10), settings=settings)
        spec = SortSpec.parse("-age")

        with caplog.at_level(logging.WARNING, logger=CONTROLLER_LOGGER):
            result = paginate(
                records, None, spec, CursorRequest(cursor=by_id.end_cursor, page_size=10), settings=settings
            )

        expected = paginate(records, None, spec, CursorRequest(page_size=10), settings=settings)
        assert ids(result.items) == ids(expected.items)
        assert result.has_previous is False
        assert "does not match the active ordering" in caplog.text

    def test_cursor_with_wrong_arity_restarts(self, records, settings):
        token = CursorCodec.encode(("10",))

        result = paginate(
            records, None, SortSpec.parse("-age"), CursorRequest(cursor=token, page_size=5), settings=settings
        )

        assert result.has_previous is False
        assert result.items[0]["age"] == 59

    def test_unsigned_cursor_with_matching_shape_is_located(self, records, settings):
        token = CursorCodec.encode(("10",))

        result = paginate(records, None, None, CursorRequest(cursor=token, page_size=3), settings=settings)

        assert ids(result.items) == ["11", "12", "13"]

    def test_backward_without_cursor_returns_last_page(self, records, settings):
        result = paginate(
            records, None, None, CursorRequest(CursorDirection.BACKWARD, None, 10), settings=settings
        )

        assert ids(result.items) == [str(i) for i in range(141, 151)]
        assert result.has_next is False
        assert result.has_previous is True

    def test_backward_preserves_display_order(self, records, settings):
        cursor = CursorCodec.create_cursor(records[20], SortSpec())

        result = paginate(
            records, None, None, CursorRequest(CursorDirection.BACKWARD, cursor, 10), settings=settings
        )

        assert ids(result.items) == [str(i) for i in range(11, 21)]
        assert result.has_next is True
        assert result.has_previous is True

    def test_backward_near_start_returns_short_page(self, records, settings):
        cursor = CursorCodec.create_cursor(records[4], SortSpec())

        result = paginate(
            records, None, None, CursorRequest(CursorDirection.BACKWARD, cursor, 10), settings=settings
        )

        assert ids(result.items) == ["1", "2", "3", "4"]
        assert result.has_previous is False

    def test_last_forward_page(self, records, settings):
        cursor = CursorCodec.create_cursor(records[144], SortSpec())

        result = paginate(records, None, None, CursorRequest(cursor=cursor, page_size=10), settings=settings)

        assert ids(result.items) == ["146", "147", "148", "149", "150"]
        assert result.has_next is False

    def test_total_count_is_optional(self, records, settings):
        without = paginate(records, ACTIVE, None, CursorRequest(page_size=5), settings=settings)
        with_count = paginate(
            records, ACTIVE, None, CursorRequest(page_size=5, include_total_count=True), settings=settings
        )

        assert without.total_count is None
        assert with_count.total_count == 50

    def test_total_count_default_from_settings(self, records):
        settings = PaginationSettings(include_total_count=True)

        result = paginate(records, None, None, CursorRequest(page_size=5), settings=settings)

        assert result.total_count == 150

    def test_empty_result(self, records, settings):
        result = paginate(
            records, Condition("age", "gt", 1000), None, CursorRequest(page_size=5), settings=settings
        )

        assert result.items == []
        assert result.has_next is False
        assert result.start_cursor is None
        assert result.end_cursor is None

    def test_default_request_is_first_cursor_page(self, records, settings):
        result = paginate(records, settings=settings)

        assert result.mode is PaginationMode.CURSOR
        assert len(result.items) == settings.default_page_size
        assert result.items[0]["id"] == "1"

    def test_accepts_any_iterable(self, records, settings):
        result = paginate((r for r in records), ACTIVE, None, CursorRequest(page_size=3), settings=settings)

        assert ids(result.items) == ["1", "4", "7"]


# ──────────────────────────────────────────────────────────────
# Offset mode
# ──────────────────────────────────────────────────────────────


class TestOffsetMode:
    def test_metadata(self, records, settings):
        result = paginate(records, None, None, OffsetRequest(page_number=2, page_size=20), settings=settings)

        assert ids(result.items) == [str(i) for i in range(21, 41)]
        assert result.page == 2
        assert result.total_pages == 8
        assert result.total_count == 150
        assert result.has_next is True
        assert result.has_previous is True
        assert result.mode is PaginationMode.OFFSET

    def test_last_partial_page(self, records, settings):
        result = paginate(records, None, None, OffsetRequest(page_number=8, page_size=20), settings=settings)

        assert len(result.items) == 10
        assert result.has_next is False

    def test_page_beyond_end_is_empty(self, records, settings):
        result = paginate(records, None, None, OffsetRequest(page_number=50, page_size=20), settings=settings)

        assert result.items == []
        assert result.has_next is False
        assert result.has_previous is True

    def test_page_number_below_one_is_first_page(self, records, settings):
        result = paginate(records, None, None, OffsetRequest(page_number=0, page_size=5), settings=settings)

        assert result.page == 1
        assert ids(result.items) == ["1", "2", "3", "4", "5"]

    def test_total_count_can_be_skipped(self, records, settings):
        result = paginate(
            records, None, None, OffsetRequest(page_size=5, include_total_count=False), settings=settings
        )

        assert result.total_count is None
        assert result.total_pages is None
        assert result.has_next is True

    def test_filter_and_sort(self, records, settings):
        expr = And((ACTIVE, Condition("department", "in", ["Engineering", "Sales"])))

        result = paginate(records, expr, SortSpec.parse("-salary"), OffsetRequest(page_size=3), settings=settings)

        salaries = [r["salary"] for r in result.items]
        assert salaries == sorted(salaries, reverse=True)
        assert all(r["status"] == "ACTIVE" for r in result.items)


# ──────────────────────────────────────────────────────────────
# Page size policy and errors
# ──────────────────────────────────────────────────────────────


class TestPageSize:
    @pytest.mark.parametrize(("requested", "expected"), [(None, 20), (1, 1), (100, 100), (0, 1), (-5, 1), (101, 100)])
    def test_resolve(self, settings, requested, expected):
        assert resolve_page_size(requested, settings) == expected

    def test_clamp_is_logged(self, settings, caplog):
        with caplog.at_level(logging.WARNING, logger=CONTROLLER_LOGGER):
            resolve_page_size(5000, settings)

        assert "clamped" in caplog.text

    def test_rejects_when_clamping_disabled(self, records):
        settings = PaginationSettings(clamp_page_size=False)

        with pytest.raises(PageSizeOutOfRangeException) as exc_info:
            paginate(records, None, None, OffsetRequest(page_size=500), settings=settings)

        assert exc_info.value.extra == {"page_size": 500, "max_page_size": 100}

    def test_strict_filters_from_settings(self, records):
        settings = PaginationSettings(strict_filters=True)

        with pytest.raises(UnsupportedOperatorException):
            paginate(records, Condition("age", "contains", "3"), None, settings=settings)

    def test_strict_override(self, records, settings):
        result = paginate(records, Condition("age", "contains", "3"), None, settings=settings, strict=False)

        assert result.items == []

    def test_unknown_request_type(self, records, settings):
        with pytest.raises(TypeError):
            paginate(records, None, None, object(), settings=settings)  # type: ignore[arg-type]

    def test_records_are_not_mutated(self, records, settings):
        snapshot = [dict(r) for r in records]

        paginate(records, ACTIVE, SortSpec.parse("-age"), OffsetRequest(page_size=50), settings=settings)

        assert records == snapshot


# ──────────────────────────────────────────────────────────────
# Streaming
# ──────────────────────────────────────────────────────────────


class TestStream:
    def test_streams_everything_in_order(self, records, settings):
        streamed = list(stream(records, ACTIVE, SortSpec.parse("-age"), settings=settings))

        expected = ordered_sequence(FilterEngine().apply(records, ACTIVE), SortSpec.parse("-age"))
        assert ids(streamed) == ids(expected)

    def test_limit(self, records, settings):
        streamed = list(stream(records, None, None, limit=4, settings=settings))

        assert ids(streamed) == ["1", "2", "3", "4"]

    def test_negative_limit_is_rejected(self, records, settings):
        with pytest.raises(ValidationException) as exc_info:
            list(stream(records, None, None, limit=-1, settings=settings))

        assert exc_info.value.extra == {"limit": -1}

    @pytest.mark.asyncio
    async def test_async_negative_limit_is_rejected(self, records, settings):
        with pytest.raises(ValidationException):
            async for _ in astream(records, limit=-5, settings=settings):
                pass

    def test_cancellation_stops_between_records(self, records, settings):
        cancel = threading.Event()
        emitted = []

        for record in stream(records, None, None, cancel=cancel, settings=settings):
            emitted.append(record)
            if len(emitted) == 3:
                cancel.set()

        assert ids(emitted) == ["1", "2", "3"]

    def test_cancelled_before_start_emits_nothing(self, records, settings):
        cancel = threading.Event()
        cancel.set()

        assert list(stream(records, None, None, cancel=cancel, settings=settings)) == []

    @pytest.mark.asyncio
    async def test_async_stream_with_cancellation(self, records, settings):
        cancel = asyncio.Event()
        emitted = []

        async for record in astream(records, ACTIVE, None, cancel=cancel, settings=settings):
            emitted.append(record)
            if len(emitted) == 2:
                cancel.set()

        assert ids(emitted) == ["1", "4"]
