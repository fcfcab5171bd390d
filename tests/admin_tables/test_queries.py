# This test file validates the cached reactive page query and the bulk export fetch.
# It exists so hook-style tables cache per request and full exports page through the API in chunks.

from __future__ import annotations

import pytest

from src.admin_tables.queries import CachedPageQuery, make_bulk_fetch
from src.data_table.export import ExportCancelled
from src.data_table.fetching import ReactiveQuery, as_fetch_strategy
from src.data_table.models import PageRequest
from tests.data_table.support import FakeClock, PagedSource, make_rows


def test_cached_query_is_a_reactive_hook() -> None:
    query = CachedPageQuery("users", PagedSource(make_rows(5)))
    assert isinstance(as_fetch_strategy(query), ReactiveQuery)
    assert query.as_strategy().hook is query


def test_cached_query_reuses_results_until_ttl() -> None:
    clock = FakeClock()
    source = PagedSource(make_rows(30))
    query = CachedPageQuery("users", source, ttl_seconds=60, clock=clock)

    first = query(PageRequest())
    query(PageRequest(page=2))
    query(PageRequest())
    assert first.data is not None and len(first.data.data) == 10
    assert len(source.requests) == 2

    clock.advance(61)
    query(PageRequest(page=2))
    assert len(source.requests) == 3


def test_invalidate_drops_cached_pages() -> None:
    source = PagedSource(make_rows(30))
    query = CachedPageQuery("users", source)
    query(PageRequest())
    query.invalidate()
    query(PageRequest(page=2))
    query(PageRequest())
    assert len(source.requests) == 3


def test_bulk_fetch_rebuilds_request_from_export_params() -> None:
    source = PagedSource(make_rows(230))
    bulk = make_bulk_fetch(source)
    request = PageRequest(
        page=5, search="user", sort_by="createdAt", extra_filters={"status": "PAID"}
    )
    params = request.export_params()

    rows = bulk(params)

    assert len(rows) == 230
    assert [request.page for request in source.requests] == [1, 2, 3]
    first = source.requests[0]
    assert first.page_size == 100
    assert first.search == "user"
    assert first.sort_by == "createdAt"
    assert first.filters == {"status": "PAID"}
    assert first.date_range is None


def test_bulk_fetch_stops_between_chunks_when_cancelled() -> None:
    source = PagedSource(make_rows(230))
    bulk = make_bulk_fetch(source)
    with pytest.raises(ExportCancelled):
        bulk(PageRequest().export_params(), should_continue=lambda: len(source.requests) < 1)
    assert [request.page for request in source.requests] == [1]
