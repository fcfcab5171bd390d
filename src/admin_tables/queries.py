# This file builds reactive page queries for entity tables that want hook-style fetching.
# It exists so those tables get TTL caching and keep-previous-data behavior per request identity.
# A query is a callable flagged `is_query_hook`, so the table shell treats it as a subscription.

from __future__ import annotations

import time
from datetime import date
from typing import Callable

from src.data_table.export import BulkFetcher, collect_all_rows
from src.data_table.fetching import FetchController, PageFetcher, QueryState, ReactiveQuery
from src.data_table.models import DateRange, PageRequest, Row

_EXPORT_BASE_KEYS = {"search", "from_date", "to_date", "sort_by", "sort_order"}


class CachedPageQuery:
    is_query_hook = True

    def __init__(
        self,
        name: str,
        fetch_page: PageFetcher,
        *,
        ttl_seconds: float = 90,
        max_entries: int = 64,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._controller = FetchController(
            fetch_page, ttl_seconds=ttl_seconds, max_entries=max_entries, clock=clock
        )

    def __call__(self, request: PageRequest) -> QueryState:
        return self._controller.load(request)

    def invalidate(self) -> None:
        self._controller.invalidate()

    def as_strategy(self) -> ReactiveQuery:
        return ReactiveQuery(hook=self)


def make_bulk_fetch(fetch_page: PageFetcher) -> BulkFetcher:
    """Bulk fetch for exports that pages through `fetch_page` in fixed chunks."""

    def fetch_all(
        params: dict[str, str], *, should_continue: Callable[[], bool] | None = None
    ) -> list[Row]:
        date_range = None
        if params.get("from_date") and params.get("to_date"):
            date_range = DateRange(
                from_date=date.fromisoformat(params["from_date"]),
                to_date=date.fromisoformat(params["to_date"]),
            )
        filters = {
            key: value for key, value in params.items() if key not in _EXPORT_BASE_KEYS and value
        }
        request = PageRequest(
            search=params.get("search", ""),
            sort_by=params.get("sort_by") or None,
            sort_order=params.get("sort_order") or "desc",  # type: ignore[arg-type]
            date_range=date_range,
            extra_filters=filters,
        )
        return collect_all_rows(fetch_page, request, should_continue=should_continue)

    return fetch_all
