# This file holds fakes shared by the data table tests.
# It exists so clocks and paged data sources behave deterministically without a network.

from __future__ import annotations

from typing import Any

from src.data_table.models import PageRequest, PageResult, PaginationInfo


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_rows(count: int, *, start: int = 1) -> list[dict[str, Any]]:
    return [{"id": index, "name": f"user-{index}"} for index in range(start, start + count)]


class PagedSource:
    """In-memory list endpoint that records every request it serves."""

    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self.rows = rows
        self.requests: list[PageRequest] = []
        self.fail_with: Exception | None = None

    def __call__(self, request: PageRequest) -> PageResult:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        matching = [row for row in self.rows if request.search in row.get("name", "")]
        offset = (request.page - 1) * request.page_size
        chunk = matching[offset : offset + request.page_size]
        pagination = PaginationInfo.from_counts(
            page=request.page, limit=request.page_size, total=len(matching)
        )
        return PageResult(data=chunk, pagination=pagination)
