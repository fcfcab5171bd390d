# This file defines the value types exchanged between the table engine and its fetch plugins.
# It exists so page requests, pagination metadata and page results have one explicit shape.
# Payload parsing tolerates the camelCase and snake_case pagination keys the admin API returns.
# Every request snapshot is immutable and hashable so it can key caches directly.

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Hashable, Literal, Mapping

from src.data_table.case_utils import (
    DEFAULT_CASE_CONFIG,
    CaseFormatConfig,
    convert_keys,
    preprocess_search,
)

Row = Mapping[str, Any]
RowId = Hashable
SortOrder = Literal["asc", "desc"]
VALID_SORT_ORDERS = {"asc", "desc"}


def compute_total_pages(*, total_count: int, page_size: int) -> int:
    """Compute deterministic total page count."""

    if total_count <= 0:
        return 0
    return ((total_count - 1) // page_size) + 1


@dataclass(frozen=True)
class DateRange:
    from_date: date
    to_date: date

    def __post_init__(self) -> None:
        if self.from_date > self.to_date:
            raise ValueError("from_date must be on or before to_date")


@dataclass(frozen=True)
class PageRequest:
    """Immutable snapshot of everything that drives one server fetch.

    `extra_filters` accepts a mapping for convenience and is normalized to a sorted
    tuple of pairs so two requests with the same filters compare and hash equal.
    """

    page: int = 1
    page_size: int = 10
    search: str = ""
    sort_by: str | None = None
    sort_order: SortOrder = "desc"
    date_range: DateRange | None = None
    extra_filters: tuple[tuple[str, str], ...] = field(default=())

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.sort_order not in VALID_SORT_ORDERS:
            raise ValueError("sort order must be 'asc' or 'desc'")
        filters = self.extra_filters
        items = filters.items() if isinstance(filters, Mapping) else filters
        normalized = tuple(sorted((str(key), str(value)) for key, value in items))
        object.__setattr__(self, "extra_filters", normalized)

    @property
    def filters(self) -> dict[str, str]:
        return dict(self.extra_filters)

    def with_changes(self, **changes: Any) -> PageRequest:
        return replace(self, **changes)

    def to_api_params(
        self,
        case_config: CaseFormatConfig = DEFAULT_CASE_CONFIG,
        *,
        aliases: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Build query parameters for a list endpoint in the API's casing.

        Empty optional values are left as `None`, which `requests` drops from the URL.
        Domain filter keys are sent verbatim; `aliases` renames keys after casing.
        """

        params: dict[str, Any] = {
            "page": self.page,
            "limit": self.page_size,
            "search": preprocess_search(self.search) or None,
            "sort_by": self.sort_by,
            "sort_order": self.sort_order if self.sort_by else None,
            "from_date": self.date_range.from_date.isoformat() if self.date_range else None,
            "to_date": self.date_range.to_date.isoformat() if self.date_range else None,
        }
        params = convert_keys(params, case_config.api_format)
        params.update(self.filters)
        for source, target in (aliases or {}).items():
            if source in params:
                params[target] = params.pop(source)
        return params

    def export_params(self) -> dict[str, str]:
        """Parameters handed to a bulk-fetch function during full-dataset export."""

        params = {
            "search": preprocess_search(self.search),
            "from_date": self.date_range.from_date.isoformat() if self.date_range else "",
            "to_date": self.date_range.to_date.isoformat() if self.date_range else "",
            "sort_by": self.sort_by or "",
            "sort_order": self.sort_order,
        }
        params.update(self.filters)
        return params


def _pick(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return default


@dataclass(frozen=True)
class PaginationInfo:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool
    next_page: int | None
    previous_page: int | None

    @classmethod
    def from_counts(cls, *, page: int, limit: int, total: int) -> PaginationInfo:
        total_pages = compute_total_pages(total_count=total, page_size=limit)
        has_next = page < total_pages
        has_previous = page > 1
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=has_next,
            has_previous_page=has_previous,
            next_page=page + 1 if has_next else None,
            previous_page=page - 1 if has_previous else None,
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, page: int, limit: int) -> PaginationInfo:
        """Read server pagination metadata, trusting the server's totals and flags."""

        resolved_page = int(_pick(payload, "page", "currentPage", "current_page", default=page))
        resolved_limit = int(_pick(payload, "limit", "pageSize", "page_size", default=limit))
        total = int(
            _pick(payload, "total", "totalItems", "total_items", "totalCount", "total_count", default=0)
        )
        total_pages_raw = _pick(payload, "totalPages", "total_pages")
        total_pages = (
            int(total_pages_raw)
            if total_pages_raw is not None
            else compute_total_pages(total_count=total, page_size=max(resolved_limit, 1))
        )
        has_next = _pick(payload, "hasNextPage", "has_next_page")
        has_previous = _pick(payload, "hasPreviousPage", "has_previous_page")
        has_next = bool(has_next) if has_next is not None else resolved_page < total_pages
        has_previous = bool(has_previous) if has_previous is not None else resolved_page > 1

        next_page = _pick(payload, "nextPage", "next_page")
        previous_page = _pick(payload, "previousPage", "previous_page")
        return cls(
            page=resolved_page,
            limit=resolved_limit,
            total=total,
            total_pages=total_pages,
            has_next_page=has_next,
            has_previous_page=has_previous,
            next_page=int(next_page) if next_page is not None else (resolved_page + 1 if has_next else None),
            previous_page=(
                int(previous_page)
                if previous_page is not None
                else (resolved_page - 1 if has_previous else None)
            ),
        )


@dataclass(frozen=True)
class PageResult:
    data: list[Row]
    pagination: PaginationInfo

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, page: int, limit: int) -> PageResult:
        """Accept `{data, pagination}` or the `{success, data: {data, pagination}}` envelope."""

        body: Mapping[str, Any] = payload
        nested = payload.get("data")
        if isinstance(nested, Mapping):
            body = nested

        rows = body.get("data")
        if rows is None:
            rows = []
        if not isinstance(rows, list):
            raise ValueError(f"Expected a list of rows, got: {type(rows).__name__}")

        pagination_payload = body.get("pagination")
        if isinstance(pagination_payload, Mapping):
            pagination = PaginationInfo.from_payload(pagination_payload, page=page, limit=limit)
        else:
            pagination = PaginationInfo.from_counts(
                page=page,
                limit=limit,
                total=(page - 1) * limit + len(rows),
            )
        return cls(data=list(rows), pagination=pagination)

    @property
    def is_empty(self) -> bool:
        return not self.data
