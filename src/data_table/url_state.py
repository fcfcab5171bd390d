# This file binds table state to query-string parameters through an injected state port.
# It exists so a table view is shareable, bookmarkable and survives reloads without touching a router.
# Reads prefer the URL and fall back to caller defaults; writes keep the URL canonical.
# Any change to search, sort, filters, date range or page size resets the page to 1.

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Iterator, Mapping, Protocol, Sequence
from urllib.parse import urlencode

from src.data_table.case_utils import DEFAULT_CASE_CONFIG, CaseFormatConfig, convert_case
from src.data_table.models import VALID_SORT_ORDERS, DateRange, PageRequest, SortOrder

LOGGER = logging.getLogger("data_table")

FIXED_URL_KEYS = {"from_date", "to_date"}
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class StatePort(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str | None) -> None: ...


class InMemoryStatePort:
    """Dict-backed port used by tests and by tables that opt out of URL state."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self.params: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def get(self, key: str) -> str | None:
        return self.params.get(key)

    def set(self, key: str, value: str | None) -> None:
        self.write_count += 1
        if value is None:
            self.params.pop(key, None)
        else:
            self.params[key] = value

    def query_string(self) -> str:
        return urlencode(self.params)


def format_date_for_url(value: date | None) -> str:
    if value is None:
        return ""
    return value.isoformat()


def validate_date_string(value: str | None) -> bool:
    if not value or not _DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_date_from_url(value: str | None) -> date | None:
    if not validate_date_string(value):
        return None
    return date.fromisoformat(str(value))


@dataclass(frozen=True)
class TableStateDefaults:
    page: int = 1
    page_size: int = 10
    search: str = ""
    sort_by: str | None = None
    sort_order: SortOrder = "desc"
    date_range: DateRange | None = None
    hidden_columns: tuple[str, ...] = ()


@dataclass(frozen=True)
class FilterParam:
    """A domain filter bound to its own query parameter, e.g. `status=COMPLETED`.

    `default` is the "all" sentinel: it is never written to the URL and never sent to
    the API. An empty `choices` tuple means free text.
    """

    key: str
    choices: tuple[str, ...] = ()
    default: str = "all"
    label: str | None = None

    def is_valid(self, value: str) -> bool:
        return not self.choices or value in self.choices or value == self.default


class TableUrlState:
    def __init__(
        self,
        port: StatePort,
        *,
        defaults: TableStateDefaults | None = None,
        filters: Sequence[FilterParam] = (),
        case_config: CaseFormatConfig = DEFAULT_CASE_CONFIG,
    ) -> None:
        self.port = port
        self.defaults = defaults or TableStateDefaults()
        self.case_config = case_config
        self.filter_params = {param.key: param for param in filters}
        self._pending: dict[str, str | None] | None = None

    def key(self, name: str) -> str:
        if name in FIXED_URL_KEYS or name in self.filter_params:
            return name
        return convert_case(name, self.case_config.url_format)

    def _read(self, name: str) -> str | None:
        key = self.key(name)
        if self._pending is not None and key in self._pending:
            return self._pending[key]
        return self.port.get(key)

    def _write(self, name: str, value: str | None) -> None:
        key = self.key(name)
        if self._pending is not None:
            self._pending[key] = value
        else:
            self.port.set(key, value)

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Group several writes into one flush; nested batches join the outer one."""

        if self._pending is not None:
            yield
            return
        self._pending = {}
        try:
            yield
        except Exception:
            self._pending = None
            raise
        pending, self._pending = self._pending, None
        for key, value in pending.items():
            self.port.set(key, value)

    def _read_int(self, name: str, default: int, *, minimum: int) -> int:
        raw = self._read(name)
        if raw is None:
            return default
        cleaned = raw.strip().strip('"')
        try:
            value = int(cleaned)
        except ValueError:
            LOGGER.warning("Ignoring non-numeric %s=%r in URL state", name, raw)
            return default
        if value < minimum:
            LOGGER.warning("Ignoring out-of-range %s=%r in URL state", name, raw)
            return default
        return value

    def _write_int(self, name: str, value: int, default: int) -> None:
        self._write(name, None if value == default else str(value))

    def _reset_page(self) -> None:
        self._write_int("page", 1, self.defaults.page)

    @property
    def page(self) -> int:
        return self._read_int("page", self.defaults.page, minimum=1)

    @property
    def page_size(self) -> int:
        return self._read_int("page_size", self.defaults.page_size, minimum=1)

    @property
    def search(self) -> str:
        raw = self._read("search")
        return self.defaults.search if raw is None else raw

    @property
    def sort_by(self) -> str | None:
        # an empty sortBy is an explicit "unsorted" that overrides a default sort
        raw = self._read("sort_by")
        if raw is None:
            return self.defaults.sort_by
        return raw or None

    @property
    def sort_order(self) -> SortOrder:
        raw = self._read("sort_order")
        if raw is None:
            return self.defaults.sort_order
        if raw not in VALID_SORT_ORDERS:
            LOGGER.warning("Ignoring unknown sort order %r in URL state", raw)
            return self.defaults.sort_order
        return raw  # type: ignore[return-value]

    @property
    def date_range(self) -> DateRange | None:
        raw_from = self._read("from_date")
        raw_to = self._read("to_date")
        if raw_from is None and raw_to is None:
            return self.defaults.date_range
        from_date = parse_date_from_url(raw_from)
        to_date = parse_date_from_url(raw_to)
        if from_date is None or to_date is None or from_date > to_date:
            LOGGER.warning("Ignoring invalid date range from=%r to=%r in URL state", raw_from, raw_to)
            return self.defaults.date_range
        return DateRange(from_date=from_date, to_date=to_date)

    def filter_value(self, key: str) -> str:
        param = self._filter_param(key)
        raw = self._read(key)
        if raw is None:
            return param.default
        if not param.is_valid(raw):
            LOGGER.warning("Ignoring unknown %s=%r in URL state", key, raw)
            return param.default
        return raw

    @property
    def filters(self) -> dict[str, str]:
        """Active domain filters; sentinel values are left out."""

        active: dict[str, str] = {}
        for key, param in self.filter_params.items():
            value = self.filter_value(key)
            if value != param.default and value != "":
                active[key] = value
        return active

    @property
    def has_column_visibility(self) -> bool:
        return self._read("column_visibility") is not None

    @property
    def hidden_columns(self) -> tuple[str, ...]:
        raw = self._read("column_visibility")
        if raw is None:
            return self.defaults.hidden_columns
        return tuple(part for part in (item.strip() for item in raw.split(",")) if part)

    def set_page(self, page: int) -> None:
        if page < 1:
            raise ValueError("page must be >= 1")
        self._write_int("page", page, self.defaults.page)

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if page_size == self.page_size:
            return
        with self.batch():
            self._write_int("page_size", page_size, self.defaults.page_size)
            self._reset_page()

    def set_search(self, search: str) -> None:
        if search == self.search:
            return
        with self.batch():
            self._write("search", None if search == self.defaults.search else search)
            self._reset_page()

    def set_sort(self, sort_by: str | None, sort_order: SortOrder = "asc") -> None:
        if sort_order not in VALID_SORT_ORDERS:
            raise ValueError("sort order must be 'asc' or 'desc'")
        if sort_by == self.sort_by and (sort_by is None or sort_order == self.sort_order):
            return
        with self.batch():
            if sort_by is None:
                self._write("sort_by", None if self.defaults.sort_by is None else "")
                self._write("sort_order", None)
            elif sort_by == self.defaults.sort_by and sort_order == self.defaults.sort_order:
                self._write("sort_by", None)
                self._write("sort_order", None)
            else:
                self._write("sort_by", sort_by)
                self._write("sort_order", sort_order)
            self._reset_page()

    def set_date_range(self, date_range: DateRange | None) -> None:
        if date_range == self.date_range:
            return
        with self.batch():
            if date_range is None or date_range == self.defaults.date_range:
                self._write("from_date", None)
                self._write("to_date", None)
            else:
                self._write("from_date", format_date_for_url(date_range.from_date))
                self._write("to_date", format_date_for_url(date_range.to_date))
            self._reset_page()

    def set_filter(self, key: str, value: str) -> None:
        param = self._filter_param(key)
        if not param.is_valid(value):
            supported = ", ".join((param.default, *param.choices))
            raise ValueError(f"Unsupported value {value!r} for filter '{key}'. Supported: {supported}")
        if value == self.filter_value(key):
            return
        with self.batch():
            self._write(key, None if value in (param.default, "") else value)
            self._reset_page()

    def set_hidden_columns(self, column_ids: Sequence[str]) -> None:
        hidden = tuple(column_ids)
        if hidden == self.defaults.hidden_columns:
            self._write("column_visibility", None)
        else:
            self._write("column_visibility", ",".join(hidden))

    def snapshot(self) -> PageRequest:
        return PageRequest(
            page=self.page,
            page_size=self.page_size,
            search=self.search,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
            date_range=self.date_range,
            extra_filters=self.filters,
        )

    def _filter_param(self, key: str) -> FilterParam:
        param = self.filter_params.get(key)
        if param is None:
            supported = ", ".join(sorted(self.filter_params)) or "none"
            raise ValueError(f"Unknown filter '{key}'. Supported filters: {supported}")
        return param
