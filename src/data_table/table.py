# This file is the table shell that composes URL state, fetching, selection, search and export.
# It exists so each admin screen only supplies columns, a fetch source and an export descriptor.
# Every config flag gates one sub-component: disabled pieces are never constructed.
# The shell owns no domain knowledge and no rendering; hosts draw the TableView it returns.

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Literal, Mapping, Sequence

import pandas as pd

from src.data_table.case_utils import DEFAULT_CASE_CONFIG, CaseFormatConfig
from src.data_table.debounce import SearchDebouncer
from src.data_table.export import (
    BulkFetcher,
    ChunkFetcher,
    ExportArtifact,
    ExportCancelled,
    ExportDescriptor,
    ExportEngine,
    ExportError,
    ExportFormat,
    ExportMode,
)
from src.data_table.fetching import (
    FetchController,
    FetchStrategy,
    ImperativeFetch,
    QueryState,
    as_fetch_strategy,
    run_fetch_strategy,
)
from src.data_table.models import DateRange, PageRequest, PaginationInfo, Row, RowId, SortOrder
from src.data_table.preferences import ColumnPreferences, InMemoryPreferenceStore
from src.data_table.selection import HeaderCheckState, SelectionSummary, SelectionTracker
from src.data_table.url_state import (
    FilterParam,
    InMemoryStatePort,
    StatePort,
    TableStateDefaults,
    TableUrlState,
)

LOGGER = logging.getLogger("data_table")

TableSize = Literal["xs", "sm", "default", "lg"]
ROW_HEIGHTS: dict[str, int] = {"xs": 28, "sm": 32, "default": 36, "lg": 44}
DEFAULT_PAGE_SIZE_OPTIONS = (10, 20, 30, 40, 50, 100)
MIN_COLUMN_WIDTH = 40


class FeatureDisabledError(RuntimeError):
    """Raised when an operation targets a feature the table config turned off."""


@dataclass(frozen=True)
class TableConfig:
    enable_row_selection: bool = True
    enable_click_row_select: bool = False
    enable_keyboard_navigation: bool = False
    enable_search: bool = True
    enable_date_filter: bool = True
    enable_column_visibility: bool = True
    enable_url_state: bool = True
    enable_export: bool = True
    size: TableSize = "default"
    column_resizing_table_id: str | None = None
    search_placeholder: str = "Search..."

    def __post_init__(self) -> None:
        if self.size not in ROW_HEIGHTS:
            supported = ", ".join(ROW_HEIGHTS)
            raise ValueError(f"Unsupported table size '{self.size}'. Supported sizes: {supported}")


def _resolve(row: Row, path: str) -> Any:
    value: Any = row
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
        if value is None:
            return None
    return value


@dataclass(frozen=True)
class ColumnDef:
    """One displayed column. `accessor` may be a dotted path into nested rows."""

    id: str
    header: str
    accessor: str | None = None
    sortable: bool = True
    hideable: bool = True
    width: int | None = None
    cell: Callable[[Any, Row], Any] | None = None

    @property
    def field(self) -> str:
        return self.accessor or self.id

    def value(self, row: Row) -> Any:
        raw = _resolve(row, self.field)
        if self.cell is None:
            return raw
        return self.cell(raw, row)


@dataclass(frozen=True)
class TableView:
    request: PageRequest
    rows: list[Row]
    row_ids: list[RowId]
    columns: list[ColumnDef]
    pagination: PaginationInfo | None
    is_initial_loading: bool
    is_refreshing: bool
    is_searching: bool
    error: str | None
    selection: SelectionSummary | None
    header_check_state: HeaderCheckState | None
    focused_row_index: int | None
    size: TableSize

    @property
    def is_empty(self) -> bool:
        return not self.rows and not self.is_initial_loading

    def to_frame(self) -> pd.DataFrame:
        headers = [column.header for column in self.columns]
        records = [[column.value(row) for column in self.columns] for row in self.rows]
        return pd.DataFrame(records, columns=headers)


class DataTable:
    def __init__(
        self,
        *,
        columns: Sequence[ColumnDef],
        fetch: FetchStrategy | Callable[..., Any],
        id_field: str = "id",
        config: TableConfig | None = None,
        export_descriptor: ExportDescriptor | None = None,
        chunk_fetch: ChunkFetcher | None = None,
        bulk_fetch: BulkFetcher | None = None,
        state_port: StatePort | None = None,
        preference_store: Any | None = None,
        defaults: TableStateDefaults | None = None,
        filters: Sequence[FilterParam] = (),
        page_size_options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS,
        case_config: CaseFormatConfig | None = None,
        fetch_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or TableConfig()
        self.columns = list(columns)
        self.id_field = id_field
        self.page_size_options = tuple(page_size_options)
        self.strategy = as_fetch_strategy(fetch)

        self._controller: FetchController | None = None
        if isinstance(self.strategy, ImperativeFetch):
            self._controller = FetchController(
                self.strategy.fetch, ttl_seconds=fetch_ttl_seconds, clock=clock
            )

        if case_config is None:
            case_config = export_descriptor.case_config if export_descriptor else DEFAULT_CASE_CONFIG
        port: StatePort = InMemoryStatePort()
        if self.config.enable_url_state and state_port is not None:
            port = state_port
        self.state = TableUrlState(
            port, defaults=defaults, filters=filters, case_config=case_config
        )

        self.selection: SelectionTracker | None = None
        if self.config.enable_row_selection:
            self.selection = SelectionTracker(id_field=id_field)

        self.debouncer: SearchDebouncer | None = None
        if self.config.enable_search:
            self.debouncer = SearchDebouncer(
                on_commit=self._commit_search, committed=self.state.search, clock=clock
            )

        self.exporter: ExportEngine | None = None
        if self.config.enable_export:
            if export_descriptor is None:
                raise ValueError("enable_export requires an export descriptor")
            if chunk_fetch is None and isinstance(self.strategy, ImperativeFetch):
                chunk_fetch = self.strategy.fetch
            self.exporter = ExportEngine(
                export_descriptor, fetch_chunk=chunk_fetch, bulk_fetch=bulk_fetch
            )

        self._preference_store = preference_store or InMemoryPreferenceStore()
        table_id = self.config.column_resizing_table_id
        self._preferences = (
            self._preference_store.load(table_id) if table_id else ColumnPreferences()
        )

        self.export_error: str | None = None
        self._view: TableView | None = None
        self._last_query: QueryState | None = None
        self._last_request: PageRequest | None = None
        self._settled_search = self.current_request().search
        self._focus_index: int | None = None

    @property
    def row_height(self) -> int:
        return ROW_HEIGHTS[self.config.size]

    @property
    def search_placeholder(self) -> str:
        return self.config.search_placeholder

    @property
    def view(self) -> TableView | None:
        return self._view

    def current_request(self) -> PageRequest:
        request = self.state.snapshot()
        changes: dict[str, Any] = {}
        if not self.config.enable_search and request.search:
            changes["search"] = ""
        if not self.config.enable_date_filter and request.date_range is not None:
            changes["date_range"] = None
        return request.with_changes(**changes) if changes else request

    def load(self) -> TableView:
        if self.debouncer is not None and not self.debouncer.is_pending:
            if self.debouncer.committed_value != self.state.search:
                self.debouncer.sync(self.state.search)

        request = self.current_request()
        if request != self._last_request:
            self._focus_index = None
            self._last_request = request

        try:
            query = run_fetch_strategy(self.strategy, request, self._controller)
        except Exception as exc:
            LOGGER.exception("Fetch hook raised for page=%s", request.page)
            previous = self._last_query.data if self._last_query else None
            query = QueryState(data=previous, error=exc, request=request)
        self._last_query = query

        pending = query.is_loading or query.is_refetching
        if query.data is not None and not pending and query.error is None:
            self._settled_search = request.search

        rows = list(query.data.data) if query.data is not None else []
        row_ids = [_resolve(row, self.id_field) for row in rows]
        if self._focus_index is not None and self._focus_index >= len(rows):
            self._focus_index = len(rows) - 1 if rows else None

        selection_summary = None
        header_state = None
        if self.selection is not None:
            selection_summary = self.selection.summary(rows)
            header_state = self.selection.header_state(row_ids)

        error = None
        if query.error is not None:
            error = str(query.error) or type(query.error).__name__

        self._view = TableView(
            request=request,
            rows=rows,
            row_ids=row_ids,
            columns=self.visible_columns(),
            pagination=query.data.pagination if query.data is not None else None,
            is_initial_loading=query.is_loading and query.data is None,
            is_refreshing=pending and query.data is not None,
            is_searching=pending and request.search != self._settled_search,
            error=error,
            selection=selection_summary,
            header_check_state=header_state,
            focused_row_index=self._focus_index,
            size=self.config.size,
        )
        return self._view

    def refresh(self) -> TableView:
        """Manual retry: drop the cached page and fetch it again."""

        if self._controller is not None:
            self._controller.refetch()
        elif self._last_query is not None:
            self._last_query.refetch()
        return self.load()

    def go_to_page(self, page: int) -> None:
        target = max(1, int(page))
        pagination = self._view.pagination if self._view else None
        if pagination is not None and pagination.total_pages > 0:
            target = min(target, pagination.total_pages)
        self.state.set_page(target)

    def next_page(self) -> None:
        pagination = self._view.pagination if self._view else None
        if pagination is not None and pagination.has_next_page:
            self.state.set_page(pagination.page + 1)

    def previous_page(self) -> None:
        pagination = self._view.pagination if self._view else None
        if pagination is not None and pagination.has_previous_page:
            self.state.set_page(pagination.page - 1)

    def set_page_size(self, page_size: int) -> None:
        self.state.set_page_size(int(page_size))

    def _column(self, column_id: str) -> ColumnDef:
        for column in self.columns:
            if column.id == column_id:
                return column
        raise ValueError(f"Unknown column '{column_id}'")

    def toggle_sort(self, column_id: str) -> None:
        column = self._column(column_id)
        if not column.sortable:
            raise ValueError(f"Column '{column_id}' is not sortable")
        if self.state.sort_by == column.id:
            order: SortOrder = "desc" if self.state.sort_order == "asc" else "asc"
        else:
            order = "asc"
        self.state.set_sort(column.id, order)

    def set_sort(self, column_id: str | None, sort_order: SortOrder = "asc") -> None:
        if column_id is not None and not self._column(column_id).sortable:
            raise ValueError(f"Column '{column_id}' is not sortable")
        self.state.set_sort(column_id, sort_order)

    def set_filter(self, key: str, value: str) -> None:
        self.state.set_filter(key, value)

    def set_date_range(self, date_range: DateRange | None) -> None:
        if not self.config.enable_date_filter:
            raise FeatureDisabledError("Date filtering is disabled for this table")
        self.state.set_date_range(date_range)

    def clear_date_range(self) -> None:
        self.set_date_range(None)

    def _require_debouncer(self) -> SearchDebouncer:
        if self.debouncer is None:
            raise FeatureDisabledError("Search is disabled for this table")
        return self.debouncer

    def type_search(self, text: str) -> None:
        self._require_debouncer().type(text)

    def clear_search(self) -> None:
        self._require_debouncer().type("")

    def poll_search(self) -> bool:
        if self.debouncer is None:
            return False
        return self.debouncer.poll()

    def _commit_search(self, value: str) -> None:
        self.state.set_search(value)

    def _require_selection(self) -> SelectionTracker:
        if self.selection is None:
            raise FeatureDisabledError("Row selection is disabled for this table")
        return self.selection

    def _page_ids(self) -> list[RowId]:
        return list(self._view.row_ids) if self._view else []

    def select_row(self, row_id: RowId) -> None:
        self._require_selection().select(row_id)

    def deselect_row(self, row_id: RowId) -> None:
        self._require_selection().deselect(row_id)

    def toggle_row(self, row_id: RowId) -> bool:
        return self._require_selection().toggle(row_id)

    def select_all_on_page(self) -> int:
        return self._require_selection().select_all_on_page(self._page_ids())

    def toggle_all_on_page(self) -> None:
        self._require_selection().toggle_all_on_page(self._page_ids())

    def selection_summary(self) -> SelectionSummary | None:
        if self.selection is None:
            return None
        rows = self._view.rows if self._view else []
        return self.selection.summary(rows)

    def reset_selection(self) -> None:
        if self.selection is not None:
            self.selection.clear()

    def click_row(self, row_id: RowId) -> bool:
        """Row click toggles selection only when click-select is enabled."""

        if not self.config.enable_click_row_select or self.selection is None:
            return False
        self.selection.toggle(row_id)
        return True

    def move_focus(self, delta: int) -> int | None:
        if not self.config.enable_keyboard_navigation:
            raise FeatureDisabledError("Keyboard navigation is disabled for this table")
        row_count = len(self._view.rows) if self._view else 0
        if row_count == 0:
            self._focus_index = None
            return None
        if self._focus_index is None:
            self._focus_index = 0 if delta >= 0 else row_count - 1
        else:
            self._focus_index = max(0, min(row_count - 1, self._focus_index + delta))
        return self._focus_index

    def select_focused(self) -> bool:
        if not self.config.enable_keyboard_navigation:
            raise FeatureDisabledError("Keyboard navigation is disabled for this table")
        selection = self._require_selection()
        if self._focus_index is None or self._view is None:
            return False
        return selection.toggle(self._view.row_ids[self._focus_index])

    def hidden_columns(self) -> tuple[str, ...]:
        if not self.config.enable_column_visibility:
            return ()
        if self.config.enable_url_state and self.state.has_column_visibility:
            return self.state.hidden_columns
        return tuple(self._preferences.hidden) or self.state.hidden_columns

    def visible_columns(self) -> list[ColumnDef]:
        hidden = set(self.hidden_columns())
        return [column for column in self.columns if not column.hideable or column.id not in hidden]

    def set_column_visibility(self, column_id: str, visible: bool) -> None:
        if not self.config.enable_column_visibility:
            raise FeatureDisabledError("Column visibility is disabled for this table")
        column = self._column(column_id)
        if not column.hideable:
            raise ValueError(f"Column '{column_id}' cannot be hidden")
        hidden = [value for value in self.hidden_columns() if value != column_id]
        if not visible:
            hidden.append(column_id)
        self.state.set_hidden_columns(hidden)
        self._preferences.hidden = hidden
        self._save_preferences()

    def column_width(self, column_id: str) -> int | None:
        return self._preferences.widths.get(column_id, self._column(column_id).width)

    def resize_column(self, column_id: str, width: int) -> None:
        self._column(column_id)
        self._preferences.widths[column_id] = max(MIN_COLUMN_WIDTH, int(width))
        self._save_preferences()

    def _save_preferences(self) -> None:
        table_id = self.config.column_resizing_table_id
        if table_id:
            self._preference_store.save(table_id, self._preferences)

    def _require_exporter(self) -> ExportEngine:
        if self.exporter is None:
            raise FeatureDisabledError("Export is disabled for this table")
        return self.exporter

    def export(
        self,
        mode: ExportMode,
        export_format: ExportFormat,
        *,
        should_continue: Callable[[], bool] | None = None,
    ) -> ExportArtifact | None:
        """Produce an export or record a dismissible error; the table stays usable either way."""

        exporter = self._require_exporter()
        self.export_error = None
        try:
            if mode == "current_page":
                return exporter.export_current_page(self._current_page_rows(), export_format)
            if mode == "all_pages":
                return exporter.export_all_pages(
                    self.current_request(), export_format, should_continue=should_continue
                )
            raise ValueError(f"Unsupported export mode '{mode}'")
        except ExportCancelled:
            LOGGER.info("Export of %s cancelled", exporter.descriptor.entity_name)
            return None
        except ExportError as exc:
            LOGGER.exception("Export of %s failed", exporter.descriptor.entity_name)
            self.export_error = str(exc)
            return None

    def _current_page_rows(self) -> list[Row]:
        view = self._view
        if view is None or view.request != self.current_request():
            view = self.load()
        if view.error:
            raise ExportError(f"Current page did not load: {view.error}")
        if view.is_initial_loading or view.is_refreshing:
            raise ExportError("Current page is still loading; export it once it has refreshed")
        return view.rows

    def dismiss_export_error(self) -> None:
        self.export_error = None
