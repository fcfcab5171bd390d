# This file tracks row selection by stable row id across pages, sorts and filters.
# It exists so bulk actions can target rows the user picked on several pages.
# Row position never matters: only equality of the caller-supplied id field decides membership.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Sequence

from src.data_table.models import Row, RowId

HeaderCheckState = Literal["checked", "indeterminate", "unchecked"]


@dataclass(frozen=True)
class SelectionSummary:
    selected_rows: list[Row]
    all_selected_ids: list[RowId]
    total_selected_count: int


class SelectionTracker:
    def __init__(self, *, id_field: str = "id") -> None:
        self.id_field = id_field
        # dict keys double as an insertion-ordered set
        self._selected: dict[RowId, None] = {}

    def __len__(self) -> int:
        return len(self._selected)

    def row_id(self, row: Row) -> RowId:
        try:
            return row[self.id_field]
        except KeyError as exc:
            raise KeyError(f"Row is missing id field '{self.id_field}'") from exc

    def is_selected(self, row_id: RowId) -> bool:
        return row_id in self._selected

    def select(self, row_id: RowId) -> None:
        self._selected.setdefault(row_id, None)

    def deselect(self, row_id: RowId) -> None:
        self._selected.pop(row_id, None)

    def toggle(self, row_id: RowId) -> bool:
        if row_id in self._selected:
            self.deselect(row_id)
            return False
        self.select(row_id)
        return True

    def select_all_on_page(self, page_ids: Iterable[RowId]) -> int:
        """Select every id on the page; returns how many were newly added."""

        added = 0
        for row_id in page_ids:
            if row_id not in self._selected:
                self._selected[row_id] = None
                added += 1
        return added

    def deselect_all_on_page(self, page_ids: Iterable[RowId]) -> int:
        removed = 0
        for row_id in page_ids:
            if row_id in self._selected:
                del self._selected[row_id]
                removed += 1
        return removed

    def toggle_all_on_page(self, page_ids: Sequence[RowId]) -> None:
        if self.header_state(page_ids) == "checked":
            self.deselect_all_on_page(page_ids)
        else:
            self.select_all_on_page(page_ids)

    def clear(self) -> None:
        self._selected.clear()

    def header_state(self, page_ids: Sequence[RowId]) -> HeaderCheckState:
        if not page_ids:
            return "unchecked"
        selected_on_page = sum(1 for row_id in page_ids if row_id in self._selected)
        if selected_on_page == 0:
            return "unchecked"
        if selected_on_page == len(page_ids):
            return "checked"
        return "indeterminate"

    def is_all_current_page_selected(self, page_ids: Sequence[RowId]) -> bool:
        return self.header_state(page_ids) == "checked"

    def summary(self, current_rows: Sequence[Row] = ()) -> SelectionSummary:
        selected_rows = [row for row in current_rows if self.row_id(row) in self._selected]
        return SelectionSummary(
            selected_rows=selected_rows,
            all_selected_ids=list(self._selected),
            total_selected_count=len(self._selected),
        )
