# This test file validates current-page and full-dataset exports in CSV and XLSX.
# It exists so chunked fetching terminates correctly and files match the export descriptor.
# The XLSX checks read the workbook back with openpyxl to confirm headers and column widths.

from __future__ import annotations

import io
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from openpyxl import load_workbook

from src.data_table.export import (
    EXPORT_CHUNK_SIZE,
    ExportCancelled,
    ExportDescriptor,
    ExportEngine,
    ExportError,
    collect_all_rows,
    export_filename,
    iter_export_chunks,
    transform_rows,
)
from src.data_table.models import PageRequest, PageResult, PaginationInfo
from tests.data_table.support import PagedSource, make_rows

DESCRIPTOR = ExportDescriptor(
    entity_name="users",
    column_mapping={"id": "ID", "name": "Name", "email": "Email"},
    column_widths=(8, 24, 30),
)
FIXED_NOW = datetime(2026, 3, 1, 12, 30, 5, tzinfo=UTC)


def _engine(**kwargs: Any) -> ExportEngine:
    return ExportEngine(DESCRIPTOR, clock=lambda: FIXED_NOW, **kwargs)


def test_chunk_size_is_one_hundred() -> None:
    assert EXPORT_CHUNK_SIZE == 100


def test_full_export_of_250_rows_issues_three_chunk_requests() -> None:
    source = PagedSource(make_rows(250))
    rows = collect_all_rows(source, PageRequest(page=4, page_size=10, search="user"))

    assert len(rows) == 250
    assert [request.page for request in source.requests] == [1, 2, 3]
    assert {request.page_size for request in source.requests} == {100}
    assert {request.search for request in source.requests} == {"user"}


def test_empty_chunk_terminates_despite_has_next_page() -> None:
    calls: list[int] = []

    def inconsistent(request: PageRequest) -> PageResult:
        calls.append(request.page)
        rows = make_rows(100) if request.page == 1 else []
        pagination = PaginationInfo(
            page=request.page,
            limit=100,
            total=1000,
            total_pages=10,
            has_next_page=True,
            has_previous_page=request.page > 1,
            next_page=request.page + 1,
            previous_page=None,
        )
        return PageResult(data=rows, pagination=pagination)

    rows = collect_all_rows(inconsistent, PageRequest())
    assert len(rows) == 100
    assert calls == [1, 2]


def test_chunk_iterator_is_lazy_and_restartable() -> None:
    source = PagedSource(make_rows(150))
    chunks = iter_export_chunks(source, PageRequest())
    assert source.requests == []
    assert len(next(chunks)) == 100
    assert len(source.requests) == 1

    again = list(iter_export_chunks(source, PageRequest()))
    assert [len(chunk) for chunk in again] == [100, 50]


def test_cancelled_bulk_export_fetches_nothing() -> None:
    calls: list[dict[str, str]] = []

    def bulk(params: dict[str, str], *, should_continue: Any = None) -> list[dict[str, Any]]:
        calls.append(params)
        return make_rows(5)

    with pytest.raises(ExportCancelled):
        _engine(bulk_fetch=bulk).export_all_pages(PageRequest(), "csv", should_continue=lambda: False)
    assert calls == []


def test_cancellation_is_checked_before_each_request() -> None:
    source = PagedSource(make_rows(300))
    allowed = iter([True, True, False])
    with pytest.raises(ExportCancelled):
        collect_all_rows(source, PageRequest(), should_continue=lambda: next(allowed))
    assert len(source.requests) == 2


def test_transform_output_missing_a_mapped_column_renders_empty() -> None:
    descriptor = ExportDescriptor(
        entity_name="users",
        column_mapping=DESCRIPTOR.column_mapping,
        transform_function=lambda row: {"ID": row["id"], "Name": row["name"].upper()},
    )
    frame = transform_rows([{"id": 1, "name": "ada"}], descriptor)
    assert list(frame.columns) == ["ID", "Name", "Email"]
    assert frame.iloc[0].tolist() == [1, "ADA", ""]


def test_transform_may_key_output_by_field() -> None:
    descriptor = ExportDescriptor(
        entity_name="users",
        column_mapping={"id": "ID", "tags": "Tags"},
        transform_function=lambda row: {"id": row["id"], "tags": ["a", "b"]},
    )
    frame = transform_rows([{"id": 7}], descriptor)
    assert frame.iloc[0].tolist() == [7, "a, b"]


def test_current_page_csv_export() -> None:
    artifact = _engine().export_current_page(
        [{"id": 1, "name": "Ada, Countess", "email": None}], "csv"
    )
    assert artifact.filename == "users-export-20260301-123005.csv"
    assert artifact.media_type == "text/csv"
    assert artifact.row_count == 1
    assert artifact.content.decode("utf-8") == 'ID,Name,Email\n1,"Ada, Countess",\n'


def test_xlsx_export_has_header_and_widths() -> None:
    artifact = _engine().export_current_page(make_rows(3), "xlsx")
    workbook = load_workbook(io.BytesIO(artifact.content))
    sheet = workbook["users"]
    assert [cell.value for cell in sheet[1]] == ["ID", "Name", "Email"]
    assert sheet.max_row == 4
    assert sheet.column_dimensions["A"].width == 8
    assert sheet.column_dimensions["C"].width == 30


def test_all_pages_prefers_bulk_fetch() -> None:
    received: list[dict[str, str]] = []

    def bulk(params: dict[str, str], *, should_continue: Any = None) -> list[dict[str, Any]]:
        received.append(params)
        return make_rows(5)

    source = PagedSource(make_rows(50))
    artifact = _engine(bulk_fetch=bulk, fetch_chunk=source).export_all_pages(
        PageRequest(search="ada", extra_filters={"status": "PAID"}), "csv"
    )
    assert artifact.row_count == 5
    assert received[0]["search"] == "ada"
    assert received[0]["status"] == "PAID"
    assert source.requests == []


def test_fetch_failure_produces_no_artifact() -> None:
    source = PagedSource(make_rows(50))
    source.fail_with = ConnectionError("api down")
    with pytest.raises(ExportError, match="Failed to fetch all users for export"):
        _engine(fetch_chunk=source).export_all_pages(PageRequest(), "csv")


def test_unsupported_format_is_rejected() -> None:
    with pytest.raises(ExportError, match="Unsupported export format"):
        _engine().export_current_page([], "pdf")  # type: ignore[arg-type]


def test_all_pages_without_source_is_an_error() -> None:
    engine = _engine()
    assert engine.supports_all_pages is False
    with pytest.raises(ExportError):
        engine.export_all_pages(PageRequest(), "csv")


def test_export_filename_uses_utc_timestamp() -> None:
    assert export_filename("votes", "xlsx", now=FIXED_NOW) == "votes-export-20260301-123005.xlsx"


def test_artifact_write_is_atomic(tmp_path: Path) -> None:
    artifact = _engine().export_current_page(make_rows(2), "csv")
    target = artifact.write_to(tmp_path / "exports")
    assert target.read_bytes() == artifact.content
    assert [path.name for path in target.parent.iterdir()] == [artifact.filename]
