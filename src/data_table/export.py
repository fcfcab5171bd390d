# This file turns table rows into CSV or XLSX downloads.
# It exists so every admin table exports the same way: current page, or the whole filtered
# result set fetched sequentially in fixed chunks of 100 rows.
# Files are only produced after every chunk arrived; a failure never leaves a partial artifact.

from __future__ import annotations

import io
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable, Iterator, Literal, Mapping, Protocol, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter

from src.data_table.case_utils import DEFAULT_CASE_CONFIG, CaseFormatConfig
from src.data_table.models import PageRequest, PageResult, Row

LOGGER = logging.getLogger("data_table")

EXPORT_CHUNK_SIZE = 100
ExportFormat = Literal["csv", "xlsx"]
ExportMode = Literal["current_page", "all_pages"]

MEDIA_TYPES: dict[str, str] = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

TransformFunction = Callable[[Row], Mapping[str, Any]]
ChunkFetcher = Callable[[PageRequest], PageResult]


class BulkFetcher(Protocol):
    """Fetches the whole filtered result set from export params; stops once `should_continue` is false."""

    def __call__(
        self, params: dict[str, str], *, should_continue: Callable[[], bool] | None = None
    ) -> Sequence[Row]: ...


class ExportError(RuntimeError):
    """Raised when an export cannot be produced; no file is written."""


class ExportCancelled(ExportError):
    """Raised when the caller stops a full-dataset export between chunks."""


@dataclass(frozen=True)
class ExportDescriptor:
    """How one entity's rows map onto export columns.

    `column_mapping` maps row fields to header labels; its order is the column order.
    `column_widths` are character widths aligned with that order (XLSX only).
    `transform_function` returns a mapping keyed by label (or by field); cells it leaves
    out are exported empty.
    """

    entity_name: str
    column_mapping: Mapping[str, str]
    column_widths: Sequence[int] = ()
    transform_function: TransformFunction | None = None
    case_config: CaseFormatConfig = field(default=DEFAULT_CASE_CONFIG)

    @property
    def labels(self) -> list[str]:
        return list(self.column_mapping.values())

    @property
    def fields(self) -> list[str]:
        return list(self.column_mapping.keys())


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    content: bytes
    media_type: str
    row_count: int

    def write_to(self, directory: str | Path) -> Path:
        """Write atomically: the target only appears once the whole file is on disk."""

        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / self.filename
        fd, temp_name = tempfile.mkstemp(dir=target_dir, prefix=".export-", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(self.content)
            os.replace(temp_name, target)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
        return target


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(item) for item in value)
    if isinstance(value, dict):
        return str(value)
    return value


def transform_rows(rows: Sequence[Row], descriptor: ExportDescriptor) -> pd.DataFrame:
    records: list[dict[str, Any]] = []
    for row in rows:
        transformed = descriptor.transform_function(row) if descriptor.transform_function else row
        record: dict[str, Any] = {}
        for field_name, label in descriptor.column_mapping.items():
            if label in transformed:
                value = transformed[label]
            else:
                value = transformed.get(field_name)
            record[label] = _cell(value)
        records.append(record)
    return pd.DataFrame.from_records(records, columns=descriptor.labels)


def render_csv(frame: pd.DataFrame) -> bytes:
    return frame.to_csv(index=False, sep=",", lineterminator="\n").encode("utf-8")


def render_xlsx(frame: pd.DataFrame, *, sheet_name: str, column_widths: Sequence[int] = ()) -> bytes:
    buffer = io.BytesIO()
    safe_sheet_name = (sheet_name or "export")[:31]
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name=safe_sheet_name)
        worksheet = writer.sheets[safe_sheet_name]
        for index, width in enumerate(column_widths[: len(frame.columns)], start=1):
            worksheet.column_dimensions[get_column_letter(index)].width = width
    return buffer.getvalue()


def export_filename(entity_name: str, export_format: ExportFormat, *, now: datetime | None = None) -> str:
    timestamp = (now or datetime.now(tz=UTC)).strftime("%Y%m%d-%H%M%S")
    return f"{entity_name}-export-{timestamp}.{export_format}"


def iter_export_chunks(
    fetch_chunk: ChunkFetcher,
    request: PageRequest,
    *,
    chunk_size: int = EXPORT_CHUNK_SIZE,
    should_continue: Callable[[], bool] | None = None,
) -> Iterator[list[Row]]:
    """Yield the filtered result set chunk by chunk, one request at a time.

    Each call restarts from page 1 with the request's search, sort and filters.
    Stops when the server reports no next page or returns an empty chunk.
    """

    page = 1
    while True:
        if should_continue is not None and not should_continue():
            raise ExportCancelled("Export was cancelled before all rows were fetched")
        chunk_request = request.with_changes(page=page, page_size=chunk_size)
        result = fetch_chunk(chunk_request)
        if not result.data:
            return
        LOGGER.debug("Export chunk page=%s rows=%s", page, len(result.data))
        yield list(result.data)
        if not result.pagination.has_next_page:
            return
        page += 1


def collect_all_rows(
    fetch_chunk: ChunkFetcher,
    request: PageRequest,
    *,
    chunk_size: int = EXPORT_CHUNK_SIZE,
    should_continue: Callable[[], bool] | None = None,
) -> list[Row]:
    rows: list[Row] = []
    for chunk in iter_export_chunks(
        fetch_chunk, request, chunk_size=chunk_size, should_continue=should_continue
    ):
        rows.extend(chunk)
    return rows


class ExportEngine:
    def __init__(
        self,
        descriptor: ExportDescriptor,
        *,
        fetch_chunk: ChunkFetcher | None = None,
        bulk_fetch: BulkFetcher | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.fetch_chunk = fetch_chunk
        self.bulk_fetch = bulk_fetch
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    @property
    def supports_all_pages(self) -> bool:
        return self.bulk_fetch is not None or self.fetch_chunk is not None

    def build_artifact(self, rows: Sequence[Row], export_format: ExportFormat) -> ExportArtifact:
        if export_format not in MEDIA_TYPES:
            raise ExportError(f"Unsupported export format '{export_format}'")
        try:
            frame = transform_rows(rows, self.descriptor)
            if export_format == "csv":
                content = render_csv(frame)
            else:
                content = render_xlsx(
                    frame,
                    sheet_name=self.descriptor.entity_name,
                    column_widths=self.descriptor.column_widths,
                )
        except Exception as exc:
            raise ExportError(f"Could not render {export_format} export: {exc}") from exc
        return ExportArtifact(
            filename=export_filename(self.descriptor.entity_name, export_format, now=self._clock()),
            content=content,
            media_type=MEDIA_TYPES[export_format],
            row_count=len(rows),
        )

    def export_current_page(self, rows: Sequence[Row], export_format: ExportFormat) -> ExportArtifact:
        return self.build_artifact(rows, export_format)

    def export_all_pages(
        self,
        request: PageRequest,
        export_format: ExportFormat,
        *,
        should_continue: Callable[[], bool] | None = None,
    ) -> ExportArtifact:
        try:
            if should_continue is not None and not should_continue():
                raise ExportCancelled("Export was cancelled before it started")
            if self.bulk_fetch is not None:
                rows = list(
                    self.bulk_fetch(request.export_params(), should_continue=should_continue)
                )
            elif self.fetch_chunk is not None:
                rows = collect_all_rows(
                    self.fetch_chunk, request, should_continue=should_continue
                )
            else:
                raise ExportError("This table has no data source for a full export")
        except ExportError:
            raise
        except Exception as exc:
            raise ExportError(f"Failed to fetch all {self.descriptor.entity_name} for export") from exc
        LOGGER.info(
            "Exporting %s rows of %s as %s", len(rows), self.descriptor.entity_name, export_format
        )
        return self.build_artifact(rows, export_format)
