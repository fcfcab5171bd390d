# This file wires the model ranks list into the generic data table.
# It exists so the ranks screen only declares columns, export layout and its fetch source.
# The ranks endpoint supports search and paging only, so date filtering is switched off here.

from __future__ import annotations

from functools import partial
from typing import Any, Sequence

from src.admin_tables.api_client import AdminApiClient
from src.admin_tables.formatting import format_count, format_timestamp
from src.data_table.case_utils import CaseFormatConfig
from src.data_table.export import ExportDescriptor
from src.data_table.models import PageRequest, PageResult, Row
from src.data_table.table import DEFAULT_PAGE_SIZE_OPTIONS, ColumnDef, DataTable, TableConfig
from src.data_table.url_state import StatePort, TableStateDefaults

RANKS_PATH = "/api/v1/ranks"
CASE_CONFIG = CaseFormatConfig(url_format="camelCase", api_format="camelCase")


def format_rank(value: Any) -> str:
    if value is None or value == "N/A":
        return "N/A"
    return f"#{value}"


def total_votes(row: Row) -> int:
    stats = row.get("stats") or {}
    return int(stats.get("freeVotes") or 0) + int(stats.get("paidVotes") or 0)


COLUMNS = [
    ColumnDef(id="rank", header="Rank", cell=lambda value, _: format_rank(value)),
    ColumnDef(id="profileName", header="Model", accessor="profile.name", hideable=False, sortable=False),
    ColumnDef(id="profileUsername", header="Username", accessor="profile.username", sortable=False),
    ColumnDef(
        id="totalVotes",
        header="Total Votes",
        accessor="stats",
        sortable=False,
        cell=lambda _, row: format_count(total_votes(row)),
    ),
    ColumnDef(id="freeVotes", header="Free", accessor="stats.freeVotes", sortable=False),
    ColumnDef(id="paidVotes", header="Paid", accessor="stats.paidVotes", sortable=False),
    ColumnDef(id="updatedAt", header="Updated", cell=lambda value, _: format_timestamp(value)),
]


def transform_rank(row: Row) -> dict[str, Any]:
    """Keyed by field name; the export engine relabels these with the column mapping."""

    profile = row.get("profile") or {}
    stats = row.get("stats") or {}
    return {
        "id": row.get("id"),
        "rank": format_rank(row.get("rank")),
        "profileName": profile.get("name"),
        "profileUsername": profile.get("username"),
        "profileBio": profile.get("bio"),
        "totalVotes": total_votes(row),
        "freeVotes": stats.get("freeVotes"),
        "paidVotes": stats.get("paidVotes"),
        "createdAt": format_timestamp(row.get("createdAt")),
        "updatedAt": format_timestamp(row.get("updatedAt")),
    }


EXPORT_DESCRIPTOR = ExportDescriptor(
    entity_name="model-ranks",
    column_mapping={
        "id": "ID",
        "rank": "Rank",
        "profileName": "Model Name",
        "profileUsername": "Username",
        "profileBio": "Bio",
        "totalVotes": "Total Votes",
        "freeVotes": "Free Votes",
        "paidVotes": "Paid Votes",
        "createdAt": "Created At",
        "updatedAt": "Updated At",
    },
    column_widths=(10, 8, 20, 20, 30, 12, 12, 12, 20, 20),
    transform_function=transform_rank,
    case_config=CASE_CONFIG,
)

TABLE_CONFIG = TableConfig(
    enable_row_selection=False,
    enable_click_row_select=False,
    enable_keyboard_navigation=False,
    enable_search=True,
    enable_date_filter=False,
    enable_column_visibility=True,
    enable_url_state=True,
    enable_export=True,
    size="default",
    column_resizing_table_id="ranks-list-table",
    search_placeholder="Search models",
)


def fetch_ranks_page(client: AdminApiClient, request: PageRequest) -> PageResult:
    return client.get_page(RANKS_PATH, request, case_config=CASE_CONFIG)


def build_ranks_table(
    client: AdminApiClient,
    *,
    state_port: StatePort | None = None,
    preference_store: Any | None = None,
    default_page_size: int = 10,
    page_size_options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS,
    cache_ttl_seconds: float = 90,
) -> DataTable:
    # a bare function: the shell wraps it as an imperative fetch
    return DataTable(
        columns=COLUMNS,
        fetch=partial(fetch_ranks_page, client),
        id_field="id",
        config=TABLE_CONFIG,
        export_descriptor=EXPORT_DESCRIPTOR,
        state_port=state_port,
        preference_store=preference_store,
        defaults=TableStateDefaults(page_size=default_page_size),
        page_size_options=page_size_options,
        fetch_ttl_seconds=cache_ttl_seconds,
    )
