# This file wires one contest's participant list into the generic data table.
# It exists so moderators can search, filter by approval and bulk-select entries of a single contest.
# The contest id comes from the builder or from the `contestId` URL param and is sent as a path segment.

from __future__ import annotations

from functools import partial
from typing import Any, Sequence

from src.admin_tables.api_client import AdminApiClient
from src.admin_tables.formatting import format_count, format_flag, format_timestamp
from src.admin_tables.queries import CachedPageQuery
from src.data_table.case_utils import CaseFormatConfig
from src.data_table.export import ExportDescriptor
from src.data_table.models import PageRequest, PageResult, PaginationInfo, Row
from src.data_table.table import ColumnDef, DataTable, TableConfig
from src.data_table.url_state import FilterParam, StatePort, TableStateDefaults

PARTICIPANTS_PATH = "/api/v1/contest/{contest_id}/participants"
CASE_CONFIG = CaseFormatConfig(url_format="camelCase", api_format="camelCase")
STATUS_FILTER = FilterParam(key="status", choices=("approved", "pending"), default="all", label="Approval")
CONTEST_FILTER = FilterParam(key="contestId", default="", label="Contest")
DEFAULT_PAGE_SIZE = 15
PAGE_SIZE_OPTIONS = (15, 30, 50, 100)


def _approval_label(value: Any) -> str:
    return format_flag(value, true_label="Approved", false_label="Pending")


def total_votes(row: Row) -> int:
    return int(row.get("totalFreeVotes") or 0) + int(row.get("totalPaidVotes") or 0)


COLUMNS = [
    ColumnDef(id="id", header="ID", hideable=False, sortable=False, width=90),
    ColumnDef(id="name", header="Participant", accessor="profile.user.name", sortable=False, width=180),
    ColumnDef(id="username", header="Username", accessor="profile.user.username", sortable=False),
    ColumnDef(
        id="isApproved",
        header="Status",
        sortable=False,
        cell=lambda value, _: _approval_label(value),
    ),
    ColumnDef(id="totalFreeVotes", header="Free Votes", sortable=False),
    ColumnDef(id="totalPaidVotes", header="Paid Votes", sortable=False),
    ColumnDef(
        id="totalVotes",
        header="Total Votes",
        sortable=False,
        cell=lambda _, row: format_count(total_votes(row)),
    ),
    ColumnDef(
        id="createdAt",
        header="Joined",
        sortable=False,
        cell=lambda value, _: format_timestamp(value),
    ),
]


def transform_participant(row: Row) -> dict[str, Any]:
    profile = row.get("profile") or {}
    user = profile.get("user") or {}
    cover = row.get("coverImage") or {}
    return {
        "ID": row.get("id"),
        "Name": user.get("name") or user.get("username") or "Unknown User",
        "Username": user.get("username") or "unknown",
        "Status": _approval_label(row.get("isApproved")),
        "Free Votes": row.get("totalFreeVotes") or 0,
        "Paid Votes": row.get("totalPaidVotes") or 0,
        "Total Votes": total_votes(row),
        "Cover Image": cover.get("url") or "",
        "Joined Date": format_timestamp(row.get("createdAt")),
    }


EXPORT_DESCRIPTOR = ExportDescriptor(
    entity_name="contest-participants",
    column_mapping={
        "id": "ID",
        "name": "Name",
        "username": "Username",
        "isApproved": "Status",
        "totalFreeVotes": "Free Votes",
        "totalPaidVotes": "Paid Votes",
        "totalVotes": "Total Votes",
        "coverImage": "Cover Image",
        "createdAt": "Joined Date",
    },
    column_widths=(10, 22, 20, 12, 12, 12, 12, 40, 20),
    transform_function=transform_participant,
    case_config=CASE_CONFIG,
)

TABLE_CONFIG = TableConfig(
    enable_row_selection=True,
    enable_click_row_select=False,
    enable_keyboard_navigation=True,
    enable_search=True,
    enable_date_filter=False,
    enable_column_visibility=True,
    enable_url_state=True,
    enable_export=True,
    size="sm",
    column_resizing_table_id="contest-participants-table",
    search_placeholder="Search participants",
)


def fetch_participants_page(
    client: AdminApiClient, request: PageRequest, *, contest_id: str | None = None
) -> PageResult:
    filters = request.filters
    contest = contest_id or filters.pop(CONTEST_FILTER.key, "")
    filters.pop(CONTEST_FILTER.key, None)
    if not contest:
        # nothing to list until a contest is chosen
        return PageResult(
            data=[],
            pagination=PaginationInfo.from_counts(page=request.page, limit=request.page_size, total=0),
        )
    scoped = request.with_changes(extra_filters=filters)
    # the participants endpoint expects an explicit status, "all" included
    extra = None if STATUS_FILTER.key in filters else {STATUS_FILTER.key: STATUS_FILTER.default}
    return client.get_page(
        PARTICIPANTS_PATH.format(contest_id=contest),
        scoped,
        case_config=CASE_CONFIG,
        extra_params=extra,
    )


def build_participants_table(
    client: AdminApiClient,
    *,
    contest_id: str | None = None,
    state_port: StatePort | None = None,
    preference_store: Any | None = None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    page_size_options: Sequence[int] = PAGE_SIZE_OPTIONS,
    cache_ttl_seconds: float = 90,
) -> DataTable:
    fetch_page = partial(fetch_participants_page, client, contest_id=contest_id)
    query = CachedPageQuery("contest-participants", fetch_page, ttl_seconds=cache_ttl_seconds)
    filters = (STATUS_FILTER,) if contest_id else (STATUS_FILTER, CONTEST_FILTER)
    return DataTable(
        columns=COLUMNS,
        fetch=query.as_strategy(),
        chunk_fetch=fetch_page,
        id_field="id",
        config=TABLE_CONFIG,
        export_descriptor=EXPORT_DESCRIPTOR,
        state_port=state_port,
        preference_store=preference_store,
        defaults=TableStateDefaults(page_size=default_page_size),
        filters=filters,
        page_size_options=page_size_options,
    )
