# This file wires the votes list into the generic data table.
# It exists so the votes screen declares its vote-type and contest filters next to its columns.
# Votes use a plain page function, so the table shell supplies caching and stale-response handling.
# The votes endpoint names its date bounds startDate/endDate, hence the parameter aliases.

from __future__ import annotations

from functools import partial
from typing import Any, Sequence

from src.admin_tables.api_client import AdminApiClient
from src.admin_tables.formatting import format_currency, format_timestamp
from src.data_table.case_utils import CaseFormatConfig
from src.data_table.export import ExportDescriptor
from src.data_table.fetching import ImperativeFetch
from src.data_table.models import PageRequest, PageResult, Row
from src.data_table.table import DEFAULT_PAGE_SIZE_OPTIONS, ColumnDef, DataTable, TableConfig
from src.data_table.url_state import FilterParam, StatePort, TableStateDefaults

VOTES_PATH = "/api/v1/admin/votes"
CASE_CONFIG = CaseFormatConfig(url_format="camelCase", api_format="camelCase")
DATE_ALIASES = {"fromDate": "startDate", "toDate": "endDate"}
TYPE_FILTER = FilterParam(key="type", choices=("FREE", "PAID"), default="all", label="Vote type")
CONTEST_FILTER = FilterParam(key="contestId", default="", label="Contest")


def _vote_type_label(value: Any) -> str:
    return "Paid Vote" if value == "PAID" else "Free Vote"


COLUMNS = [
    ColumnDef(id="id", header="ID", hideable=False, sortable=False),
    ColumnDef(id="voterName", header="Voter", accessor="voter.name", sortable=False),
    ColumnDef(id="voteeName", header="Votee", accessor="votee.name", sortable=False),
    ColumnDef(id="contestName", header="Contest", accessor="contest.name", sortable=False),
    ColumnDef(id="type", header="Type", cell=lambda value, _: _vote_type_label(value)),
    ColumnDef(id="count", header="Votes"),
    ColumnDef(id="createdAt", header="Vote Date", cell=lambda value, _: format_timestamp(value)),
]


def transform_vote(row: Row) -> dict[str, Any]:
    voter = row.get("voter") or {}
    votee = row.get("votee") or {}
    contest = row.get("contest") or {}
    payment = row.get("payment")
    return {
        "ID": row.get("id"),
        "Voter Name": voter.get("name"),
        "Voter Username": voter.get("username"),
        "Votee Name": votee.get("name"),
        "Votee Username": votee.get("username"),
        "Contest Name": contest.get("name"),
        "Vote Type": _vote_type_label(row.get("type")),
        "Vote Count": row.get("count"),
        "Payment Amount": format_currency(payment.get("amount")) if payment else "N/A",
        "Payment Status": payment.get("status") if payment else "N/A",
        "Comment": row.get("comment") or "",
        "Vote Date": format_timestamp(row.get("createdAt")),
    }


EXPORT_DESCRIPTOR = ExportDescriptor(
    entity_name="votes",
    column_mapping={
        "id": "ID",
        "voterName": "Voter Name",
        "voterUsername": "Voter Username",
        "voteeName": "Votee Name",
        "voteeUsername": "Votee Username",
        "contestName": "Contest Name",
        "type": "Vote Type",
        "count": "Vote Count",
        "paymentAmount": "Payment Amount",
        "paymentStatus": "Payment Status",
        "comment": "Comment",
        "createdAt": "Vote Date",
    },
    column_widths=(10, 20, 20, 20, 20, 25, 15, 12, 15, 15, 30, 20),
    transform_function=transform_vote,
    case_config=CASE_CONFIG,
)

TABLE_CONFIG = TableConfig(
    enable_row_selection=False,
    enable_click_row_select=False,
    enable_keyboard_navigation=True,
    enable_search=True,
    enable_date_filter=True,
    enable_column_visibility=True,
    enable_url_state=True,
    enable_export=True,
    size="sm",
    column_resizing_table_id="votes-list-table",
    search_placeholder="Search votes",
)


def fetch_votes_page(client: AdminApiClient, request: PageRequest) -> PageResult:
    return client.get_page(VOTES_PATH, request, case_config=CASE_CONFIG, aliases=DATE_ALIASES)


def build_votes_table(
    client: AdminApiClient,
    *,
    state_port: StatePort | None = None,
    preference_store: Any | None = None,
    default_page_size: int = 10,
    page_size_options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS,
    cache_ttl_seconds: float = 90,
) -> DataTable:
    return DataTable(
        columns=COLUMNS,
        fetch=ImperativeFetch(fetch=partial(fetch_votes_page, client)),
        id_field="id",
        config=TABLE_CONFIG,
        export_descriptor=EXPORT_DESCRIPTOR,
        state_port=state_port,
        preference_store=preference_store,
        defaults=TableStateDefaults(page_size=default_page_size, sort_by="createdAt", sort_order="desc"),
        filters=(TYPE_FILTER, CONTEST_FILTER),
        page_size_options=page_size_options,
        fetch_ttl_seconds=cache_ttl_seconds,
    )
