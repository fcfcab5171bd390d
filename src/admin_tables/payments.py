# This file wires the payments list into the generic data table.
# It exists so the payments screen only declares columns, a status filter and its export layout.
# Payment rows are nested (payer/model/contest), so columns read dotted paths.
# Full exports go through a bulk fetch that pages the API in fixed chunks.

from __future__ import annotations

from functools import partial
from typing import Any, Sequence

from src.admin_tables.api_client import AdminApiClient
from src.admin_tables.formatting import format_currency, format_timestamp
from src.admin_tables.queries import CachedPageQuery, make_bulk_fetch
from src.data_table.case_utils import CaseFormatConfig
from src.data_table.export import ExportDescriptor
from src.data_table.models import PageRequest, PageResult, Row
from src.data_table.table import DEFAULT_PAGE_SIZE_OPTIONS, ColumnDef, DataTable, TableConfig
from src.data_table.url_state import FilterParam, StatePort, TableStateDefaults

PAYMENTS_PATH = "/api/v1/payments"
CASE_CONFIG = CaseFormatConfig(url_format="camelCase", api_format="camelCase")
STATUS_FILTER = FilterParam(
    key="status", choices=("COMPLETED", "PENDING", "FAILED"), default="all", label="Status"
)

COLUMNS = [
    ColumnDef(id="id", header="Payment ID", hideable=False, sortable=False),
    ColumnDef(id="payerName", header="Payer", accessor="payer.user.name", sortable=False),
    ColumnDef(id="modelName", header="Model", accessor="model.user.name", sortable=False),
    ColumnDef(id="amount", header="Amount", cell=lambda value, _: format_currency(value)),
    ColumnDef(id="status", header="Status"),
    ColumnDef(id="contestName", header="Contest", accessor="contest.name", sortable=False),
    ColumnDef(id="voteCount", header="Votes"),
    ColumnDef(id="createdAt", header="Payment Date", cell=lambda value, _: format_timestamp(value)),
]


def _nested(row: Row, *path: str) -> Any:
    value: Any = row
    for part in path:
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def transform_payment(row: Row) -> dict[str, Any]:
    return {
        "Payment ID": row.get("id"),
        "Payer Name": _nested(row, "payer", "user", "name") or "Unknown",
        "Payer ID": _nested(row, "payer", "id"),
        "Model Name": _nested(row, "model", "user", "name") or "Unknown",
        "Model Username": _nested(row, "model", "user", "username") or "",
        "Amount": format_currency(row.get("amount")),
        "Status": row.get("status"),
        "Contest Name": _nested(row, "contest", "name") or "No contest",
        "Vote Count": row.get("voteCount") or 0,
        "Comment": row.get("comment") or "",
        "Stripe Session ID": row.get("stripeSessionId"),
        "Payment Date": format_timestamp(row.get("createdAt")),
    }


EXPORT_DESCRIPTOR = ExportDescriptor(
    entity_name="payments",
    column_mapping={
        "id": "Payment ID",
        "payerName": "Payer Name",
        "payerId": "Payer ID",
        "modelName": "Model Name",
        "modelUsername": "Model Username",
        "amount": "Amount",
        "status": "Status",
        "contestName": "Contest Name",
        "voteCount": "Vote Count",
        "comment": "Comment",
        "stripeSessionId": "Stripe Session ID",
        "createdAt": "Payment Date",
    },
    column_widths=(15, 20, 15, 20, 15, 12, 12, 25, 12, 30, 20, 20),
    transform_function=transform_payment,
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
    size="xs",
    column_resizing_table_id="payments-list-table",
    search_placeholder="Search payments",
)


def fetch_payments_page(client: AdminApiClient, request: PageRequest) -> PageResult:
    # the payments endpoint expects an explicit status, "all" included
    extra = None if "status" in request.filters else {"status": STATUS_FILTER.default}
    return client.get_page(PAYMENTS_PATH, request, case_config=CASE_CONFIG, extra_params=extra)


def build_payments_table(
    client: AdminApiClient,
    *,
    state_port: StatePort | None = None,
    preference_store: Any | None = None,
    default_page_size: int = 10,
    page_size_options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS,
    cache_ttl_seconds: float = 90,
) -> DataTable:
    fetch_page = partial(fetch_payments_page, client)
    query = CachedPageQuery("payments", fetch_page, ttl_seconds=cache_ttl_seconds)
    return DataTable(
        columns=COLUMNS,
        fetch=query.as_strategy(),
        bulk_fetch=make_bulk_fetch(fetch_page),
        id_field="id",
        config=TABLE_CONFIG,
        export_descriptor=EXPORT_DESCRIPTOR,
        state_port=state_port,
        preference_store=preference_store,
        defaults=TableStateDefaults(page_size=default_page_size, sort_by="createdAt", sort_order="desc"),
        filters=(STATUS_FILTER,),
        page_size_options=page_size_options,
    )
