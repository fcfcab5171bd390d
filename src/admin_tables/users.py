# This file wires the users list into the generic data table.
# It exists so the users screen only declares columns, export layout and its fetch source.
# Users is the one table with row selection enabled, for bulk status and delete actions.

from __future__ import annotations

from functools import partial
from typing import Any, Sequence

from src.admin_tables.api_client import AdminApiClient
from src.admin_tables.formatting import format_flag, format_timestamp
from src.admin_tables.queries import CachedPageQuery
from src.data_table.case_utils import CaseFormatConfig
from src.data_table.export import ExportDescriptor
from src.data_table.models import PageRequest, PageResult, Row
from src.data_table.table import DEFAULT_PAGE_SIZE_OPTIONS, ColumnDef, DataTable, TableConfig
from src.data_table.url_state import StatePort, TableStateDefaults

USERS_PATH = "/api/v1/search/users"
CASE_CONFIG = CaseFormatConfig(url_format="camelCase", api_format="camelCase")

COLUMNS = [
    ColumnDef(id="id", header="ID", hideable=False, width=90),
    ColumnDef(id="name", header="Name", width=180),
    ColumnDef(id="username", header="Username", width=160),
    ColumnDef(id="email", header="Email", width=240),
    ColumnDef(id="phone", header="Phone", sortable=False, width=140),
    ColumnDef(id="role", header="Role", width=110),
    ColumnDef(
        id="emailVerified",
        header="Email Verified",
        cell=lambda value, _: format_flag(value, true_label="Verified", false_label="Pending"),
    ),
    ColumnDef(
        id="hasProfile",
        header="Onboarding",
        sortable=False,
        cell=lambda value, _: format_flag(value, true_label="Completed", false_label="Pending"),
    ),
    ColumnDef(id="createdAt", header="Joined", cell=lambda value, _: format_timestamp(value)),
]


def transform_user(row: Row) -> dict[str, Any]:
    return {
        "ID": row.get("id"),
        "Name": row.get("name"),
        "Username": row.get("username"),
        "Email": row.get("email"),
        "Phone": row.get("phone"),
        "Image": row.get("image"),
        "Role": row.get("role"),
        "Email Verified": format_flag(
            row.get("emailVerified"), true_label="Verified", false_label="Pending"
        ),
        "Onboarding Status": format_flag(
            row.get("hasProfile"), true_label="Completed", false_label="Pending"
        ),
        "Joined Date": format_timestamp(row.get("createdAt")),
    }


EXPORT_DESCRIPTOR = ExportDescriptor(
    entity_name="users",
    column_mapping={
        "id": "ID",
        "name": "Name",
        "username": "Username",
        "email": "Email",
        "phone": "Phone",
        "image": "Image",
        "role": "Role",
        "emailVerified": "Email Verified",
        "hasProfile": "Onboarding Status",
        "createdAt": "Joined Date",
    },
    column_widths=(10, 20, 20, 30, 15, 20, 12, 15, 18, 20),
    transform_function=transform_user,
    case_config=CASE_CONFIG,
)

TABLE_CONFIG = TableConfig(
    enable_row_selection=True,
    enable_click_row_select=False,
    enable_keyboard_navigation=True,
    enable_search=True,
    enable_date_filter=True,
    enable_column_visibility=True,
    enable_url_state=True,
    enable_export=True,
    size="sm",
    column_resizing_table_id="users-table",
    search_placeholder="Search users",
)


def fetch_users_page(client: AdminApiClient, request: PageRequest) -> PageResult:
    return client.get_page(USERS_PATH, request, case_config=CASE_CONFIG)


def build_users_table(
    client: AdminApiClient,
    *,
    state_port: StatePort | None = None,
    preference_store: Any | None = None,
    default_page_size: int = 10,
    page_size_options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS,
    cache_ttl_seconds: float = 90,
) -> DataTable:
    fetch_page = partial(fetch_users_page, client)
    query = CachedPageQuery("users", fetch_page, ttl_seconds=cache_ttl_seconds)
    return DataTable(
        columns=COLUMNS,
        fetch=query.as_strategy(),
        chunk_fetch=fetch_page,
        id_field="id",
        config=TABLE_CONFIG,
        export_descriptor=EXPORT_DESCRIPTOR,
        state_port=state_port,
        preference_store=preference_store,
        defaults=TableStateDefaults(page_size=default_page_size, sort_by="createdAt", sort_order="desc"),
        page_size_options=page_size_options,
    )
