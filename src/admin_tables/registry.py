# This file maps table names to their builders for the admin dashboard.
# It exists so the host can offer a table picker without importing every entity module itself.

from __future__ import annotations

from typing import Any, Callable

from src.admin_tables.api_client import AdminApiClient
from src.admin_tables.participants import build_participants_table
from src.admin_tables.payments import build_payments_table
from src.admin_tables.ranks import build_ranks_table
from src.admin_tables.users import build_users_table
from src.admin_tables.votes import build_votes_table
from src.data_table.table import DataTable

TableBuilder = Callable[..., DataTable]

TABLE_BUILDERS: dict[str, TableBuilder] = {
    "users": build_users_table,
    "payments": build_payments_table,
    "votes": build_votes_table,
    "ranks": build_ranks_table,
    "participants": build_participants_table,
}

TABLE_LABELS: dict[str, str] = {
    "users": "Users",
    "payments": "Payments",
    "votes": "Votes",
    "ranks": "Model Ranks",
    "participants": "Contest Participants",
}


def build_table(name: str, client: AdminApiClient, **kwargs: Any) -> DataTable:
    builder = TABLE_BUILDERS.get(name)
    if builder is None:
        supported = ", ".join(TABLE_BUILDERS)
        raise ValueError(f"Unknown table '{name}'. Supported tables: {supported}")
    return builder(client, **kwargs)
