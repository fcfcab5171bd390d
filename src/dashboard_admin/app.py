# This file is the Streamlit entrypoint for the admin tables dashboard.
# It exists to pick a table from the sidebar, build it once per session and hand it to the renderer.
# The chosen table is kept in the URL too, so a shared link reopens the same table and view.

from __future__ import annotations

import logging

import streamlit as st

from src.admin_tables.api_client import AdminApiClient
from src.admin_tables.registry import TABLE_LABELS, build_table
from src.common.logging import configure_logging
from src.dashboard_admin.components.data_table_view import render_data_table
from src.dashboard_admin.dashboard_config import AdminDashboardConfig, load_dashboard_config
from src.dashboard_admin.ui_text import APP_SUBTITLE, APP_TITLE, TABLE_PICKER_LABEL
from src.dashboard_admin.url_port import StreamlitQueryParamsPort
from src.data_table.preferences import JsonPreferenceStore
from src.data_table.table import DataTable

LOGGER = logging.getLogger("admin_tables")
TABLE_PARAM = "table"


@st.cache_resource
def get_api_client() -> AdminApiClient:
    config = load_dashboard_config()
    return AdminApiClient(
        base_url=config.api_base_url,
        token=config.api_token,
        timeout_seconds=config.request_timeout_seconds,
    )


def get_table(name: str, config: AdminDashboardConfig) -> DataTable:
    session_key = f"admin_table__{name}"
    if session_key not in st.session_state:
        LOGGER.info("Building %s table for this session", name)
        st.session_state[session_key] = build_table(
            name,
            get_api_client(),
            state_port=StreamlitQueryParamsPort(),
            preference_store=JsonPreferenceStore(config.preferences_path),
            default_page_size=config.default_page_size,
            page_size_options=config.page_size_options,
            cache_ttl_seconds=config.query_cache_ttl_seconds,
        )
    return st.session_state[session_key]


def _switch_table() -> None:
    # table state from the previous screen must not leak into the next one
    choice = st.session_state["admin_table_picker"]
    st.query_params.clear()
    st.query_params[TABLE_PARAM] = choice


def main() -> None:
    configure_logging()
    st.set_page_config(page_title=APP_TITLE, layout="wide")
    config = load_dashboard_config()

    names = list(TABLE_LABELS)
    current = st.query_params.get(TABLE_PARAM)
    if current not in TABLE_LABELS:
        current = names[0]

    st.sidebar.header(APP_TITLE)
    name = st.sidebar.radio(
        TABLE_PICKER_LABEL,
        options=names,
        index=names.index(current),
        format_func=lambda value: TABLE_LABELS[value],
        key="admin_table_picker",
        on_change=_switch_table,
    )

    st.title(TABLE_LABELS[name])
    st.caption(APP_SUBTITLE)
    render_data_table(get_table(name, config), key=name)


if __name__ == "__main__":
    main()
