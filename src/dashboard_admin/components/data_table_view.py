# This file renders one DataTable as a Streamlit toolbar, body, pagination bar and export panel.
# It exists so every admin screen draws tables the same way and only differs by table definition.
# Widgets write through table operations; the table keeps state in the URL, so reruns rebuild the view.
# A pending search commit schedules a short sleep and a rerun once the debounce window has elapsed.

from __future__ import annotations

import time
from datetime import date
from typing import Any, Callable

import streamlit as st

from src.dashboard_admin import ui_text
from src.data_table.models import DateRange
from src.data_table.table import DataTable, TableView

SELECT_COLUMN = "Select"


def _state_key(key: str, name: str) -> str:
    return f"{key}__{name}"


def _render_search(table: DataTable, key: str) -> None:
    if table.debouncer is None:
        return
    search_key = _state_key(key, "search")
    if search_key not in st.session_state:
        st.session_state[search_key] = table.debouncer.input_value

    def on_change() -> None:
        table.type_search(st.session_state[search_key])

    st.text_input(
        "Search",
        key=search_key,
        placeholder=table.search_placeholder,
        on_change=on_change,
        label_visibility="collapsed",
    )


def _render_date_range(table: DataTable, key: str) -> None:
    if not table.config.enable_date_filter:
        return
    current = table.state.date_range
    value: tuple[date, ...] = (current.from_date, current.to_date) if current else ()
    picked = st.date_input("Date range", value=value, key=_state_key(key, "dates"))
    if isinstance(picked, (tuple, list)) and len(picked) == 2:
        table.set_date_range(DateRange(from_date=picked[0], to_date=picked[1]))
    elif isinstance(picked, (tuple, list)) and not picked and current is not None:
        table.clear_date_range()


def _render_filters(table: DataTable, key: str) -> None:
    for param in table.state.filter_params.values():
        label = param.label or param.key
        current = table.state.filter_value(param.key)
        if param.choices:
            options = [param.default, *param.choices]
            picked = st.selectbox(
                label,
                options=options,
                index=options.index(current) if current in options else 0,
                key=_state_key(key, f"filter_{param.key}"),
            )
        else:
            picked = st.text_input(label, value=current, key=_state_key(key, f"filter_{param.key}"))
        if picked != current:
            table.set_filter(param.key, picked.strip())


def _render_sort(table: DataTable, key: str) -> None:
    sortable = [column for column in table.columns if column.sortable]
    if not sortable:
        return
    labels = {column.id: column.header for column in sortable}
    options: list[str | None] = [None, *labels]
    current = table.state.sort_by
    picked = st.selectbox(
        "Sort by",
        options=options,
        index=options.index(current) if current in options else 0,
        format_func=lambda value: "Unsorted" if value is None else labels[value],
        key=_state_key(key, "sort_by"),
    )
    order = st.radio(
        "Order",
        options=["asc", "desc"],
        index=0 if table.state.sort_order == "asc" else 1,
        horizontal=True,
        key=_state_key(key, "sort_order"),
    )
    if picked != current or (picked is not None and order != table.state.sort_order):
        table.set_sort(picked, order)


def _render_column_visibility(table: DataTable, key: str) -> None:
    if not table.config.enable_column_visibility:
        return
    hideable = [column for column in table.columns if column.hideable]
    hidden = set(table.hidden_columns())
    visible_ids = [column.id for column in hideable if column.id not in hidden]
    headers = {column.id: column.header for column in hideable}
    picked = st.multiselect(
        "Columns",
        options=list(headers),
        default=visible_ids,
        format_func=lambda value: headers[value],
        key=_state_key(key, "columns"),
    )
    for column in hideable:
        should_show = column.id in picked
        if should_show != (column.id not in hidden):
            table.set_column_visibility(column.id, should_show)


def _column_config(table: DataTable, view: TableView) -> dict[str, Any]:
    config: dict[str, Any] = {}
    for column in view.columns:
        width = table.column_width(column.id)
        config[column.header] = st.column_config.Column(column.header, width=width)
    return config


def _render_body(table: DataTable, view: TableView, key: str) -> None:
    frame = view.to_frame()
    height = table.row_height * (len(frame) + 1) + 3
    if view.selection is None:
        st.dataframe(
            frame,
            use_container_width=True,
            hide_index=True,
            height=height,
            column_config=_column_config(table, view),
        )
        return

    selected = [table.selection.is_selected(row_id) for row_id in view.row_ids]
    frame.insert(0, SELECT_COLUMN, selected)
    config = _column_config(table, view)
    config[SELECT_COLUMN] = st.column_config.CheckboxColumn(SELECT_COLUMN, width="small")
    edited = st.data_editor(
        frame,
        use_container_width=True,
        hide_index=True,
        height=height,
        column_config=config,
        disabled=[column for column in frame.columns if column != SELECT_COLUMN],
        key=_state_key(key, f"editor_{view.request.page}"),
    )
    for row_id, was_selected, now_selected in zip(
        view.row_ids, selected, edited[SELECT_COLUMN].tolist()
    ):
        if bool(now_selected) != was_selected:
            table.toggle_row(row_id)


def _render_selection_bar(table: DataTable, view: TableView, key: str) -> None:
    if view.selection is None or not view.selection.total_selected_count:
        return
    left, right = st.columns([4, 1])
    left.caption(ui_text.SELECTION_SUMMARY.format(count=view.selection.total_selected_count))
    if right.button(ui_text.CLEAR_SELECTION, key=_state_key(key, "clear_selection")):
        table.reset_selection()
        st.rerun()


def _render_pagination(table: DataTable, view: TableView, key: str) -> None:
    pagination = view.pagination
    if pagination is None:
        return
    status, size_col, prev_col, next_col = st.columns([4, 2, 1, 1])
    status.caption(
        ui_text.PAGE_STATUS.format(
            page=pagination.page,
            total_pages=max(pagination.total_pages, 1),
            total=pagination.total,
        )
    )
    options = list(table.page_size_options)
    current_size = view.request.page_size
    if current_size not in options:
        options = sorted({*options, current_size})
    page_size = size_col.selectbox(
        "Rows per page",
        options=options,
        index=options.index(current_size),
        key=_state_key(key, "page_size"),
        label_visibility="collapsed",
    )
    if page_size != current_size:
        table.set_page_size(page_size)
        st.rerun()
    if prev_col.button("Prev", disabled=not pagination.has_previous_page, key=_state_key(key, "prev")):
        table.previous_page()
        st.rerun()
    if next_col.button("Next", disabled=not pagination.has_next_page, key=_state_key(key, "next")):
        table.next_page()
        st.rerun()


def _request_export_cancel(cancel_key: str) -> None:
    st.session_state[cancel_key] = True


def _export_progress(progress: Any, cancel_key: str) -> Callable[[], bool]:
    """Between chunks: report progress, then stop once the user asked to."""

    chunks = 0

    def should_continue() -> bool:
        nonlocal chunks
        # writing to the page lets Streamlit hand control back when Stop is clicked
        progress.caption(ui_text.EXPORT_PROGRESS.format(chunks=chunks))
        chunks += 1
        return not st.session_state.get(cancel_key, False)

    return should_continue


def _render_export(table: DataTable, key: str) -> None:
    if table.exporter is None:
        return
    st.markdown(f"**{ui_text.EXPORT_HEADING}**")
    if table.export_error:
        st.error(ui_text.EXPORT_ERROR.format(error=table.export_error))
        if st.button(ui_text.DISMISS_LABEL, key=_state_key(key, "dismiss_export")):
            table.dismiss_export_error()
            st.rerun()

    artifact_key = _state_key(key, "export_artifact")
    cancel_key = _state_key(key, "export_cancelled")
    columns = st.columns(4)
    choices = [
        ("current_page", "csv", ui_text.EXPORT_CURRENT_PAGE),
        ("current_page", "xlsx", ui_text.EXPORT_CURRENT_PAGE),
        ("all_pages", "csv", ui_text.EXPORT_ALL_PAGES),
        ("all_pages", "xlsx", ui_text.EXPORT_ALL_PAGES),
    ]
    for column, (mode, export_format, label) in zip(columns, choices):
        if mode == "all_pages" and not table.exporter.supports_all_pages:
            continue
        if column.button(
            f"{label} ({export_format.upper()})", key=_state_key(key, f"export_{mode}_{export_format}")
        ):
            st.session_state[cancel_key] = False
            st.button(
                ui_text.EXPORT_CANCEL_LABEL,
                key=_state_key(key, "export_cancel"),
                on_click=_request_export_cancel,
                args=(cancel_key,),
            )
            progress = st.empty()
            with st.spinner("Preparing export..."):
                artifact = table.export(
                    mode,
                    export_format,
                    should_continue=_export_progress(progress, cancel_key),
                )
            progress.empty()
            st.session_state[artifact_key] = artifact
            if table.export_error:
                st.rerun()
            if artifact is None:
                st.info(ui_text.EXPORT_CANCELLED)

    artifact = st.session_state.get(artifact_key)
    if artifact is not None:
        st.caption(ui_text.EXPORT_READY.format(filename=artifact.filename, rows=artifact.row_count))
        st.download_button(
            "Download",
            data=artifact.content,
            file_name=artifact.filename,
            mime=artifact.media_type,
            key=_state_key(key, "download"),
        )


def render_data_table(table: DataTable, key: str) -> TableView:
    toolbar = st.columns([3, 2, 2])
    with toolbar[0]:
        _render_search(table, key)
    with toolbar[1]:
        _render_date_range(table, key)
    with toolbar[2]:
        _render_column_visibility(table, key)

    filter_row = st.columns([2, 2, 2])
    with filter_row[0]:
        _render_sort(table, key)
    with filter_row[1]:
        _render_filters(table, key)

    table.poll_search()
    view = table.load()

    if view.error:
        st.error(ui_text.FETCH_ERROR.format(error=view.error))
        if st.button(ui_text.RETRY_LABEL, key=_state_key(key, "retry")):
            table.refresh()
            st.rerun()
    if view.is_initial_loading:
        st.info(ui_text.LOADING_TABLE)
    elif view.is_searching:
        st.caption(ui_text.SEARCHING_TABLE)
    elif view.is_refreshing:
        st.caption(ui_text.REFRESHING_TABLE)

    if view.is_empty and not view.error:
        st.info(ui_text.EMPTY_TABLE)
    else:
        _render_body(table, view, key)

    _render_selection_bar(table, view, key)
    _render_pagination(table, view, key)
    _render_export(table, key)

    if table.debouncer is not None and table.debouncer.is_pending:
        time.sleep(table.debouncer.seconds_remaining())
        st.rerun()
    return view