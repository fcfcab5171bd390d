# This test file validates the Streamlit query-params port with a plain dict standing in.
# It exists so table state written by the engine lands in the URL exactly once per change.

from __future__ import annotations

from src.dashboard_admin.url_port import StreamlitQueryParamsPort
from src.data_table.url_state import TableUrlState


def test_port_reads_and_writes_params() -> None:
    params: dict[str, object] = {"page": "2", "tags": ["a", "b"]}
    port = StreamlitQueryParamsPort(params)  # type: ignore[arg-type]

    assert port.get("page") == "2"
    assert port.get("tags") == "b"
    assert port.get("missing") is None

    port.set("search", "ada")
    port.set("page", None)
    port.set("missing", None)
    assert params == {"tags": ["a", "b"], "search": "ada"}


def test_table_state_round_trips_through_port() -> None:
    params: dict[str, object] = {}
    state = TableUrlState(StreamlitQueryParamsPort(params))  # type: ignore[arg-type]
    state.set_sort("email", "asc")
    state.set_page(3)
    assert params == {"sortBy": "email", "sortOrder": "asc", "page": "3"}
    assert state.snapshot().page == 3
