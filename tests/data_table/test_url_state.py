# This test file validates that table state round-trips through query-string parameters.
# It exists so shared links, reloads and filter resets behave the same for every table.
# The checks run against the in-memory port, so no router or browser is involved.

from __future__ import annotations

from datetime import date

import pytest

from src.data_table.case_utils import CaseFormatConfig
from src.data_table.models import DateRange
from src.data_table.url_state import (
    FilterParam,
    InMemoryStatePort,
    TableStateDefaults,
    TableUrlState,
    parse_date_from_url,
    validate_date_string,
)

STATUS = FilterParam(key="status", choices=("COMPLETED", "PENDING", "FAILED"), default="all")


def _state(initial: dict[str, str] | None = None, **kwargs: object) -> TableUrlState:
    return TableUrlState(InMemoryStatePort(initial), filters=(STATUS,), **kwargs)  # type: ignore[arg-type]


def test_reads_defaults_when_url_is_empty() -> None:
    state = _state(defaults=TableStateDefaults(page_size=20, sort_by="createdAt"))
    request = state.snapshot()
    assert request.page == 1
    assert request.page_size == 20
    assert request.sort_by == "createdAt"
    assert request.sort_order == "desc"
    assert request.filters == {}


def test_reads_camel_case_keys_from_url() -> None:
    state = _state(
        {"page": "3", "pageSize": "50", "search": "ada", "sortBy": "email", "sortOrder": "asc"}
    )
    request = state.snapshot()
    assert (request.page, request.page_size, request.search) == (3, 50, "ada")
    assert (request.sort_by, request.sort_order) == ("email", "asc")


def test_snake_case_url_format_uses_snake_keys() -> None:
    port = InMemoryStatePort({"page_size": "30"})
    state = TableUrlState(port, case_config=CaseFormatConfig(url_format="snake_case"))
    assert state.page_size == 30
    state.set_sort("created_at", "asc")
    assert port.params["sort_by"] == "created_at"
    assert port.params["sort_order"] == "asc"


@pytest.mark.parametrize(
    "change",
    [
        lambda state: state.set_search("bob"),
        lambda state: state.set_sort("email", "asc"),
        lambda state: state.set_sort("createdAt", "asc"),
        lambda state: state.set_filter("status", "FAILED"),
        lambda state: state.set_page_size(50),
        lambda state: state.set_date_range(
            DateRange(from_date=date(2026, 1, 1), to_date=date(2026, 1, 2))
        ),
    ],
)
def test_state_changes_reset_page_to_one(change) -> None:  # type: ignore[no-untyped-def]
    state = _state({"page": "4", "sortBy": "createdAt", "sortOrder": "desc"})
    change(state)
    assert state.page == 1
    assert "page" not in state.port.params  # type: ignore[attr-defined]


def test_setting_page_keeps_other_params() -> None:
    state = _state({"search": "ada"})
    state.set_page(2)
    assert state.port.params == {"search": "ada", "page": "2"}  # type: ignore[attr-defined]


def test_unchanged_value_does_not_reset_page() -> None:
    state = _state({"page": "3", "search": "ada"})
    state.set_search("ada")
    state.set_filter("status", "all")
    assert state.page == 3


def test_sort_order_is_always_written_with_sort_by() -> None:
    port = InMemoryStatePort()
    state = TableUrlState(port)
    state.set_sort("email", "desc")
    assert port.params == {"sortBy": "email", "sortOrder": "desc"}
    state.set_sort(None)
    assert "sortBy" not in port.params
    assert "sortOrder" not in port.params


def test_clearing_default_sort_is_kept_in_url() -> None:
    port = InMemoryStatePort()
    state = TableUrlState(port, defaults=TableStateDefaults(sort_by="createdAt"))
    state.set_sort(None)
    assert state.sort_by is None
    assert port.params == {"sortBy": ""}
    assert state.snapshot().sort_by is None

    state.set_page(3)
    state.set_sort(None)
    assert state.page == 3

    state.set_sort("createdAt", "desc")
    assert state.sort_by == "createdAt"
    assert port.params == {}


def test_shared_link_without_sort_keeps_table_unsorted() -> None:
    state = _state({"sortBy": "", "page": "2"}, defaults=TableStateDefaults(sort_by="createdAt"))
    request = state.snapshot()
    assert request.sort_by is None
    assert request.page == 2


def test_filter_sentinel_removes_param_and_reload_is_unfiltered() -> None:
    port = InMemoryStatePort()
    state = TableUrlState(port, filters=(STATUS,))
    state.set_filter("status", "PENDING")
    assert port.params["status"] == "PENDING"

    state.set_filter("status", "all")
    assert "status" not in port.params

    reloaded = TableUrlState(InMemoryStatePort(port.params), filters=(STATUS,))
    assert reloaded.filter_value("status") == "all"
    assert reloaded.snapshot().filters == {}


def test_unknown_filter_value_is_rejected() -> None:
    state = _state()
    with pytest.raises(ValueError, match="Unsupported value"):
        state.set_filter("status", "REFUNDED")
    with pytest.raises(ValueError, match="Unknown filter"):
        state.set_filter("colour", "red")


def test_invalid_url_values_fall_back_to_defaults(caplog: pytest.LogCaptureFixture) -> None:
    state = _state(
        {
            "page": "abc",
            "pageSize": "-5",
            "sortOrder": "sideways",
            "status": "BOGUS",
            "from_date": "2026-13-01",
            "to_date": "2026-01-02",
        }
    )
    with caplog.at_level("WARNING", logger="data_table"):
        request = state.snapshot()
    assert request.page == 1
    assert request.page_size == 10
    assert request.sort_order == "desc"
    assert request.filters == {}
    assert request.date_range is None
    assert "Ignoring" in caplog.text


def test_quoted_page_number_is_accepted() -> None:
    assert _state({"page": '"2"'}).page == 2


def test_date_range_round_trips_with_fixed_keys() -> None:
    port = InMemoryStatePort()
    state = TableUrlState(port)
    date_range = DateRange(from_date=date(2026, 2, 1), to_date=date(2026, 2, 28))
    state.set_date_range(date_range)
    assert port.params["from_date"] == "2026-02-01"
    assert port.params["to_date"] == "2026-02-28"
    assert state.date_range == date_range
    state.set_date_range(None)
    assert "from_date" not in port.params


def test_batch_flushes_once_on_success() -> None:
    port = InMemoryStatePort()
    state = TableUrlState(port)
    with state.batch():
        state.set_page(3)
        state.set_page(5)
        assert port.write_count == 0
        assert state.page == 5
    assert port.params == {"page": "5"}
    assert port.write_count == 1


def test_batch_discards_writes_on_error() -> None:
    port = InMemoryStatePort()
    state = TableUrlState(port)
    with pytest.raises(RuntimeError):
        with state.batch():
            state.set_page(3)
            raise RuntimeError("boom")
    assert port.params == {}


def test_hidden_columns_are_comma_separated() -> None:
    port = InMemoryStatePort()
    state = TableUrlState(port)
    state.set_hidden_columns(["email", "phone"])
    assert port.params["columnVisibility"] == "email,phone"
    assert state.hidden_columns == ("email", "phone")
    state.set_hidden_columns([])
    assert "columnVisibility" not in port.params


def test_date_helpers() -> None:
    assert validate_date_string("2026-02-28")
    assert not validate_date_string("2026-02-30")
    assert not validate_date_string("28/02/2026")
    assert parse_date_from_url("2026-02-28") == date(2026, 2, 28)
    assert parse_date_from_url(None) is None
