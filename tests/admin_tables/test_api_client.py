# This test file validates the admin API client against expected envelope patterns.
# It exists so request parameters, auth headers and failure modes stay stable as endpoints evolve.

from __future__ import annotations

import pytest
import requests

from src.admin_tables.api_client import AdminApiClient, ApiUnavailableError
from src.data_table.case_utils import CaseFormatConfig
from src.data_table.models import PageRequest
from tests.admin_tables.support import FakeResponse, FakeSession, envelope

CAMEL = CaseFormatConfig(url_format="camelCase", api_format="camelCase")


def _client(session: FakeSession, token: str | None = None) -> AdminApiClient:
    return AdminApiClient(base_url="http://localhost:8000/", token=token, session=session)


def test_get_page_parses_envelope_and_sends_params() -> None:
    session = FakeSession([FakeResponse(status_code=200, payload=envelope([{"id": "u1"}], total=11))])
    client = _client(session, token="secret")

    result = client.get_page(
        "/api/v1/search/users",
        PageRequest(page=1, search=" ada ", sort_by="createdAt", sort_order="asc"),
        case_config=CAMEL,
    )

    assert result.data == [{"id": "u1"}]
    assert result.pagination.total_pages == 2
    call = session.calls[0]
    assert call["url"] == "http://localhost:8000/api/v1/search/users"
    assert call["params"]["search"] == "ada"
    assert call["params"]["sortBy"] == "createdAt"
    assert call["params"]["limit"] == 10
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert call["timeout"] == 8


def test_extra_params_and_aliases_are_applied() -> None:
    session = FakeSession([FakeResponse(status_code=200, payload=envelope([]))])
    client = _client(session)
    client.get_page(
        "/api/v1/payments",
        PageRequest(),
        case_config=CAMEL,
        aliases={"search": "q"},
        extra_params={"status": "all"},
    )
    params = session.calls[0]["params"]
    assert params["status"] == "all"
    assert "search" not in params
    assert "Authorization" not in session.calls[0]["headers"]


def test_unsuccessful_envelope_raises_unavailable() -> None:
    session = FakeSession([FakeResponse(status_code=200, payload={"success": False, "message": "nope"})])
    with pytest.raises(ApiUnavailableError, match="nope"):
        _client(session).get_page("/api/v1/ranks", PageRequest())


def test_server_error_raises_unavailable() -> None:
    session = FakeSession([FakeResponse(status_code=503)])
    with pytest.raises(ApiUnavailableError):
        _client(session).get_page("/api/v1/ranks", PageRequest())


def test_client_error_raises_value_error() -> None:
    session = FakeSession([FakeResponse(status_code=403)])
    with pytest.raises(ValueError, match="rejected"):
        _client(session).get_page("/api/v1/ranks", PageRequest())


def test_missing_endpoint_raises_value_error() -> None:
    session = FakeSession([FakeResponse(status_code=404)])
    with pytest.raises(ValueError, match="404"):
        _client(session).get_page("/api/v1/ranks", PageRequest())


def test_invalid_json_raises_unavailable() -> None:
    session = FakeSession([FakeResponse(status_code=200, invalid_json=True)])
    with pytest.raises(ApiUnavailableError, match="valid JSON"):
        _client(session).get_page("/api/v1/ranks", PageRequest())


def test_malformed_rows_raise_unavailable() -> None:
    session = FakeSession([FakeResponse(status_code=200, payload={"data": {"data": "oops"}})])
    with pytest.raises(ApiUnavailableError, match="Unexpected list payload"):
        _client(session).get_page("/api/v1/ranks", PageRequest())


def test_transport_error_raises_unavailable() -> None:
    session = FakeSession(raise_error=requests.ConnectionError("api down"))
    with pytest.raises(ApiUnavailableError):
        _client(session).get_page("/api/v1/ranks", PageRequest())
