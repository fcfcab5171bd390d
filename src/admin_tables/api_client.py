# This file implements the REST client used by the admin list tables.
# It exists so entity plugins can fetch pages without embedding request details everywhere.
# The client normalizes envelope parsing and converts transport failures into one clear exception type.
# Keeping API calls here keeps the table engine free of HTTP concerns.

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

from src.data_table.case_utils import DEFAULT_CASE_CONFIG, CaseFormatConfig
from src.data_table.models import PageRequest, PageResult

LOGGER = logging.getLogger("admin_tables")


class ApiUnavailableError(RuntimeError):
    """Raised when the API cannot be reached or responds with server errors."""


class AdminApiClient:
    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        timeout_seconds: int = 8,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def get_page(
        self,
        path: str,
        request: PageRequest,
        *,
        case_config: CaseFormatConfig = DEFAULT_CASE_CONFIG,
        aliases: Mapping[str, str] | None = None,
        extra_params: Mapping[str, Any] | None = None,
    ) -> PageResult:
        params = request.to_api_params(case_config, aliases=aliases)
        if extra_params:
            params.update(extra_params)
        payload = self._request_json(path, params=params)
        if payload.get("success") is False:
            message = payload.get("message") or payload.get("error") or "request was not successful"
            raise ApiUnavailableError(f"API reported failure for {path}: {message}")
        try:
            return PageResult.from_payload(payload, page=request.page, limit=request.page_size)
        except (TypeError, ValueError) as exc:
            raise ApiUnavailableError(f"Unexpected list payload from {path}: {exc}") from exc

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request_json(self, path: str, params: dict[str, Any] | None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(
                url, params=params, headers=self._headers(), timeout=self.timeout_seconds
            )
        except requests.RequestException as exc:
            raise ApiUnavailableError(f"API request failed for {url}: {exc}") from exc

        if response.status_code == 404:
            raise ValueError(f"Endpoint returned 404 for {url}")
        if response.status_code >= 500:
            raise ApiUnavailableError(
                f"API request failed with status {response.status_code} for {url}"
            )
        if response.status_code >= 400:
            raise ValueError(
                f"API request was rejected with status {response.status_code} for {url}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiUnavailableError(f"API did not return valid JSON for {url}") from exc

        if not isinstance(payload, dict):
            raise ApiUnavailableError(f"Unexpected payload shape from {url}")
        LOGGER.debug("GET %s params=%s", path, params)
        return payload
