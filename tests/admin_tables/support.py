# This file holds fake HTTP plumbing shared by the admin table tests.
# It exists so the API client can be exercised against canned envelopes without a network.

from __future__ import annotations

from typing import Any


class FakeResponse:
    def __init__(self, *, status_code: int, payload: Any = None, invalid_json: bool = False) -> None:
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self._invalid_json = invalid_json

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(
        self, responses: list[FakeResponse] | None = None, raise_error: Exception | None = None
    ) -> None:
        self.responses = responses or []
        self.raise_error = raise_error
        self.calls: list[dict[str, Any]] = []

    def get(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str],
        timeout: int,
    ) -> FakeResponse:
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.raise_error is not None:
            raise self.raise_error
        return self.responses.pop(0)


def envelope(
    rows: list[dict[str, Any]], *, page: int = 1, limit: int = 10, total: int | None = None
) -> dict[str, Any]:
    total = len(rows) if total is None else total
    total_pages = ((total - 1) // limit) + 1 if total else 0
    return {
        "success": True,
        "data": {
            "data": rows,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": total_pages,
                "hasNextPage": page < total_pages,
                "hasPreviousPage": page > 1,
            },
        },
    }
