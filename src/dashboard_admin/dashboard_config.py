# This file defines runtime configuration for the admin tables dashboard.
# It exists so API access, page sizes and cache policies can be tuned through environment variables.
# Keeping these values centralized avoids hard-coded behavior scattered across the app.

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from src.data_table.table import DEFAULT_PAGE_SIZE_OPTIONS


@dataclass(frozen=True)
class AdminDashboardConfig:
    api_base_url: str
    api_token: str | None
    request_timeout_seconds: int
    default_page_size: int
    page_size_options: tuple[int, ...]
    query_cache_ttl_seconds: int
    preferences_path: str

    def clamp_page_size(self, requested_page_size: int | None) -> int:
        if requested_page_size is None:
            return self.default_page_size
        return max(1, min(int(requested_page_size), max(self.page_size_options)))


def parse_page_size_options(raw: str | None) -> tuple[int, ...]:
    if not raw:
        return DEFAULT_PAGE_SIZE_OPTIONS
    options = sorted({int(part) for part in raw.split(",") if part.strip()})
    if not options or options[0] < 1:
        raise ValueError(f"ADMIN_PAGE_SIZE_OPTIONS must list positive integers, got: {raw!r}")
    return tuple(options)


def load_dashboard_config(*, load_env: bool = True) -> AdminDashboardConfig:
    if load_env:
        load_dotenv()

    api_base_url = os.getenv("ADMIN_API_BASE_URL")
    if not api_base_url:
        api_host = os.getenv("API_HOST", "localhost")
        api_port = os.getenv("API_PORT", "8000")
        api_base_url = f"http://{api_host}:{api_port}"

    page_size_options = parse_page_size_options(os.getenv("ADMIN_PAGE_SIZE_OPTIONS"))
    default_page_size = int(os.getenv("ADMIN_DEFAULT_PAGE_SIZE", "10"))
    if default_page_size not in page_size_options:
        page_size_options = tuple(sorted({*page_size_options, default_page_size}))

    return AdminDashboardConfig(
        api_base_url=api_base_url.rstrip("/"),
        api_token=os.getenv("ADMIN_API_TOKEN") or None,
        request_timeout_seconds=int(os.getenv("ADMIN_REQUEST_TIMEOUT_SECONDS", "8")),
        default_page_size=default_page_size,
        page_size_options=page_size_options,
        query_cache_ttl_seconds=int(os.getenv("ADMIN_QUERY_CACHE_TTL_SECONDS", "90")),
        preferences_path=os.getenv("ADMIN_PREFERENCES_PATH", ".streamlit/table_preferences.json"),
    )
