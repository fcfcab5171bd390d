"""
Unit tests for settings.
It asserts expected behavior and guards against regressions in the corresponding component.
These tests are executed by `pytest` locally and in CI and should remain deterministic.
"""

import pytest

from src.common import settings as settings_module
from src.dashboard_admin.dashboard_config import load_dashboard_config


def test_load_settings_success() -> None:
    settings_module.get_settings.cache_clear()
    settings = settings_module.get_settings()
    assert settings.PROJECT_NAME
    assert settings.LOG_LEVEL


def test_load_settings_missing_required(monkeypatch: pytest.MonkeyPatch) -> None:
    settings_module.get_settings.cache_clear()
    monkeypatch.delenv("PROJECT_NAME", raising=False)
    with pytest.raises(RuntimeError, match="Missing required environment variables: PROJECT_NAME"):
        settings_module.load_settings(load_env=False)


def test_api_host_fallback_works_without_admin_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ADMIN_API_BASE_URL", raising=False)
    monkeypatch.setenv("API_HOST", "api")
    monkeypatch.setenv("API_PORT", "9000")
    settings = settings_module.load_settings(load_env=False)
    assert settings.ENV
    assert load_dashboard_config(load_env=False).api_base_url == "http://api:9000"
