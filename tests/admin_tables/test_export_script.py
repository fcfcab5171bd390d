# This test file validates the headless export script with a fake API session.
# It exists so scheduled extracts honour URL-style filters and write finished files only.

from __future__ import annotations

from pathlib import Path

import pytest

from scripts.export_table import build_parser, run_export
from src.admin_tables.api_client import AdminApiClient
from tests.admin_tables.support import FakeResponse, FakeSession, envelope


def test_export_script_writes_filtered_file(tmp_path: Path) -> None:
    session = FakeSession([FakeResponse(status_code=200, payload=envelope([{"id": "u1", "name": "Ada"}]))])
    client = AdminApiClient(base_url="http://localhost:8000", session=session)
    args = build_parser().parse_args(
        ["users", "--output-dir", str(tmp_path), "--param", "search=ada"]
    )

    target = run_export(args, client=client)

    assert target is not None and target.parent == tmp_path
    assert target.name.startswith("users-export-")
    assert "Ada" in target.read_text(encoding="utf-8")
    assert session.calls[0]["params"]["search"] == "ada"
    assert session.calls[0]["params"]["limit"] == 100


def test_export_script_reports_failure(tmp_path: Path) -> None:
    session = FakeSession([FakeResponse(status_code=503)])
    client = AdminApiClient(base_url="http://localhost:8000", session=session)
    args = build_parser().parse_args(["ranks", "--output-dir", str(tmp_path / "out")])

    assert run_export(args, client=client) is None
    assert not (tmp_path / "out").exists()


def test_param_requires_key_value() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["users", "--param", "oops"])
