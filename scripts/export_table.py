# This file exports one admin table to disk without opening the dashboard.
# It exists so operators can schedule full CSV or XLSX extracts with the same filters the UI uses.
# Filters are passed as query-string style key=value pairs, exactly as they appear in a shared URL.
# ruff: noqa: E402

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.admin_tables.api_client import AdminApiClient
from src.admin_tables.registry import TABLE_BUILDERS, build_table
from src.common.logging import configure_logging
from src.dashboard_admin.dashboard_config import load_dashboard_config
from src.data_table.url_state import InMemoryStatePort

LOGGER = logging.getLogger("admin_tables")


def _parse_param(raw: str) -> tuple[str, str]:
    key, separator, value = raw.partition("=")
    if not separator or not key:
        raise argparse.ArgumentTypeError(f"Expected key=value, got: {raw!r}")
    return key, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export an admin table to CSV or XLSX.")
    parser.add_argument("table", choices=sorted(TABLE_BUILDERS))
    parser.add_argument("--format", dest="export_format", choices=["csv", "xlsx"], default="csv")
    parser.add_argument(
        "--mode", choices=["all_pages", "current_page"], default="all_pages"
    )
    parser.add_argument("--output-dir", type=Path, default=Path("reports/exports"))
    parser.add_argument(
        "--param",
        action="append",
        type=_parse_param,
        default=[],
        help="URL state parameter, e.g. --param search=ada --param status=COMPLETED",
    )
    return parser


def run_export(args: argparse.Namespace, *, client: AdminApiClient | None = None) -> Path | None:
    config = load_dashboard_config()
    if client is None:
        client = AdminApiClient(
            base_url=config.api_base_url,
            token=config.api_token,
            timeout_seconds=config.request_timeout_seconds,
        )
    table = build_table(
        args.table,
        client,
        state_port=InMemoryStatePort(dict(args.param)),
        default_page_size=config.default_page_size,
        page_size_options=config.page_size_options,
    )
    artifact = table.export(args.mode, args.export_format)
    if artifact is None:
        LOGGER.error("Export of %s failed: %s", args.table, table.export_error)
        return None
    target = artifact.write_to(args.output_dir)
    LOGGER.info("Wrote %s rows to %s", artifact.row_count, target)
    return target


def main() -> int:
    configure_logging()
    args = build_parser().parse_args()
    target = run_export(args)
    if target is None:
        return 1
    print(target)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
