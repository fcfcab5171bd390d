# This file collects small formatting helpers used by table cells and export transforms.
# It exists so timestamps, amounts and flags read the same in every admin table and export file.
# The functions return plain strings that both Streamlit and spreadsheet cells display directly.

from __future__ import annotations

from datetime import datetime

import pandas as pd


def format_timestamp(value: str | datetime | None) -> str:
    if value is None or value == "":
        return "-"
    parsed = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(parsed):
        return str(value)
    return parsed.strftime("%Y-%m-%d %H:%M")


def format_currency(value: float | int | str | None) -> str:
    if value is None or value == "":
        return "-"
    try:
        return f"${float(value):,.2f}"
    except (TypeError, ValueError):
        return str(value)


def format_count(value: int | float | None) -> str:
    if value is None:
        return "0"
    return f"{int(value):,}"


def format_flag(value: object, *, true_label: str, false_label: str) -> str:
    return true_label if bool(value) else false_label
