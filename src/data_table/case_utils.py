# This file converts parameter names between the casing used by the table, the URL and the API.
# It exists so one table can talk to camelCase and snake_case backends without per-entity glue.
# The helpers are pure string functions plus a small config object carried by export descriptors.

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal, Mapping

CaseFormat = Literal["camelCase", "snake_case"]
VALID_CASE_FORMATS = {"camelCase", "snake_case"}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class CaseFormatConfig:
    url_format: CaseFormat = "camelCase"
    api_format: CaseFormat = "snake_case"

    def __post_init__(self) -> None:
        for value in (self.url_format, self.api_format):
            if value not in VALID_CASE_FORMATS:
                raise ValueError(f"Unsupported case format '{value}'")


DEFAULT_CASE_CONFIG = CaseFormatConfig()


def to_snake_case(name: str) -> str:
    """Convert `sortBy` / `sort-by` / `sort_by` to `sort_by`."""

    if not name:
        return name
    spaced = _CAMEL_BOUNDARY.sub("_", name.strip())
    return re.sub(r"[\s\-]+", "_", spaced).lower()


def to_camel_case(name: str) -> str:
    """Convert `sort_by` / `sort-by` / `sortBy` to `sortBy`."""

    if not name:
        return name
    parts = [part for part in re.split(r"[_\-\s]+", to_snake_case(name)) if part]
    if not parts:
        return ""
    return parts[0] + "".join(part[:1].upper() + part[1:] for part in parts[1:])


def convert_case(name: str, case_format: CaseFormat) -> str:
    if case_format == "camelCase":
        return to_camel_case(name)
    if case_format == "snake_case":
        return to_snake_case(name)
    raise ValueError(f"Unsupported case format '{case_format}'")


def convert_keys(values: Mapping[str, Any], case_format: CaseFormat) -> dict[str, Any]:
    return {convert_case(key, case_format): value for key, value in values.items()}


def preprocess_search(search: str | None) -> str:
    """Trim and collapse whitespace so equivalent searches share one request identity."""

    if not search:
        return ""
    return _WHITESPACE.sub(" ", search).strip()
