# This file persists per-table column preferences (widths and hidden columns).
# It exists so each table identity keeps its own layout, e.g. users and payments never share resize state.
# The JSON store keeps one document keyed by table id and rewrites it atomically on save.

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

LOGGER = logging.getLogger("data_table")


@dataclass
class ColumnPreferences:
    widths: dict[str, int] = field(default_factory=dict)
    hidden: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"widths": dict(self.widths), "hidden": list(self.hidden)}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ColumnPreferences:
        widths = payload.get("widths") or {}
        hidden = payload.get("hidden") or []
        return cls(
            widths={str(key): int(value) for key, value in dict(widths).items()},
            hidden=[str(value) for value in hidden],
        )


class InMemoryPreferenceStore:
    def __init__(self) -> None:
        self._store: dict[str, ColumnPreferences] = {}

    def load(self, table_id: str) -> ColumnPreferences:
        stored = self._store.get(table_id)
        if stored is None:
            return ColumnPreferences()
        return ColumnPreferences(widths=dict(stored.widths), hidden=list(stored.hidden))

    def save(self, table_id: str, preferences: ColumnPreferences) -> None:
        self._store[table_id] = ColumnPreferences(
            widths=dict(preferences.widths), hidden=list(preferences.hidden)
        )


class JsonPreferenceStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as handle:
                loaded = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Ignoring unreadable column preferences at %s: %s", self.path, exc)
            return {}
        if not isinstance(loaded, dict):
            LOGGER.warning("Ignoring column preferences at %s: expected a JSON object", self.path)
            return {}
        return loaded

    def load(self, table_id: str) -> ColumnPreferences:
        payload = self._read_all().get(table_id)
        if not isinstance(payload, dict):
            return ColumnPreferences()
        try:
            return ColumnPreferences.from_dict(payload)
        except (TypeError, ValueError) as exc:
            LOGGER.warning("Ignoring malformed preferences for table %s: %s", table_id, exc)
            return ColumnPreferences()

    def save(self, table_id: str, preferences: ColumnPreferences) -> None:
        document = self._read_all()
        document[table_id] = preferences.to_dict()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".prefs-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, sort_keys=True)
            os.replace(temp_name, self.path)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
