# This file adapts Streamlit query parameters to the table engine's state port.
# It exists so table state lands in the browser URL while the engine stays free of Streamlit.

from __future__ import annotations

from typing import Any, MutableMapping

import streamlit as st


class StreamlitQueryParamsPort:
    """State port over `st.query_params`; a plain dict can stand in for it in tests."""

    def __init__(self, params: MutableMapping[str, Any] | None = None) -> None:
        self._params = params if params is not None else st.query_params

    def get(self, key: str) -> str | None:
        value = self._params.get(key)
        if value is None:
            return None
        if isinstance(value, list):
            return str(value[-1]) if value else None
        return str(value)

    def set(self, key: str, value: str | None) -> None:
        if value is None:
            if key in self._params:
                del self._params[key]
            return
        if self._params.get(key) != value:
            self._params[key] = value
