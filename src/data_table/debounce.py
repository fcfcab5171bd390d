# This file debounces search input before it reaches the URL and the fetch layer.
# It exists so typing stays responsive while only settled queries trigger a request.
# The debouncer is clock-driven and polled by the host, so it needs no timer thread.

from __future__ import annotations

import time
from typing import Callable

SEARCH_DEBOUNCE_SECONDS = 0.5


class SearchDebouncer:
    def __init__(
        self,
        *,
        on_commit: Callable[[str], None],
        committed: str = "",
        delay_seconds: float = SEARCH_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._on_commit = on_commit
        self._committed = committed
        self._input = committed
        self._delay_seconds = delay_seconds
        self._clock = clock
        self._deadline: float | None = None

    @property
    def input_value(self) -> str:
        return self._input

    @property
    def committed_value(self) -> str:
        return self._committed

    @property
    def is_pending(self) -> bool:
        return self._deadline is not None

    def seconds_remaining(self) -> float:
        if self._deadline is None:
            return 0.0
        return max(0.0, self._deadline - self._clock())

    def type(self, value: str) -> None:
        """Record a keystroke; clearing the field commits at once, anything else restarts the timer."""

        self._input = value
        if not value.strip():
            self._commit("")
            return
        self._deadline = self._clock() + self._delay_seconds

    def poll(self) -> bool:
        """Commit the pending value if the quiet period has elapsed."""

        if self._deadline is None or self._clock() < self._deadline:
            return False
        self._commit(self._input)
        return True

    def flush(self) -> None:
        if self._deadline is not None:
            self._commit(self._input)

    def sync(self, committed: str) -> None:
        """Adopt a search value that changed elsewhere (e.g. the URL on reload)."""

        self._deadline = None
        self._committed = committed
        self._input = committed

    def _commit(self, value: str) -> None:
        self._deadline = None
        if value == self._committed:
            return
        self._committed = value
        self._on_commit(value)
