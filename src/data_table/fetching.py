# This file defines the fetch contract between the table shell and per-entity data sources.
# It exists so a table can be fed either by a reactive query hook or by a plain page function.
# Plain functions get a request-identity cache here: stale responses are dropped and the
# previous page stays visible while the next one loads. Errors are never retried automatically.

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable

from src.data_table.models import PageRequest, PageResult

LOGGER = logging.getLogger("data_table")


class FetchError(RuntimeError):
    """Raised when a fetch source returns something the table cannot use."""


def _noop() -> None:
    return None


@dataclass(frozen=True)
class QueryState:
    """Snapshot of a page query as seen by the table shell.

    `data` may belong to an earlier request while `is_refetching` is true.
    """

    data: PageResult | None = None
    is_loading: bool = False
    is_refetching: bool = False
    error: Exception | None = None
    refetch: Callable[[], Any] = field(default=_noop, compare=False, repr=False)
    request: PageRequest | None = None


PageHook = Callable[[PageRequest], QueryState]
PageFetcher = Callable[[PageRequest], PageResult]


@dataclass(frozen=True)
class ReactiveQuery:
    """A hook that caches by request identity itself and reports its own loading state."""

    hook: PageHook


@dataclass(frozen=True)
class ImperativeFetch:
    """A plain function returning one page; the engine supplies caching around it."""

    fetch: PageFetcher


FetchStrategy = ReactiveQuery | ImperativeFetch


def as_fetch_strategy(source: FetchStrategy | Callable[..., Any]) -> FetchStrategy:
    """Wrap a callable, honouring the `is_query_hook = True` convention."""

    if isinstance(source, (ReactiveQuery, ImperativeFetch)):
        return source
    if not callable(source):
        raise TypeError(f"Expected a fetch strategy or callable, got: {type(source).__name__}")
    if getattr(source, "is_query_hook", False):
        return ReactiveQuery(hook=source)
    return ImperativeFetch(fetch=source)


class _ResultCache:
    def __init__(
        self,
        *,
        ttl_seconds: float | None,
        max_entries: int,
        clock: Callable[[], float],
    ) -> None:
        self._store: OrderedDict[PageRequest, tuple[float | None, PageResult]] = OrderedDict()
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock

    def get(self, key: PageRequest) -> PageResult | None:
        cached = self._store.get(key)
        if cached is None:
            return None
        expires_at, value = cached
        if expires_at is not None and self._clock() > expires_at:
            self._store.pop(key, None)
            return None
        self._store.move_to_end(key)
        return value

    def set(self, key: PageRequest, value: PageResult) -> None:
        expires_at = None if self._ttl_seconds is None else self._clock() + self._ttl_seconds
        self._store[key] = (expires_at, value)
        self._store.move_to_end(key)
        while len(self._store) > self._max_entries:
            self._store.popitem(last=False)

    def pop(self, key: PageRequest) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()


class FetchController:
    """Request-identity cache around a plain page function.

    Every request gets a ticket; only the newest ticket may publish its outcome.
    `begin`/`settle` are public so hosts that resolve fetches out of band (and tests)
    can drive the same bookkeeping that `load` uses.
    """

    def __init__(
        self,
        fetch: PageFetcher,
        *,
        ttl_seconds: float | None = None,
        max_entries: int = 32,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._cache = _ResultCache(ttl_seconds=ttl_seconds, max_entries=max_entries, clock=clock)
        self._current: PageRequest | None = None
        self._ticket = 0
        self._in_flight: dict[int, PageRequest] = {}
        self._last_result: PageResult | None = None
        self._error: Exception | None = None

    @property
    def current_request(self) -> PageRequest | None:
        return self._current

    @property
    def is_in_flight(self) -> bool:
        return self._ticket in self._in_flight

    def _activate(self, request: PageRequest) -> int:
        if request != self._current:
            self._error = None
        self._current = request
        self._ticket += 1
        return self._ticket

    def begin(self, request: PageRequest) -> int:
        ticket = self._activate(request)
        self._in_flight[ticket] = request
        return ticket

    def settle(
        self,
        ticket: int,
        *,
        result: PageResult | None = None,
        error: Exception | None = None,
    ) -> bool:
        """Publish the outcome of `ticket`; returns False when the response is stale."""

        request = self._in_flight.pop(ticket, None)
        if request is None or ticket != self._ticket:
            LOGGER.debug("Dropping stale response for ticket=%s", ticket)
            return False
        if error is not None:
            self._error = error
            return True
        if not isinstance(result, PageResult):
            self._error = FetchError(
                f"Fetch function returned {type(result).__name__}, expected PageResult"
            )
            return True
        self._cache.set(request, result)
        self._last_result = result
        self._error = None
        return True

    def state(self) -> QueryState:
        current = self._current
        if current is None:
            return QueryState(refetch=self.refetch)
        pending = self.is_in_flight
        cached = self._cache.get(current)
        if self._error is not None and not pending:
            return QueryState(
                data=self._last_result,
                error=self._error,
                refetch=self.refetch,
                request=current,
            )
        if cached is not None and not pending:
            return QueryState(data=cached, refetch=self.refetch, request=current)
        shown = cached or self._last_result
        return QueryState(
            data=shown,
            is_loading=shown is None,
            is_refetching=shown is not None,
            refetch=self.refetch,
            request=current,
        )

    def load(self, request: PageRequest) -> QueryState:
        if request == self._current:
            if self.is_in_flight or self._error is not None or self._cache.get(request) is not None:
                return self.state()
        else:
            cached = self._cache.get(request)
            if cached is not None:
                self._activate(request)
                self._last_result = cached
                return self.state()

        ticket = self.begin(request)
        try:
            result = self._fetch(request)
        except Exception as exc:
            LOGGER.exception("Page fetch failed for page=%s search=%r", request.page, request.search)
            self.settle(ticket, error=exc)
        else:
            self.settle(ticket, result=result)
        return self.state()

    def refetch(self) -> QueryState:
        if self._current is None:
            return self.state()
        self._cache.pop(self._current)
        self._error = None
        return self.load(self._current)

    def invalidate(self) -> None:
        self._cache.clear()
        self._error = None


def run_fetch_strategy(
    strategy: FetchStrategy,
    request: PageRequest,
    controller: FetchController | None,
) -> QueryState:
    if isinstance(strategy, ReactiveQuery):
        return strategy.hook(request)
    if isinstance(strategy, ImperativeFetch):
        if controller is None:
            raise ValueError("An imperative fetch strategy needs a FetchController")
        return controller.load(request)
    raise TypeError(f"Unsupported fetch strategy: {type(strategy).__name__}")
