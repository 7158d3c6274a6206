"""Reverse index from location keys to the customers that use them."""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Set, Tuple

from .components import LocationIndexEntry
from .errors import IndexRebuildFailure
from .normalize import search_normalize
from .providers import RecordProvider

logger = logging.getLogger(__name__)

DEFAULT_TTL = 30.0


@dataclass(frozen=True)
class IndexSnapshot:
    """An immutable, fully built generation of the index."""

    locations: FrozenSet[str] = frozenset()
    location_to_customers: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    display: Mapping[str, str] = field(default_factory=dict)
    customers: Tuple[str, ...] = ()
    built_at: float = float("-inf")


EMPTY_SNAPSHOT = IndexSnapshot()


class LocationIndex:
    """TTL-bounded location -> customers index over a :class:`RecordProvider`.

    Readers always get a complete snapshot. A snapshot younger than ``ttl`` is
    served as is. An expired one is still served while a single background
    rebuild replaces it; only the first read after construction, and the first
    read after :meth:`invalidate`, rebuild on the calling thread. Concurrent
    triggers share one in-flight rebuild. A failed rebuild leaves the last good
    snapshot in place.
    """

    def __init__(
        self,
        provider: RecordProvider,
        ttl: float = DEFAULT_TTL,
        *,
        clock: Callable[[], float] = time.monotonic,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._provider = provider
        self._ttl = ttl
        self._clock = clock
        self._executor = executor
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._snapshot: Optional[IndexSnapshot] = None
        self._invalidated = False
        self._generation = 0
        self._pending: Optional[Future] = None
        self.rebuild_count = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def lookup_customers_for(self, location: str) -> FrozenSet[str]:
        key = search_normalize(location)
        if not key:
            return frozenset()
        return self.snapshot().location_to_customers.get(key, frozenset())

    def entry_for(self, location: str) -> LocationIndexEntry:
        key = search_normalize(location)
        return LocationIndexEntry(location_key=key, customers=self.lookup_customers_for(key))

    def all_location_keys(self) -> List[str]:
        return sorted(self.snapshot().locations)

    def all_customers(self) -> List[str]:
        return list(self.snapshot().customers)

    def display_text(self, location_key: str) -> str:
        """The location as it was first written in the store."""
        snapshot = self.snapshot()
        return snapshot.display.get(location_key, location_key)

    def invalidate(self) -> None:
        """Mark the current snapshot stale; the next read rebuilds."""
        with self._lock:
            self._generation += 1
            self._invalidated = True
        logger.debug("Location index invalidated")

    def is_fresh(self) -> bool:
        with self._lock:
            return self._snapshot is not None and not self._is_stale(self._snapshot)

    def snapshot(self) -> IndexSnapshot:
        with self._lock:
            current = self._snapshot
            if current is not None and not self._is_stale(current):
                return current
            synchronous = current is None or self._invalidated
            future, owner = self._claim()

        if owner:
            if synchronous:
                self._run_rebuild(future)
            else:
                self._get_executor().submit(self._run_rebuild, future)
                return current  # type: ignore[return-value]
        elif current is not None:
            return current

        try:
            return future.result()
        except IndexRebuildFailure:
            return current if current is not None else EMPTY_SNAPSHOT

    def rebuild(self) -> IndexSnapshot:
        """Rebuild now (or join the rebuild in flight) and return the result.

        Raises :class:`IndexRebuildFailure` when the provider fails.
        """
        with self._lock:
            future, owner = self._claim()
        if owner:
            self._run_rebuild(future)
        return future.result()

    def wait_for_rebuild(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            pending = self._pending
        if pending is not None:
            wait([pending], timeout=timeout)

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _is_stale(self, snapshot: IndexSnapshot) -> bool:
        return self._invalidated or self._clock() - snapshot.built_at >= self._ttl

    def _claim(self) -> Tuple[Future, bool]:
        if self._pending is not None:
            return self._pending, False
        self._pending = Future()
        return self._pending, True

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="location-index")
            return self._executor

    def _run_rebuild(self, future: Future) -> None:
        with self._lock:
            generation = self._generation
        try:
            snapshot = self._build(self._clock())
        except IndexRebuildFailure as exc:
            logger.warning("Location index rebuild failed, serving last good snapshot: %s", exc)
            with self._lock:
                self._pending = None
            future.set_exception(exc)
            return

        with self._lock:
            self._snapshot = snapshot
            if generation == self._generation:
                self._invalidated = False
            self._pending = None
            self.rebuild_count += 1
        logger.info(
            "Location index rebuilt: %d locations across %d customers",
            len(snapshot.locations),
            len(snapshot.customers),
        )
        future.set_result(snapshot)

    def _build(self, built_at: float) -> IndexSnapshot:
        logger.debug("Rebuilding location index")
        mapping: Dict[str, Set[str]] = {}
        display: Dict[str, str] = {}
        try:
            roster = list(dict.fromkeys(self._provider.fetch_all_customers()))
            for customer in roster:
                locations = self._provider.fetch_customer_locations(customer) or {}
                for values in locations.values():
                    for value in values or []:
                        key = search_normalize(value)
                        if not key:
                            continue
                        mapping.setdefault(key, set()).add(customer)
                        display.setdefault(key, value.strip())
        except Exception as exc:
            raise IndexRebuildFailure(f"could not load customer locations: {exc}") from exc

        return IndexSnapshot(
            locations=frozenset(mapping),
            location_to_customers={key: frozenset(names) for key, names in mapping.items()},
            display=display,
            customers=tuple(roster),
            built_at=built_at,
        )
