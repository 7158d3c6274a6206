"""Per-customer address records kept for the index TTL window."""
from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, List, Optional, Tuple

from .components import AddressRecord
from .providers import RecordProvider

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 256
SLOW_FETCH_SECONDS = 0.5


class AddressCache:
    """Bounded LRU of ``fetch_customer_addresses`` results.

    Entries older than ``ttl`` are fetched again. When more than ``capacity``
    customers are cached the least recently used entry is dropped.
    """

    def __init__(
        self,
        provider: RecordProvider,
        ttl: float = 30.0,
        capacity: int = DEFAULT_CAPACITY,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._ttl = ttl
        self._capacity = max(1, capacity)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, Tuple[float, List[AddressRecord]]]" = OrderedDict()
        self._generation = 0
        self.fetch_count = 0

    def addresses_for(self, customer_name: str) -> List[AddressRecord]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(customer_name)
            if entry is not None and now - entry[0] < self._ttl:
                self._entries.move_to_end(customer_name)
                return list(entry[1])
            generation = self._generation

        started = time.monotonic()
        records = list(self._provider.fetch_customer_addresses(customer_name))
        elapsed = time.monotonic() - started
        if elapsed >= SLOW_FETCH_SECONDS:
            logger.warning("Slow address lookup for '%s': %.2fs", customer_name, elapsed)

        with self._lock:
            self.fetch_count += 1
            # an invalidation during the fetch makes this result unsafe to keep
            if generation == self._generation:
                self._entries[customer_name] = (now, records)
                self._entries.move_to_end(customer_name)
                while len(self._entries) > self._capacity:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Evicted cached addresses for '%s'", evicted)
        return list(records)

    def invalidate(self, customer_name: Optional[str] = None) -> None:
        """Drop one customer's entry, or every entry when no name is given."""
        with self._lock:
            self._generation += 1
            if customer_name is None:
                self._entries.clear()
            else:
                self._entries.pop(customer_name, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
