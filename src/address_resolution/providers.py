"""Contracts with the persistence layer, plus an in-memory implementation."""
from __future__ import annotations

import json
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Protocol

from .components import AddressRecord
from .errors import AddressResolutionError
from .normalize import dedup_normalize, join_fields

LOCATION_TYPES = ("PICKUP", "DROP", "BOTH")


class RecordProvider(Protocol):
    """What the engine needs from the store that owns customers and addresses."""

    def fetch_customer_addresses(self, customer_name: str) -> List[AddressRecord]:
        ...

    def fetch_all_customers(self) -> List[str]:
        ...

    def fetch_customer_locations(self, customer_name: str) -> Dict[str, List[str]]:
        ...

    def persist_new_address(
        self,
        customer_name: str,
        location_name: str,
        street: str,
        city: str,
        state: str,
    ) -> int:
        ...


class InMemoryRecordProvider:
    """Thread-safe dictionary-backed provider.

    Every address record also counts as a ``BOTH`` location of its customer;
    extra location strings can be registered with :meth:`add_location`.
    Listeners registered with :meth:`add_listener` are called after each
    mutation.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._customers: Dict[str, None] = {}
        self._addresses: Dict[str, List[AddressRecord]] = {}
        self._locations: Dict[str, Dict[str, List[str]]] = {}
        self._listeners: List[Callable[[], None]] = []
        self._next_id = 1

    # ------------------------------------------------------------------
    # RecordProvider
    # ------------------------------------------------------------------
    def fetch_customer_addresses(self, customer_name: str) -> List[AddressRecord]:
        with self._lock:
            return list(self._addresses.get(customer_name, []))

    def fetch_all_customers(self) -> List[str]:
        with self._lock:
            return list(self._customers)

    def fetch_customer_locations(self, customer_name: str) -> Dict[str, List[str]]:
        with self._lock:
            locations = {kind: list(values) for kind, values in self._locations.get(customer_name, {}).items()}
            records = list(self._addresses.get(customer_name, []))
        both = locations.setdefault("BOTH", [])
        seen = {dedup_normalize(value) for value in both}
        for record in records:
            text = join_fields([record.street, record.city, record.state], separator=", ")
            key = dedup_normalize(text)
            if key and key not in seen:
                seen.add(key)
                both.append(text)
        return locations

    def persist_new_address(
        self,
        customer_name: str,
        location_name: str,
        street: str,
        city: str,
        state: str,
    ) -> int:
        record = self.add_address(
            AddressRecord(
                id=None,
                customer_name=customer_name,
                location_name=location_name,
                street=street,
                city=city,
                state=state,
            )
        )
        if record.id is None:
            raise AddressResolutionError(f"no id assigned to new address for '{customer_name}'")
        return record.id

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def add_listener(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def add_customer(self, customer_name: str) -> None:
        with self._lock:
            self._customers.setdefault(customer_name, None)
        self._notify()

    def add_address(self, record: AddressRecord) -> AddressRecord:
        """Store ``record``, assigning an id when it has none."""
        with self._lock:
            if record.id is None:
                record = replace(record, id=self._next_id)
            self._next_id = max(self._next_id, record.id + 1)
            self._customers.setdefault(record.customer_name, None)
            self._addresses.setdefault(record.customer_name, []).append(record)
        self._notify()
        return record

    def add_location(self, customer_name: str, location_type: str, location: str) -> None:
        kind = location_type.upper()
        if kind not in LOCATION_TYPES:
            raise ValueError(f"Unknown location type '{location_type}'")
        with self._lock:
            self._customers.setdefault(customer_name, None)
            values = self._locations.setdefault(customer_name, {}).setdefault(kind, [])
            key = dedup_normalize(location)
            if key and all(dedup_normalize(value) != key for value in values):
                values.append(location)
        self._notify()

    def delete_customer(self, customer_name: str) -> None:
        with self._lock:
            self._customers.pop(customer_name, None)
            self._addresses.pop(customer_name, None)
            self._locations.pop(customer_name, None)
        self._notify()

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for callback in listeners:
            callback()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "InMemoryRecordProvider":
        """Build a provider from ``{"customers": {name: {"addresses": [...], "locations": {...}}}}``."""
        provider = cls()
        for name, body in (data.get("customers") or {}).items():
            provider.add_customer(name)
            body = body or {}
            for entry in body.get("addresses") or []:
                provider.add_address(
                    AddressRecord(
                        id=entry.get("id"),
                        customer_name=name,
                        location_name=entry.get("location_name") or "",
                        street=entry.get("street") or "",
                        city=entry.get("city") or "",
                        state=entry.get("state") or "",
                        zip=entry.get("zip") or "",
                        is_default_pickup=bool(entry.get("default_pickup", False)),
                        is_default_drop=bool(entry.get("default_drop", False)),
                    )
                )
            for kind, values in (body.get("locations") or {}).items():
                for value in values or []:
                    provider.add_location(name, kind, value)
        return provider

    @classmethod
    def from_json(cls, path: Path | str) -> "InMemoryRecordProvider":
        with open(path, "r", encoding="utf-8") as handle:
            return cls.from_mapping(json.load(handle))
