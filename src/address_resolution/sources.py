from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from .address_cache import AddressCache
from .components import AddressRecord, FieldContext
from .location_index import LocationIndex


class SuggestionSource(ABC):
    """Produces the candidate records a query is ranked against."""

    name: str

    @abstractmethod
    def candidates(self, context: FieldContext) -> List[AddressRecord]:
        raise NotImplementedError


class CustomerAddressSource(SuggestionSource):
    name = "customer"

    def __init__(self, addresses: AddressCache) -> None:
        self.addresses = addresses

    def candidates(self, context: FieldContext) -> List[AddressRecord]:
        if not context.customer:
            return []
        return self.addresses.addresses_for(context.customer)


class IndexedLocationSource(SuggestionSource):
    """Every location in the index, for fields with no customer selected.

    A location owned by exactly one customer carries that customer's name;
    shared locations carry none and are resolved after selection.
    """

    name = "location_index"

    def __init__(self, index: LocationIndex) -> None:
        self.index = index

    def candidates(self, context: FieldContext) -> List[AddressRecord]:
        snapshot = self.index.snapshot()
        records: List[AddressRecord] = []
        for key in sorted(snapshot.locations):
            owners = snapshot.location_to_customers.get(key, frozenset())
            records.append(
                AddressRecord(
                    id=None,
                    customer_name=next(iter(owners)) if len(owners) == 1 else "",
                    street=snapshot.display.get(key, key),
                )
            )
        return records
