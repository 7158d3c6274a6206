from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union


@dataclass(frozen=True)
class AddressRecord:
    """An address book entry owned by the persistence layer."""

    id: Optional[int]
    customer_name: str
    street: str = ""
    city: str = ""
    state: str = ""
    location_name: str = ""
    zip: str = ""
    is_default_pickup: bool = False
    is_default_drop: bool = False

    def searchable_fields(self) -> Tuple[str, ...]:
        return (self.location_name, self.street, self.city, self.state)

    def is_default_for(self, is_pickup: bool) -> bool:
        return self.is_default_pickup if is_pickup else self.is_default_drop


@dataclass(frozen=True)
class ScoredSuggestion:
    """A ranked address suggestion produced for a single query."""

    record: AddressRecord
    score: float
    normalized: str = ""


@dataclass(frozen=True)
class CustomerSuggestion:
    name: str
    score: float


@dataclass(frozen=True)
class LocationIndexEntry:
    location_key: str
    customers: FrozenSet[str] = frozenset()


class FieldKind(str, Enum):
    CUSTOMER = "customer"
    ADDRESS = "address"
    LOCATION = "location"


@dataclass(frozen=True)
class FieldContext:
    """What a field knows beyond its text: pickup/drop side and selected customer."""

    kind: FieldKind = FieldKind.ADDRESS
    is_pickup: bool = True
    customer: Optional[str] = None


@dataclass(frozen=True)
class QueryToken:
    """Identifies one debounced lookup attempt for a field."""

    field_id: str
    sequence_number: int
    query_text: str
    issued_at: float
    context: FieldContext = field(default_factory=FieldContext)


@dataclass(frozen=True)
class NoMatch:
    pass


@dataclass(frozen=True)
class SingleMatch:
    customer: str


@dataclass(frozen=True)
class MultipleMatches:
    """Owners of the location first, then the rest of the roster."""

    customers: Tuple[str, ...]
    match_count: int

    @property
    def matches(self) -> Tuple[str, ...]:
        return self.customers[: self.match_count]


AutoLinkResult = Union[NoMatch, SingleMatch, MultipleMatches]


@dataclass(frozen=True)
class SavedAddress:
    record_id: int
    created: bool
