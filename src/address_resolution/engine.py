from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .address_cache import AddressCache
from .autolink import AutoLinkResolver
from .components import (
    AddressRecord,
    AutoLinkResult,
    CustomerSuggestion,
    FieldContext,
    FieldKind,
    QueryToken,
    SavedAddress,
    ScoredSuggestion,
)
from .dispatcher import FieldDispatcher, QueryDispatcher, Sink
from .errors import ConfigurationError
from .location_index import LocationIndex
from .normalize import dedup_key, normalize_state
from .providers import RecordProvider
from .ranker import rank, rank_customers
from .sources import CustomerAddressSource, IndexedLocationSource

logger = logging.getLogger(__name__)

ENV_PREFIX = "ADDRESS_RESOLUTION_"


@dataclass
class EngineConfig:
    max_suggestions: int = 8
    max_customer_suggestions: int = 10
    customer_score_cutoff: float = 65.0
    index_ttl: float = 30.0
    min_query_length: int = 1
    customer_debounce: float = 0.15
    address_debounce: float = 0.25
    location_debounce: float = 0.30
    max_workers: int = 4
    address_cache_size: int = 256

    def debounce_for(self, kind: FieldKind) -> float:
        if kind == FieldKind.CUSTOMER:
            return self.customer_debounce
        if kind == FieldKind.LOCATION:
            return self.location_debounce
        return self.address_debounce

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Read ``ADDRESS_RESOLUTION_<FIELD>`` overrides, e.g. ``ADDRESS_RESOLUTION_INDEX_TTL=60``."""
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for spec in fields(cls):
            raw = environ.get(ENV_PREFIX + spec.name.upper())
            if raw is None or not raw.strip():
                continue
            caster = int if spec.type in ("int", int) else float
            try:
                values[spec.name] = caster(raw.strip())
            except ValueError as exc:
                raise ConfigurationError(
                    f"{ENV_PREFIX}{spec.name.upper()} must be a number, got '{raw}'"
                ) from exc
        return cls(**values)


class AddressResolutionEngine:
    """Type-ahead address suggestions and customer auto-linking.

    One engine is built per record provider and shared by every field of the
    dialogs using it; it owns the location index and the worker pool.
    """

    def __init__(
        self,
        provider: RecordProvider,
        config: EngineConfig | None = None,
        *,
        index: Optional[LocationIndex] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.provider = provider
        self.index = index or LocationIndex(provider, ttl=self.config.index_ttl)
        self.resolver = AutoLinkResolver(self.index)
        self.dispatcher = QueryDispatcher(max_workers=self.config.max_workers)
        self.addresses = AddressCache(provider, ttl=self.config.index_ttl, capacity=self.config.address_cache_size)
        self._address_source = CustomerAddressSource(self.addresses)
        self._location_source = IndexedLocationSource(self.index)

        add_listener: Optional[Callable[[Callable[[], None]], None]] = getattr(provider, "add_listener", None)
        self._subscribed = callable(add_listener)
        if self._subscribed:
            add_listener(self.notify_changed)

    # ------------------------------------------------------------------
    # Synchronous lookups
    # ------------------------------------------------------------------
    def suggest_addresses(
        self,
        query: str,
        customer: Optional[str] = None,
        is_pickup: bool = True,
    ) -> List[ScoredSuggestion]:
        """Rank the customer's addresses, or every indexed location when no customer is set."""
        if not self._long_enough(query):
            return []
        context = FieldContext(
            kind=FieldKind.ADDRESS if customer else FieldKind.LOCATION,
            is_pickup=is_pickup,
            customer=customer,
        )
        source = self._address_source if customer else self._location_source
        return rank(
            source.candidates(context),
            query,
            is_pickup=is_pickup,
            max_suggestions=self.config.max_suggestions,
        )

    def suggest_customers(self, query: str) -> List[CustomerSuggestion]:
        if not self._long_enough(query):
            return []
        return rank_customers(
            self.index.all_customers(),
            query,
            cutoff=self.config.customer_score_cutoff,
            limit=self.config.max_customer_suggestions,
        )

    def resolve_location(self, location: str, typed_customer: Optional[str] = None) -> AutoLinkResult:
        return self.resolver.resolve(location, typed_customer=typed_customer)

    def default_address(self, customer: str, is_pickup: bool = True) -> Optional[AddressRecord]:
        """The customer's default pickup/drop address, else their first one."""
        records = self.addresses.addresses_for(customer)
        if not records:
            return None
        for record in records:
            if record.is_default_for(is_pickup):
                return record
        return records[0]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def commit_address(
        self,
        customer: str,
        location_name: str,
        street: str,
        city: str,
        state: str,
    ) -> SavedAddress:
        """Save a manually typed address unless the customer already has it."""
        customer = customer.strip()
        location_name = (location_name or "").strip()
        street = " ".join((street or "").split())
        city = " ".join((city or "").split())
        state = normalize_state(state)
        if not customer:
            raise ValueError("customer is required to save an address")

        key = dedup_key(street, city, state)
        if not key:
            raise ValueError("street, city or state is required to save an address")
        for record in self.addresses.addresses_for(customer):
            if dedup_key(record.street, record.city, record.state) == key and record.id is not None:
                logger.debug("Address for '%s' already on file as #%s", customer, record.id)
                return SavedAddress(record_id=record.id, created=False)

        record_id = self.provider.persist_new_address(customer, location_name, street, city, state)
        logger.info("Saved new address #%s for '%s'", record_id, customer)
        self.notify_changed(customer)
        return SavedAddress(record_id=record_id, created=True)

    def notify_changed(self, customer: Optional[str] = None) -> None:
        """Mutation signal from the data layer; with no customer every cached entry is dropped."""
        self.addresses.invalidate(customer)
        self.index.invalidate()

    # ------------------------------------------------------------------
    # Asynchronous fields
    # ------------------------------------------------------------------
    def open_field(
        self,
        field_id: str,
        kind: FieldKind,
        sink: Sink,
        *,
        is_pickup: bool = True,
        customer: Optional[str] = None,
        debounce: Optional[float] = None,
    ) -> FieldDispatcher:
        context = FieldContext(kind=kind, is_pickup=is_pickup, customer=customer)
        return self.dispatcher.open_field(
            field_id,
            self._run_query,
            sink,
            debounce=self.config.debounce_for(kind) if debounce is None else debounce,
            context=context,
            min_query_length=self.config.min_query_length,
        )

    def close_field(self, field_id: str) -> None:
        self.dispatcher.close_field(field_id)

    def shutdown(self) -> None:
        remove_listener = getattr(self.provider, "remove_listener", None)
        if self._subscribed and callable(remove_listener):
            remove_listener(self.notify_changed)
        self._subscribed = False
        self.dispatcher.shutdown()
        self.index.close()

    def _run_query(self, token: QueryToken) -> Sequence[Any]:
        context = token.context
        if context.kind == FieldKind.CUSTOMER:
            return self.suggest_customers(token.query_text)
        customer = context.customer if context.kind == FieldKind.ADDRESS else None
        return self.suggest_addresses(token.query_text, customer=customer, is_pickup=context.is_pickup)

    def _long_enough(self, query: Optional[str]) -> bool:
        return len((query or "").strip()) >= max(1, self.config.min_query_length)
