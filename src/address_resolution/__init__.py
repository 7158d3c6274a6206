"""Type-ahead address resolution engine."""

from .address_cache import AddressCache
from .autolink import AutoLinkResolver
from .components import (
    AddressRecord,
    AutoLinkResult,
    CustomerSuggestion,
    FieldContext,
    FieldKind,
    LocationIndexEntry,
    MultipleMatches,
    NoMatch,
    QueryToken,
    SavedAddress,
    ScoredSuggestion,
    SingleMatch,
)
from .dispatcher import FieldDispatcher, FieldState, QueryDispatcher
from .engine import AddressResolutionEngine, EngineConfig
from .errors import (
    AddressResolutionError,
    ConfigurationError,
    IndexRebuildFailure,
    InvalidQueryState,
    TransientFetchError,
)
from .location_index import LocationIndex
from .normalize import dedup_normalize, normalize, search_normalize
from .providers import InMemoryRecordProvider, RecordProvider
from .ranker import rank

__all__ = [
    "AddressCache",
    "AddressRecord",
    "AddressResolutionEngine",
    "AddressResolutionError",
    "AutoLinkResolver",
    "AutoLinkResult",
    "ConfigurationError",
    "CustomerSuggestion",
    "EngineConfig",
    "FieldContext",
    "FieldDispatcher",
    "FieldKind",
    "FieldState",
    "InMemoryRecordProvider",
    "IndexRebuildFailure",
    "InvalidQueryState",
    "LocationIndex",
    "LocationIndexEntry",
    "MultipleMatches",
    "NoMatch",
    "QueryDispatcher",
    "QueryToken",
    "RecordProvider",
    "SavedAddress",
    "ScoredSuggestion",
    "SingleMatch",
    "TransientFetchError",
    "dedup_normalize",
    "normalize",
    "rank",
    "search_normalize",
]
