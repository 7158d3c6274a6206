"""Exception taxonomy for the resolution engine."""
from __future__ import annotations


class AddressResolutionError(Exception):
    """Base class for engine errors."""


class TransientFetchError(AddressResolutionError):
    """The record store was unreachable or too slow; the lookup may be retried."""


class IndexRebuildFailure(AddressResolutionError):
    """Rebuilding the location index failed; the previous snapshot stays in use."""


class InvalidQueryState(AddressResolutionError):
    """Raised by a sink whose field no longer exists."""


class ConfigurationError(AddressResolutionError, ValueError):
    pass
