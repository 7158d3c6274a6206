from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .components import AutoLinkResult, MultipleMatches, NoMatch, SingleMatch
from .location_index import LocationIndex

logger = logging.getLogger(__name__)


def _alphabetical(names: Iterable[str]) -> List[str]:
    return sorted(names, key=lambda name: (name.casefold(), name))


class AutoLinkResolver:
    """Suggests the customer field value once a location has been picked."""

    def __init__(self, index: LocationIndex) -> None:
        self.index = index

    def resolve(self, selected_location: str, typed_customer: Optional[str] = None) -> AutoLinkResult:
        owners = self.index.lookup_customers_for(selected_location)
        if not owners:
            return NoMatch()
        if len(owners) == 1:
            customer = next(iter(owners))
            logger.debug("Location '%s' belongs only to '%s'", selected_location, customer)
            return SingleMatch(customer=customer)

        matches = _alphabetical(owners)
        typed = (typed_customer or "").strip().casefold()
        for position, name in enumerate(matches):
            if typed and name.casefold() == typed:
                matches.insert(0, matches.pop(position))
                break
        others = _alphabetical(name for name in self.index.all_customers() if name not in owners)
        return MultipleMatches(customers=tuple(matches + others), match_count=len(matches))
