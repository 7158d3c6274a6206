from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .components import AddressRecord, CustomerSuggestion, ScoredSuggestion
from .normalize import record_search_text, search_normalize
from .scorer import customer_name_score, score_breakdown

DEFAULT_MAX_SUGGESTIONS = 8


def _sort_key(suggestion: ScoredSuggestion, is_pickup: bool) -> Tuple:
    record = suggestion.record
    return (
        -suggestion.score,
        0 if record.is_default_for(is_pickup) else 1,
        len(suggestion.normalized),
        suggestion.normalized,
        record.customer_name,
        -1 if record.id is None else record.id,
    )


def rank(
    candidates: Iterable[AddressRecord],
    query: str,
    is_pickup: bool = True,
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
) -> List[ScoredSuggestion]:
    """Order candidates by relevance to ``query``.

    Ties go to the record that is the default for the pickup/drop side, then
    to the shorter normalized text, then lexical order, so identical input
    always yields identical output. Candidates that score zero or share no
    text with the query are dropped; an empty result means "hide suggestions".
    """
    query_norm = search_normalize(query)
    if not query_norm or max_suggestions <= 0:
        return []

    scored: List[ScoredSuggestion] = []
    for record in candidates:
        text = record_search_text(record)
        breakdown = score_breakdown(query_norm, text, record, is_pickup)
        if breakdown.score <= 0 or not breakdown.matched:
            continue
        scored.append(ScoredSuggestion(record=record, score=breakdown.score, normalized=text))

    scored.sort(key=lambda s: _sort_key(s, is_pickup))
    return scored[:max_suggestions]


def rank_customers(
    roster: Sequence[str],
    query: str,
    cutoff: float = 65.0,
    limit: int = 10,
) -> List[CustomerSuggestion]:
    if not search_normalize(query) or limit <= 0:
        return []
    matches: List[CustomerSuggestion] = []
    for name in dict.fromkeys(roster):
        similarity = customer_name_score(query, name)
        if similarity < cutoff:
            continue
        matches.append(CustomerSuggestion(name=name, score=similarity))
    matches.sort(key=lambda m: (-m.score, m.name.casefold(), m.name))
    return matches[:limit]
