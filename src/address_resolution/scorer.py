from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from rapidfuzz import fuzz

from .components import AddressRecord
from .normalize import search_normalize

# Additive point system. The weights are a tunable heuristic with no
# empirical calibration behind them; they only need to keep the ordering
# guarantees checked in tests/test_ranker.py.
_POINTS = {
    "exact": 100.0,
    "prefix": 50.0,
    "substring": 30.0,
    "token_prefix": 20.0,
    "token_substring": 10.0,
    "default_location": 25.0,
    "named_location": 15.0,
    "length_penalty": 0.5,
}

CUSTOMER_PREFIX_FLOOR = 90.0
_TEXT_KEYS = ("exact", "prefix", "substring", "tokens")


@dataclass(frozen=True)
class ScoreBreakdown:
    score: float
    raw_score: float
    contributions: Dict[str, float]

    @property
    def matched(self) -> bool:
        """True when some part of the query text was found in the candidate."""
        return any(key in self.contributions for key in _TEXT_KEYS)


def score_breakdown(
    query: str,
    candidate_text: str,
    candidate: AddressRecord,
    is_pickup: bool = True,
) -> ScoreBreakdown:
    """Score a search-normalized query against a search-normalized candidate."""

    contributions: Dict[str, float] = {}

    if query and candidate_text == query:
        contributions["exact"] = _POINTS["exact"]
    if query and candidate_text.startswith(query):
        contributions["prefix"] = _POINTS["prefix"]
    if query and query in candidate_text:
        contributions["substring"] = _POINTS["substring"]

    token_points = 0.0
    candidate_tokens = candidate_text.split()
    for query_token in query.split():
        for token in candidate_tokens:
            if token.startswith(query_token):
                token_points += _POINTS["token_prefix"]
            if query_token in token:
                token_points += _POINTS["token_substring"]
    if token_points:
        contributions["tokens"] = token_points

    if candidate.is_default_for(is_pickup):
        contributions["default_location"] = _POINTS["default_location"]
    if candidate.location_name and candidate.location_name.strip():
        contributions["named_location"] = _POINTS["named_location"]

    length_gap = abs(len(candidate_text) - len(query))
    if length_gap:
        contributions["length_penalty"] = -_POINTS["length_penalty"] * length_gap

    raw = sum(contributions.values())
    return ScoreBreakdown(score=max(0.0, raw), raw_score=raw, contributions=contributions)


def score(
    query: str,
    candidate_text: str,
    candidate: AddressRecord,
    is_pickup: bool = True,
) -> float:
    return score_breakdown(query, candidate_text, candidate, is_pickup).score


def customer_name_score(query: str, name: str) -> float:
    """Similarity of a typed customer query to a roster name, 0..100."""
    query_norm = search_normalize(query)
    name_norm = search_normalize(name)
    if not query_norm or not name_norm:
        return 0.0
    if query_norm == name_norm:
        return 100.0
    similarity = float(fuzz.WRatio(query_norm, name_norm))
    if name_norm.startswith(query_norm):
        similarity = max(similarity, CUSTOMER_PREFIX_FLOOR)
    return similarity
