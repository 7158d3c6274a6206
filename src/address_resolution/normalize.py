from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Optional

from .components import AddressRecord

US_STATE_ABBREVIATIONS = {
    "AL",
    "AK",
    "AZ",
    "AR",
    "CA",
    "CO",
    "CT",
    "DE",
    "FL",
    "GA",
    "HI",
    "ID",
    "IL",
    "IN",
    "IA",
    "KS",
    "KY",
    "LA",
    "ME",
    "MD",
    "MA",
    "MI",
    "MN",
    "MS",
    "MO",
    "MT",
    "NE",
    "NV",
    "NH",
    "NJ",
    "NM",
    "NY",
    "NC",
    "ND",
    "OH",
    "OK",
    "OR",
    "PA",
    "RI",
    "SC",
    "SD",
    "TN",
    "TX",
    "UT",
    "VT",
    "VA",
    "WA",
    "WV",
    "WI",
    "WY",
    "DC",
}

# Dropped only in dedup mode; suffix words carry signal when searching.
STREET_SUFFIX_TOKENS = {
    "st",
    "street",
    "rd",
    "road",
    "ave",
    "avenue",
    "blvd",
    "boulevard",
}

PUNCTUATION_PATTERN = re.compile(r"[.,;]")
WHITESPACE_PATTERN = re.compile(r"\s+")


class NormalizationMode(str, Enum):
    SEARCH = "search"
    DEDUP = "dedup"


def normalize(text: Optional[str], mode: NormalizationMode = NormalizationMode.SEARCH) -> str:
    """Canonical comparison form of ``text``.

    Lower-cases, replaces ``.``, ``,`` and ``;`` with spaces and collapses
    whitespace. ``DEDUP`` mode additionally removes street-suffix tokens so
    that "12 Market St" and "12 Market Street" compare equal. The result is a
    fixed point: normalizing it again returns it unchanged.
    """
    if not text:
        return ""
    value = str(text).lower()
    value = PUNCTUATION_PATTERN.sub(" ", value)
    tokens = WHITESPACE_PATTERN.split(value.strip())
    if mode == NormalizationMode.DEDUP:
        tokens = [token for token in tokens if token not in STREET_SUFFIX_TOKENS]
    return " ".join(token for token in tokens if token)


def search_normalize(text: Optional[str]) -> str:
    return normalize(text, NormalizationMode.SEARCH)


def dedup_normalize(text: Optional[str]) -> str:
    return normalize(text, NormalizationMode.DEDUP)


def join_fields(parts: Iterable[Optional[str]], separator: str = " ") -> str:
    return separator.join(part.strip() for part in parts if part and part.strip())


def dedup_key(street: Optional[str], city: Optional[str], state: Optional[str]) -> str:
    """Key used for every "is this the same address" decision."""
    return dedup_normalize(join_fields([street, city, state]))


def canonicalize_zip(value: Optional[str]) -> str:
    if not value:
        return ""
    match = re.search(r"\d{5}", str(value))
    if match:
        return match.group(0)
    return str(value).strip().upper()


def normalize_state(token: Optional[str]) -> str:
    """Upper-case two-letter codes; leave spelled-out names readable."""
    if not token:
        return ""
    token = " ".join(token.split())
    if token.upper() in US_STATE_ABBREVIATIONS:
        return token.upper()
    return token.title()


def format_address(record: AddressRecord) -> str:
    """Display form: "street, city, state zip" with empty parts left out."""
    region = join_fields([record.state, canonicalize_zip(record.zip)])
    return join_fields([record.street, record.city, region], separator=", ")


def location_key(record: AddressRecord) -> str:
    """Key of the record in the location index's key space (zip excluded)."""
    return search_normalize(join_fields([record.street, record.city, record.state]))


def record_search_text(record: AddressRecord) -> str:
    """Search-normalized location name, street, city and state."""
    return search_normalize(join_fields(record.searchable_fields()))
