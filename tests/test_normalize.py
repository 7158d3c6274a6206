from address_resolution.components import AddressRecord
from address_resolution.normalize import (
    NormalizationMode,
    dedup_key,
    dedup_normalize,
    format_address,
    location_key,
    normalize,
    normalize_state,
    search_normalize,
)

SAMPLES = [
    "",
    "   ",
    "123 Main St, Chicago, IL",
    "  12  Market   Street.;Springfield ",
    "a . b , c ; d",
    "St",
    "Avenue of the Stars Blvd.",
    "Warehouse #4\tDock B",
]


def test_search_normalize_lowercases_and_collapses():
    assert search_normalize("  123  MAIN St.,  Chicago;IL ") == "123 main st chicago il"


def test_search_normalize_keeps_street_suffixes():
    assert search_normalize("500 Elm Road") == "500 elm road"


def test_dedup_normalize_drops_street_suffixes():
    assert dedup_normalize("12 Market St.") == dedup_normalize("12 market STREET") == "12 market"
    assert dedup_normalize("9 Ocean Blvd, Miami") == "9 ocean miami"


def test_empty_input_yields_empty_key():
    assert normalize(None) == ""
    assert normalize("", NormalizationMode.DEDUP) == ""
    assert search_normalize(" ,;. ") == ""


def test_normalization_is_idempotent_in_both_modes():
    for mode in NormalizationMode:
        for sample in SAMPLES:
            once = normalize(sample, mode)
            assert normalize(once, mode) == once


def test_dedup_key_ignores_formatting_differences():
    assert dedup_key("12 Market St.", "Springfield", "IL") == dedup_key("12  market street", "springfield", "il")
    assert dedup_key("12 Market St", "Springfield", "IL") != dedup_key("14 Market St", "Springfield", "IL")


def test_format_address_and_location_key():
    record = AddressRecord(id=1, customer_name="Acme", street="123 Main St", city="Chicago", state="IL", zip="60601-1234")
    assert format_address(record) == "123 Main St, Chicago, IL 60601"
    assert location_key(record) == "123 main st chicago il"


def test_normalize_state():
    assert normalize_state(" il ") == "IL"
    assert normalize_state("new  york") == "New York"
    assert normalize_state(None) == ""
