from address_resolution.components import AddressRecord
from address_resolution.providers import InMemoryRecordProvider


def test_location_variants_are_stored_once_per_type():
    provider = InMemoryRecordProvider()
    provider.add_location("Beta Steel", "BOTH", "500 ELM ST, DALLAS, TX")
    provider.add_location("Beta Steel", "both", "500 Elm Street; Dallas TX")
    provider.add_location("Beta Steel", "PICKUP", "500 Elm Street; Dallas TX")
    assert provider.fetch_customer_locations("Beta Steel") == {
        "BOTH": ["500 ELM ST, DALLAS, TX"],
        "PICKUP": ["500 Elm Street; Dallas TX"],
    }


def test_address_already_listed_as_location_is_not_repeated():
    provider = InMemoryRecordProvider()
    provider.add_location("Beta Steel", "BOTH", "500 ELM ST, DALLAS, TX")
    provider.add_address(
        AddressRecord(id=None, customer_name="Beta Steel", street="500 Elm Street", city="Dallas", state="TX")
    )
    provider.add_address(
        AddressRecord(id=None, customer_name="Beta Steel", street="7 Oak Ave", city="Dallas", state="TX")
    )
    assert provider.fetch_customer_locations("Beta Steel")["BOTH"] == [
        "500 ELM ST, DALLAS, TX",
        "7 Oak Ave, Dallas, TX",
    ]


def test_persist_new_address_assigns_increasing_ids():
    provider = InMemoryRecordProvider()
    provider.add_address(AddressRecord(id=41, customer_name="Acme", street="1 Main St"))
    first = provider.persist_new_address("Acme", "Dock", "2 Main St", "Chicago", "IL")
    second = provider.persist_new_address("Acme", "", "3 Main St", "Chicago", "IL")
    assert (first, second) == (42, 43)


def test_removed_listener_is_not_called():
    provider = InMemoryRecordProvider()
    calls = []

    def listener():
        calls.append("changed")

    provider.add_listener(listener)
    provider.add_customer("Acme")
    provider.remove_listener(listener)
    provider.remove_listener(listener)
    provider.add_customer("Beta")
    assert calls == ["changed"]
