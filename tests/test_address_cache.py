import logging

from address_resolution.address_cache import AddressCache
from address_resolution.components import AddressRecord


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class RecordingProvider:
    def __init__(self, on_fetch=None):
        self.calls = []
        self.on_fetch = on_fetch

    def fetch_customer_addresses(self, customer_name):
        self.calls.append(customer_name)
        if self.on_fetch is not None:
            self.on_fetch()
        return [AddressRecord(id=len(self.calls), customer_name=customer_name, street="1 Main St")]


def test_records_are_reused_until_ttl_expires():
    clock = FakeClock()
    provider = RecordingProvider()
    cache = AddressCache(provider, ttl=30.0, clock=clock)

    first = cache.addresses_for("Acme")
    clock.now += 29.999
    assert cache.addresses_for("Acme") == first
    assert provider.calls == ["Acme"]

    clock.now += 0.002
    cache.addresses_for("Acme")
    assert provider.calls == ["Acme", "Acme"]
    assert cache.fetch_count == 2


def test_least_recently_used_customer_is_evicted():
    provider = RecordingProvider()
    cache = AddressCache(provider, capacity=2, clock=FakeClock())
    cache.addresses_for("A")
    cache.addresses_for("B")
    cache.addresses_for("A")
    cache.addresses_for("C")
    assert len(cache) == 2
    assert provider.calls == ["A", "B", "C"]

    cache.addresses_for("A")
    assert provider.calls == ["A", "B", "C"]
    cache.addresses_for("B")
    assert provider.calls == ["A", "B", "C", "B"]


def test_invalidating_one_customer_keeps_the_others():
    provider = RecordingProvider()
    cache = AddressCache(provider, clock=FakeClock())
    cache.addresses_for("A")
    cache.addresses_for("B")
    cache.invalidate("A")
    cache.addresses_for("A")
    cache.addresses_for("B")
    assert provider.calls == ["A", "B", "A"]

    cache.invalidate()
    assert len(cache) == 0


def test_result_fetched_across_an_invalidation_is_not_kept():
    cache = None

    def mutate():
        if len(provider.calls) == 1:
            cache.invalidate("Acme")

    provider = RecordingProvider(on_fetch=mutate)
    cache = AddressCache(provider, clock=FakeClock())
    assert cache.addresses_for("Acme")[0].id == 1
    assert cache.addresses_for("Acme")[0].id == 2
    assert cache.addresses_for("Acme")[0].id == 2
    assert provider.calls == ["Acme", "Acme"]


def test_slow_lookup_is_logged(monkeypatch, caplog):
    monkeypatch.setattr("address_resolution.address_cache.SLOW_FETCH_SECONDS", 0.0)
    cache = AddressCache(RecordingProvider(), clock=FakeClock())
    with caplog.at_level(logging.WARNING, logger="address_resolution.address_cache"):
        cache.addresses_for("Acme")
    assert "Slow address lookup for 'Acme'" in caplog.text
