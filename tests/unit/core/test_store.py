"""
Unit tests for core.store module.

Tests:
- At-most-once put() semantics
- Lookups, membership, iteration, and length
"""

from bangerbot.core import EventStore
from tests.fixtures.events import event_id, make_event


class TestPut:
    def test_new_event(self):
        store = EventStore()
        assert store.put(make_event(1)) is True
        assert len(store) == 1

    def test_duplicate_is_noop(self):
        store = EventStore()
        first = make_event(1, content="first")
        store.put(first)
        assert store.put(make_event(1, content="second")) is False
        assert store.get(event_id(1)) is first
        assert len(store) == 1

    def test_repeated_delivery_observes_true_once(self):
        store = EventStore()
        event = make_event(1)
        results = [store.put(event) for _ in range(5)]
        assert results.count(True) == 1


class TestLookup:
    def test_has_and_contains(self):
        store = EventStore()
        store.put(make_event(1))
        assert store.has(event_id(1))
        assert event_id(1) in store
        assert not store.has(event_id(2))

    def test_get_missing(self):
        assert EventStore().get(event_id(9)) is None

    def test_iter_yields_events(self):
        store = EventStore()
        events = [make_event(1), make_event(2)]
        for event in events:
            store.put(event)
        assert list(store) == events

    def test_repr(self):
        store = EventStore()
        store.put(make_event(1))
        assert repr(store) == "EventStore(events=1)"
