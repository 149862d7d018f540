"""
Unit tests for services.tracker.resolver module.

Tests:
- Tag-mention and inline reference queries
- At-most-once insert ends recursion on duplicates and quote cycles
- Nested resolution attaches children and requests profiles
- Depth limit, already-stored targets, and unmatched responses
- Counters
"""

from unittest.mock import MagicMock

import pytest

from bangerbot.core import EventStore
from bangerbot.nips.nip10 import MentionMode
from bangerbot.services.tracker import FeedAssembler, ReferenceResolver
from tests.fixtures.events import (
    OTHER_AUTHOR,
    THIRD_AUTHOR,
    event_id,
    make_event,
    make_mention,
    nostr_uri,
)


URL = "wss://relay.example.com"


class FakePool:
    """Records point queries so tests can answer them."""

    def __init__(self, relays: int = 2) -> None:
        self.relays = relays
        self.queries: list[tuple] = []

    def query(self, event_filter, handler) -> int:
        if self.relays:
            self.queries.append((event_filter, handler))
        return self.relays

    def targets(self) -> list[str]:
        return [event_filter.ids[0] for event_filter, _ in self.queries]

    def answer(self, event, url: str = URL) -> None:
        """Deliver *event* to every query asking for its id."""
        for event_filter, handler in list(self.queries):
            if event.id in event_filter.ids:
                handler(event, url)


@pytest.fixture
def pool() -> FakePool:
    return FakePool()


@pytest.fixture
def store() -> EventStore:
    return EventStore()


@pytest.fixture
def profiles() -> MagicMock:
    return MagicMock()


@pytest.fixture
def feed() -> FeedAssembler:
    return FeedAssembler()


@pytest.fixture
def resolver(pool, store, profiles, feed) -> ReferenceResolver:
    return ReferenceResolver(pool, store, profiles, feed)


def _track(store: EventStore, feed: FeedAssembler, event) -> None:
    store.put(event)
    feed.add(event, mentioned_id=None)


class TestRequests:
    def test_mention_query(self, resolver, pool, store, feed):
        note = make_mention(1, 100)
        _track(store, feed, note)
        assert resolver.resolve(note) == 1
        event_filter, _ = pool.queries[0]
        assert event_filter.ids == (event_id(100),)
        assert event_filter.kinds == (1,)
        assert event_filter.limit == 1
        assert resolver.counters.mention_queries == 1

    def test_inline_queries(self, resolver, pool, store, feed):
        content = f"look {nostr_uri(event_id(200))} and {nostr_uri(event_id(201))}"
        note = make_mention(1, 100, content=content)
        _track(store, feed, note)
        assert resolver.resolve(note) == 3
        assert pool.targets() == [event_id(100), event_id(200), event_id(201)]
        assert resolver.counters.inline_queries == 2

    def test_inline_same_as_mention_skipped(self, resolver, pool, store, feed):
        note = make_mention(1, 100, content=f"this {nostr_uri(event_id(100))}")
        _track(store, feed, note)
        assert resolver.resolve(note) == 1
        assert pool.targets() == [event_id(100)]

    def test_no_references(self, resolver, pool):
        assert resolver.resolve(make_event(1, content="plain")) == 0
        assert pool.queries == []

    def test_already_stored_target_not_queried(self, resolver, pool, store):
        store.put(make_event(100, author=OTHER_AUTHOR))
        assert resolver.resolve(make_mention(1, 100)) == 0
        assert resolver.counters.already_stored == 1

    def test_no_connected_relays(self, store, profiles, feed):
        resolver = ReferenceResolver(FakePool(relays=0), store, profiles, feed)
        assert resolver.resolve(make_mention(1, 100)) == 0
        assert resolver.counters.mention_queries == 0

    def test_custom_note_kind(self, pool, store, profiles, feed):
        resolver = ReferenceResolver(pool, store, profiles, feed, note_kind=42)
        resolver.resolve(make_mention(1, 100))
        assert pool.queries[0][0].kinds == (42,)

    def test_strict_mode_ignores_unhinted_mention(self, pool, store, profiles, feed):
        from bangerbot.models import Tag

        resolver = ReferenceResolver(pool, store, profiles, feed, mode=MentionMode.STRICT)
        note = make_event(1, tags=(Tag(("e", event_id(100), "", "mention")),))
        assert resolver.resolve(note) == 0


class TestResolution:
    def test_resolved_event_attached_and_profile_requested(
        self, resolver, pool, store, feed, profiles
    ):
        note = make_mention(1, 100)
        _track(store, feed, note)
        resolver.resolve(note)
        pool.answer(make_event(100, author=OTHER_AUTHOR, content="original"))
        assert store.has(event_id(100))
        children = feed.get(event_id(1)).children
        assert [child.event_id for child in children] == [event_id(100)]
        profiles.ensure_fetched.assert_called_once_with(OTHER_AUTHOR)
        assert resolver.counters.resolved == 1

    def test_duplicate_delivery_is_noop(self, resolver, pool, store, feed, profiles):
        note = make_mention(1, 100)
        _track(store, feed, note)
        resolver.resolve(note)
        quoted = make_event(100, author=OTHER_AUTHOR)
        pool.answer(quoted, "wss://a.example")
        pool.answer(quoted, "wss://b.example")
        pool.answer(quoted, "wss://c.example")
        assert len(feed.get(event_id(1)).children) == 1
        assert profiles.ensure_fetched.call_count == 1
        assert resolver.counters.duplicates == 2

    def test_recursive_chain(self, resolver, pool, store, feed, profiles):
        note = make_mention(1, 100)
        _track(store, feed, note)
        resolver.resolve(note)
        pool.answer(make_mention(100, 101, author=OTHER_AUTHOR))
        pool.answer(make_event(101, author=THIRD_AUTHOR, content="root"))
        chain = [node.event_id for node in feed.get(event_id(1)).walk()]
        assert chain == [event_id(1), event_id(100), event_id(101)]
        assert [c.args[0] for c in profiles.ensure_fetched.call_args_list] == [
            OTHER_AUTHOR,
            THIRD_AUTHOR,
        ]

    def test_inline_reference_resolved_recursively(self, resolver, pool, store, feed):
        note = make_mention(1, 100)
        _track(store, feed, note)
        resolver.resolve(note)
        pool.answer(make_event(100, author=OTHER_AUTHOR, content=nostr_uri(event_id(300))))
        assert event_id(300) in pool.targets()
        pool.answer(make_event(300, author=THIRD_AUTHOR))
        assert feed.get(event_id(300)) is not None

    def test_quote_cycle_terminates(self, resolver, pool, store, feed):
        note = make_mention(1, 100)
        _track(store, feed, note)
        resolver.resolve(note)
        pool.answer(make_mention(100, 101, author=OTHER_AUTHOR))
        pool.answer(make_mention(101, 100, author=THIRD_AUTHOR))
        pool.answer(make_mention(100, 101, author=OTHER_AUTHOR))
        assert pool.targets().count(event_id(100)) == 1
        assert pool.targets().count(event_id(101)) == 1
        assert len(store) == 3

    def test_self_reference_terminates(self, resolver, pool, store, feed):
        note = make_mention(1, 1)
        _track(store, feed, note)
        assert resolver.resolve(note) == 0

    def test_unmatched_response_ignored(self, resolver, pool, store, feed):
        note = make_mention(1, 100)
        _track(store, feed, note)
        resolver.resolve(note)
        _, handler = pool.queries[0]
        handler(make_event(999, author=OTHER_AUTHOR), URL)
        handler(make_event(100, author=OTHER_AUTHOR, kind=0), URL)
        assert not store.has(event_id(999))
        assert not store.has(event_id(100))
        assert resolver.counters.unmatched == 2

    def test_evicted_parent_still_recurses(self, pool, store, profiles):
        feed = FeedAssembler(max_entries=1)
        resolver = ReferenceResolver(pool, store, profiles, feed)
        note = make_mention(1, 100)
        _track(store, feed, note)
        resolver.resolve(note)
        _track(store, feed, make_event(2))
        pool.answer(make_mention(100, 101, author=OTHER_AUTHOR))
        assert store.has(event_id(100))
        assert feed.get(event_id(100)) is None
        assert event_id(101) in pool.targets()


class TestDepthLimit:
    def _chain(self, resolver, pool, store, feed, length: int) -> None:
        note = make_mention(1, 100)
        _track(store, feed, note)
        resolver.resolve(note)
        for n in range(100, 100 + length):
            pool.answer(make_mention(n, n + 1, author=OTHER_AUTHOR))

    def test_unlimited_by_default(self, resolver, pool, store, feed):
        self._chain(resolver, pool, store, feed, 5)
        assert len(pool.queries) == 6

    def test_limit(self, pool, store, profiles, feed):
        resolver = ReferenceResolver(pool, store, profiles, feed, max_depth=2)
        self._chain(resolver, pool, store, feed, 5)
        assert pool.targets() == [event_id(100), event_id(101)]
        assert resolver.counters.depth_limited == 1
        assert len(feed.get(event_id(1)).walk()) == 3
