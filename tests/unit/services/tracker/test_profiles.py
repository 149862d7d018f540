"""
Unit tests for services.tracker.profiles module.

Tests:
- ensure_fetched() issues at most one query per author
- Deferred fetch when no relay is connected
- Profile parsing, placeholders, and newest-wins merging
- Listener notification and label fallback
"""

from unittest.mock import MagicMock

import pytest

from bangerbot.models import UNKNOWN_USER
from bangerbot.services.tracker import ProfileCache
from tests.fixtures.events import OTHER_AUTHOR, THIRD_AUTHOR, make_event, make_metadata


URL = "wss://relay.example.com"


@pytest.fixture
def pool() -> MagicMock:
    pool = MagicMock()
    pool.query.return_value = 2
    return pool


@pytest.fixture
def cache(pool) -> ProfileCache:
    return ProfileCache(pool)


def _handler(pool: MagicMock, index: int = -1):
    return pool.query.call_args_list[index].args[1]


class TestEnsureFetched:
    def test_issues_metadata_query(self, cache, pool):
        assert cache.ensure_fetched(OTHER_AUTHOR) is True
        event_filter = pool.query.call_args.args[0]
        assert event_filter.kinds == (0,)
        assert event_filter.authors == (OTHER_AUTHOR,)
        assert event_filter.limit == 1
        assert cache.is_pending(OTHER_AUTHOR)
        assert cache.queries == 1

    def test_pending_not_requeried(self, cache, pool):
        cache.ensure_fetched(OTHER_AUTHOR)
        assert cache.ensure_fetched(OTHER_AUTHOR) is False
        assert pool.query.call_count == 1

    def test_cached_not_requeried(self, cache, pool):
        cache.ensure_fetched(OTHER_AUTHOR)
        _handler(pool)(make_metadata(1, OTHER_AUTHOR), URL)
        assert cache.ensure_fetched(OTHER_AUTHOR) is False
        assert pool.query.call_count == 1

    def test_deferred_without_relays(self, cache, pool):
        pool.query.return_value = 0
        assert cache.ensure_fetched(OTHER_AUTHOR) is False
        assert not cache.is_pending(OTHER_AUTHOR)
        pool.query.return_value = 1
        assert cache.ensure_fetched(OTHER_AUTHOR) is True

    def test_custom_metadata_kind(self, pool):
        ProfileCache(pool, metadata_kind=10).ensure_fetched(OTHER_AUTHOR)
        assert pool.query.call_args.args[0].kinds == (10,)

    def test_distinct_authors(self, cache, pool):
        cache.ensure_fetched(OTHER_AUTHOR)
        cache.ensure_fetched(THIRD_AUTHOR)
        assert pool.query.call_count == 2


class TestResponses:
    def test_parsed_profile(self, cache, pool):
        listener = MagicMock()
        cache.subscribe(listener)
        cache.ensure_fetched(OTHER_AUTHOR)
        _handler(pool)(make_metadata(1, OTHER_AUTHOR, name="bob"), URL)
        assert cache.get(OTHER_AUTHOR).display_name == "bob"
        assert cache.label(OTHER_AUTHOR) == "bob"
        assert not cache.is_pending(OTHER_AUTHOR)
        assert OTHER_AUTHOR in cache
        assert len(cache) == 1
        listener.assert_called_once_with(OTHER_AUTHOR)

    def test_unparseable_is_placeholder(self, cache, pool):
        cache.ensure_fetched(OTHER_AUTHOR)
        _handler(pool)(make_event(1, author=OTHER_AUTHOR, kind=0, content="{broken"), URL)
        profile = cache.get(OTHER_AUTHOR)
        assert profile.placeholder is True
        assert cache.label(OTHER_AUTHOR) == UNKNOWN_USER

    def test_newer_replaces_older(self, cache, pool):
        cache.ensure_fetched(OTHER_AUTHOR)
        handler = _handler(pool)
        handler(make_metadata(1, OTHER_AUTHOR, name="old", created_at=10), URL)
        handler(make_metadata(2, OTHER_AUTHOR, name="new", created_at=20), "wss://b.example")
        assert cache.label(OTHER_AUTHOR) == "new"

    def test_older_ignored(self, cache, pool):
        cache.ensure_fetched(OTHER_AUTHOR)
        handler = _handler(pool)
        handler(make_metadata(2, OTHER_AUTHOR, name="new", created_at=20), URL)
        handler(make_metadata(1, OTHER_AUTHOR, name="old", created_at=10), "wss://b.example")
        assert cache.label(OTHER_AUTHOR) == "new"

    def test_placeholder_never_replaces_parsed(self, cache, pool):
        cache.ensure_fetched(OTHER_AUTHOR)
        handler = _handler(pool)
        handler(make_metadata(1, OTHER_AUTHOR, name="bob", created_at=10), URL)
        handler(make_event(2, author=OTHER_AUTHOR, kind=0, content="nope", created_at=99), URL)
        assert cache.label(OTHER_AUTHOR) == "bob"

    def test_parsed_replaces_placeholder(self, cache, pool):
        cache.ensure_fetched(OTHER_AUTHOR)
        handler = _handler(pool)
        handler(make_event(2, author=OTHER_AUTHOR, kind=0, content="nope", created_at=99), URL)
        handler(make_metadata(1, OTHER_AUTHOR, name="bob", created_at=10), URL)
        assert cache.label(OTHER_AUTHOR) == "bob"

    def test_wrong_author_ignored(self, cache, pool):
        cache.ensure_fetched(OTHER_AUTHOR)
        _handler(pool)(make_metadata(1, THIRD_AUTHOR), URL)
        assert OTHER_AUTHOR not in cache
        assert cache.is_pending(OTHER_AUTHOR)

    def test_wrong_kind_ignored(self, cache, pool):
        cache.ensure_fetched(OTHER_AUTHOR)
        _handler(pool)(make_event(1, author=OTHER_AUTHOR, kind=1, content="{}"), URL)
        assert OTHER_AUTHOR not in cache


class TestLabel:
    def test_unresolved_short_key(self, cache):
        assert cache.label(OTHER_AUTHOR) == OTHER_AUTHOR[:8] + "..."

    def test_get_missing(self, cache):
        assert cache.get(OTHER_AUTHOR) is None
