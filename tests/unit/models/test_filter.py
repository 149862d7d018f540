"""
Unit tests for models.filter module.

Tests:
- EventFilter validation of kinds, keys, and limit
- matches() semantics for empty and populated constraints
"""

import pytest

from bangerbot.models import EventFilter


ID = "ab" * 32
PUBKEY = "cd" * 32


class TestValidation:
    def test_defaults_unconstrained(self):
        event_filter = EventFilter()
        assert event_filter.kinds == ()
        assert event_filter.limit is None

    def test_invalid_author(self):
        with pytest.raises(ValueError):
            EventFilter(authors=("npub1xyz",))

    def test_invalid_id(self):
        with pytest.raises(ValueError):
            EventFilter(ids=("abc",))

    def test_kind_out_of_range(self):
        with pytest.raises(ValueError):
            EventFilter(kinds=(70000,))

    def test_zero_limit(self):
        with pytest.raises(ValueError, match="limit"):
            EventFilter(limit=0)

    def test_list_rejected(self):
        with pytest.raises(TypeError):
            EventFilter(kinds=[1])  # type: ignore[arg-type]


class TestMatches:
    def test_unconstrained_matches_all(self):
        assert EventFilter().matches(ID, PUBKEY, 7)

    def test_kind(self):
        event_filter = EventFilter(kinds=(1,))
        assert event_filter.matches(ID, PUBKEY, 1)
        assert not event_filter.matches(ID, PUBKEY, 0)

    def test_author(self):
        event_filter = EventFilter(authors=(PUBKEY,))
        assert event_filter.matches(ID, PUBKEY, 1)
        assert not event_filter.matches(ID, "ef" * 32, 1)

    def test_ids(self):
        event_filter = EventFilter(ids=(ID,), limit=1)
        assert event_filter.matches(ID, PUBKEY, 1)
        assert not event_filter.matches("ef" * 32, PUBKEY, 1)

    def test_all_constraints(self):
        event_filter = EventFilter(kinds=(1,), authors=(PUBKEY,), ids=(ID,))
        assert event_filter.matches(ID, PUBKEY, 1)
        assert not event_filter.matches(ID, PUBKEY, 0)
