"""
Unit tests for models.event module.

Tests:
- Event field validation in __post_init__
- Event.from_dict() wire parsing and missing fields
- Event.from_nostr() conversion from nostr_sdk objects
- tags_named() filtering
"""

from unittest.mock import MagicMock

import pytest

from bangerbot.models import Event, Tag


ID = "ab" * 32
PUBKEY = "cd" * 32


def _wire(**overrides):
    data = {
        "id": ID,
        "pubkey": PUBKEY,
        "created_at": 1700000000,
        "kind": 1,
        "tags": [["e", "ef" * 32, "", "mention"]],
        "content": "look at this",
    }
    data.update(overrides)
    return data


def _nostr_event(tags):
    event = MagicMock()
    event.id.return_value.to_hex.return_value = ID
    event.author.return_value.to_hex.return_value = PUBKEY
    event.created_at.return_value.as_secs.return_value = 1700000000
    event.kind.return_value.as_u16.return_value = 1
    event.content.return_value = "hi"
    sdk_tags = []
    for values in tags:
        tag = MagicMock()
        tag.as_vec.return_value = values
        sdk_tags.append(tag)
    event.tags.return_value.to_vec.return_value = sdk_tags
    return event


class TestValidation:
    def test_valid(self):
        event = Event(id=ID, author=PUBKEY, created_at=1, kind=1, content="")
        assert event.tags == ()

    def test_id_wrong_length(self):
        with pytest.raises(ValueError, match="id must be 64"):
            Event(id="ab", author=PUBKEY, created_at=1, kind=1, content="")

    def test_id_uppercase_rejected(self):
        with pytest.raises(ValueError, match="lowercase hex"):
            Event(id="AB" * 32, author=PUBKEY, created_at=1, kind=1, content="")

    def test_author_not_hex(self):
        with pytest.raises(ValueError):
            Event(id=ID, author="zz" * 32, created_at=1, kind=1, content="")

    def test_negative_timestamp(self):
        with pytest.raises(ValueError, match="created_at"):
            Event(id=ID, author=PUBKEY, created_at=-1, kind=1, content="")

    def test_bool_kind_rejected(self):
        with pytest.raises(TypeError, match="kind"):
            Event(id=ID, author=PUBKEY, created_at=1, kind=True, content="")

    def test_kind_out_of_range(self):
        with pytest.raises(ValueError, match="kind"):
            Event(id=ID, author=PUBKEY, created_at=1, kind=70000, content="")

    def test_content_must_be_str(self):
        with pytest.raises(TypeError, match="content"):
            Event(id=ID, author=PUBKEY, created_at=1, kind=1, content=None)  # type: ignore[arg-type]

    def test_tags_must_be_tag_instances(self):
        with pytest.raises(TypeError):
            Event(id=ID, author=PUBKEY, created_at=1, kind=1, content="", tags=(("e", "x"),))  # type: ignore[arg-type]


class TestFromDict:
    def test_valid(self):
        event = Event.from_dict(_wire())
        assert event.id == ID
        assert event.author == PUBKEY
        assert event.kind == 1
        assert event.tags[0].get(3) == "mention"

    def test_missing_tags_is_empty(self):
        data = _wire()
        del data["tags"]
        assert Event.from_dict(data).tags == ()

    def test_null_tags_is_empty(self):
        assert Event.from_dict(_wire(tags=None)).tags == ()

    @pytest.mark.parametrize("field", ["id", "pubkey", "created_at", "kind", "content"])
    def test_missing_field(self, field):
        data = _wire()
        del data[field]
        with pytest.raises(ValueError, match=field):
            Event.from_dict(data)

    def test_tags_not_a_list(self):
        with pytest.raises(TypeError, match="tags must be a list"):
            Event.from_dict(_wire(tags="e"))

    def test_malformed_tag(self):
        with pytest.raises(TypeError):
            Event.from_dict(_wire(tags=[["e", 1]]))

    def test_string_kind_rejected(self):
        with pytest.raises(TypeError):
            Event.from_dict(_wire(kind="1"))

    def test_not_a_mapping(self):
        with pytest.raises(TypeError):
            Event.from_dict(["not", "a", "dict"])  # type: ignore[arg-type]


class TestFromNostr:
    def test_converts(self):
        event = Event.from_nostr(_nostr_event([["e", "ef" * 32, "", "mention"], ["p", PUBKEY]]))
        assert event.id == ID
        assert event.author == PUBKEY
        assert event.created_at == 1700000000
        assert event.content == "hi"
        assert event.tags == (Tag(("e", "ef" * 32, "", "mention")), Tag(("p", PUBKEY)))

    def test_empty_tag_rejected(self):
        with pytest.raises(ValueError):
            Event.from_nostr(_nostr_event([[]]))


class TestTagsNamed:
    def test_filters_in_order(self):
        event = Event.from_dict(_wire(tags=[["e", "1"], ["p", "2"], ["e", "3"]]))
        assert [tag.value for tag in event.tags_named("e")] == ["1", "3"]

    def test_none_matching(self):
        assert Event.from_dict(_wire(tags=[])).tags_named("e") == ()
