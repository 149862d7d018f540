"""
Unit tests for nips.nip27 module.

Tests:
- is_candidate() syntactic pre-check
- parse_content() extraction, de-duplication, and display text
- Malformed tokens are removed from the text and never raise
"""

import pytest

from bangerbot.nips.nip19 import EventReference, ReferenceDecodeError
from bangerbot.nips.nip27 import TOKEN_PATTERN, is_candidate, parse_content
from tests.fixtures.events import event_id, nostr_uri


def _decoder(token: str) -> EventReference:
    """Decode ``nostr:neventXXXX<n>`` tokens where <n> is the id number."""
    payload = token.removeprefix("nostr:nevent")
    if payload.startswith("bad"):
        raise ReferenceDecodeError(token)
    return EventReference(event_id=event_id(int(payload.lstrip("x"))))


class TestIsCandidate:
    def test_valid(self):
        assert is_candidate("nostr:nevent1qqsabcdefgh")

    def test_too_short(self):
        assert not is_candidate("nostr:nevent1qq")

    def test_payload_too_short(self):
        assert not is_candidate("nostr:nevent123456789")

    def test_non_alphanumeric_payload(self):
        assert not is_candidate("nostr:nevent1qqsabcdefgh.")
        assert not is_candidate("nostr:nevent1qqsabc-defgh")

    def test_non_ascii_payload(self):
        assert not is_candidate("nostr:nevent1qqsabcdéfgh")

    def test_wrong_prefix(self):
        assert not is_candidate("nostr:note1qqsabcdefghijkl")


class TestTokenPattern:
    def test_token_ends_at_whitespace(self):
        assert TOKEN_PATTERN.findall("a nostr:nevent1abc\nb") == ["nostr:nevent1abc"]


class TestParseContent:
    def test_no_tokens(self):
        parsed = parse_content("  just text  ", decoder=_decoder)
        assert parsed.text == "just text"
        assert parsed.references == ()

    def test_extracts_in_order(self):
        content = "first nostr:neventxxxxxxxxx2 then nostr:neventxxxxxxxxx3"
        parsed = parse_content(content, decoder=_decoder)
        assert parsed.event_ids == (event_id(2), event_id(3))
        assert parsed.text == "first  then"

    def test_duplicates_collapsed(self):
        content = "nostr:neventxxxxxxxxx2 nostr:neventxxxxxxxxx2 nostr:neventxxxxxxxx02"
        assert parse_content(content, decoder=_decoder).event_ids == (event_id(2),)

    def test_invalid_tokens_removed_but_ignored(self):
        content = "look nostr:nevent1x nostr:neventbadbadbad1 nostr:neventxxxxxxxxx4 done"
        parsed = parse_content(content, decoder=_decoder)
        assert parsed.event_ids == (event_id(4),)
        assert "nostr:" not in parsed.text
        assert parsed.text.startswith("look")
        assert parsed.text.endswith("done")

    def test_only_tokens_yields_empty_text(self):
        assert parse_content("nostr:neventxxxxxxxxx5", decoder=_decoder).text == ""

    def test_real_decoder(self):
        content = f"quoted {nostr_uri(event_id(9))}"
        parsed = parse_content(content)
        assert parsed.event_ids == (event_id(9),)
        assert parsed.text == "quoted"

    @pytest.mark.parametrize(
        "content",
        [
            "nostr:nevent1zzzzzzzzzzzzzzzzzzzz",
            "nostr:nevent1" + "q" * 80,
            "nostr:nevent",
            "nostr:nevent1qqséééééééé",
        ],
    )
    def test_never_raises(self, content):
        parsed = parse_content(content)
        assert parsed.references == ()
        assert parsed.text == ""
