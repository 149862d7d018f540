"""Nostr Implementation Possibilities -- protocol rules applied to models.

The NIPs layer sits in the middle of the diamond DAG, depending only on
[bangerbot.models][bangerbot.models] and ``nostr_sdk``. Every function
here is pure; none performs I/O.

Attributes:
    nip10: Mention filter. [is_qualifying()][bangerbot.nips.nip10.is_qualifying]
        and [extract_mentioned_id()][bangerbot.nips.nip10.extract_mentioned_id]
        over ``["e", id, relay, "mention"]`` tags, with a strict mode that
        also validates the relay hint.
    nip19: Identifier codec. ``npub`` to hex and ``nevent`` to
        [EventReference][bangerbot.nips.nip19.EventReference].
    nip27: Inline ``nostr:nevent`` references in content, with pre-validation,
        decoding, and token stripping.
"""

from .nip10 import MentionMode, extract_mentioned_id, is_mention_tag, is_qualifying
from .nip19 import (
    DecodeError,
    EventReference,
    IdentityDecodeError,
    ReferenceDecodeError,
    decode_event_reference,
    decode_identity,
)
from .nip27 import ParsedContent, parse_content


__all__ = [
    "DecodeError",
    "EventReference",
    "IdentityDecodeError",
    "MentionMode",
    "ParsedContent",
    "ReferenceDecodeError",
    "decode_event_reference",
    "decode_identity",
    "extract_mentioned_id",
    "is_mention_tag",
    "is_qualifying",
    "parse_content",
]
