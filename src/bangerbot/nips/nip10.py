"""NIP-10 mention filter.

A tracked note is one where the author explicitly quotes another note with
a marked ``e`` tag::

    ["e", <event-id>, <relay-hint>, "mention"]

This is a structural filter: replies and plain posts never qualify, no
matter what their content says. Tags shorter than four positions, or with
the marker anywhere other than position 3, do not match. The target must
be an event id (64 hex characters, any case); it is returned lowercased.

In ``STRICT`` mode the relay-hint position must also parse as a
``ws``/``wss`` URL; some clients put an empty string or a pubkey there.
"""

from __future__ import annotations

from enum import StrEnum

from bangerbot.models import Event, EventKind, Tag, is_hex_key, is_relay_url
from bangerbot.models.constants import EVENT_TAG, MENTION_MARKER


_MIN_MENTION_TAG_LEN = 4
_RELAY_HINT_POSITION = 2
_MARKER_POSITION = 3


class MentionMode(StrEnum):
    """How strictly mention tags are matched.

    Attributes:
        LENIENT: ``e`` relation with the ``mention`` marker at position 3.
        STRICT: As lenient, and the relay hint must be a relay URL.
    """

    LENIENT = "lenient"
    STRICT = "strict"


def is_mention_tag(tag: Tag, mode: MentionMode = MentionMode.LENIENT) -> bool:
    if len(tag) < _MIN_MENTION_TAG_LEN:
        return False
    if tag.name != EVENT_TAG or tag[_MARKER_POSITION] != MENTION_MARKER:
        return False
    if not is_hex_key(tag[1].lower()):
        return False
    if mode is MentionMode.STRICT:
        return is_relay_url(tag[_RELAY_HINT_POSITION])
    return True


def is_qualifying(
    event: Event,
    *,
    kind: int = EventKind.TEXT_NOTE,
    mode: MentionMode = MentionMode.LENIENT,
) -> bool:
    """Return ``True`` if *event* has the tracked kind and at least one mention tag."""
    if event.kind != kind:
        return False
    return any(is_mention_tag(tag, mode) for tag in event.tags_named(EVENT_TAG))


def extract_mentioned_id(
    event: Event,
    *,
    mode: MentionMode = MentionMode.LENIENT,
) -> str | None:
    """Return the target of the first mention tag, or ``None``."""
    for tag in event.tags_named(EVENT_TAG):
        if is_mention_tag(tag, mode):
            return tag[1].lower()
    return None
