"""
Immutable Nostr event parsed at the ingestion boundary.

Relays deliver events either as ``nostr_sdk.Event`` objects (through the
SDK notification handler) or as raw JSON mappings. Both paths go through a
typed parse step that produces an [Event][bangerbot.models.event.Event]
or raises ``ValueError``/``TypeError``; nothing downstream ever inspects
untyped wire data.

See Also:
    [bangerbot.models.tag][]: Tag shape validation.
    [bangerbot.utils.protocol][]: Converts SDK notifications with
        [Event.from_nostr()][bangerbot.models.event.Event.from_nostr].
    [bangerbot.core.store][]: Deduplicated storage keyed by ``Event.id``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from nostr_sdk import Event as NostrEvent

from ._validation import (
    validate_hex_key,
    validate_instance,
    validate_int,
    validate_timestamp,
)
from .constants import EVENT_KIND_MAX
from .tag import Tag, parse_tags


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable, validated Nostr event.

    Signatures are not checked here; the relay client is responsible for
    transport-level verification.

    Args:
        id: Event id as 64-character lowercase hex.
        author: Author public key as 64-character lowercase hex.
        created_at: Unix timestamp in seconds.
        kind: Integer event kind (0-65535).
        content: Raw content string.
        tags: Parsed tags in wire order.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If a field is out of range or malformed.

    Examples:
        ```python
        event = Event.from_dict({
            "id": "ab" * 32,
            "pubkey": "cd" * 32,
            "created_at": 1700000000,
            "kind": 1,
            "tags": [["e", "ef" * 32, "", "mention"]],
            "content": "look at this",
        })
        event.tags[0].get(3)    # "mention"
        ```
    """

    id: str
    author: str
    created_at: int
    kind: int
    content: str
    tags: tuple[Tag, ...] = ()

    def __post_init__(self) -> None:
        validate_hex_key(self.id, "id")
        validate_hex_key(self.author, "author")
        validate_timestamp(self.created_at, "created_at")
        validate_int(self.kind, "kind", maximum=EVENT_KIND_MAX)
        validate_instance(self.content, str, "content")
        validate_instance(self.tags, tuple, "tags")
        for tag in self.tags:
            validate_instance(tag, Tag, "tags item")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Event:
        """Parse a raw wire event (NIP-01 JSON object).

        A missing ``tags`` key is treated as an empty tag list; every other
        field is required.

        Raises:
            TypeError: If *data* is not a mapping or a field has the wrong type.
            ValueError: If a required field is missing or invalid.
        """
        validate_instance(data, Mapping, "data")
        try:
            raw_tags = data.get("tags") or []
            if not isinstance(raw_tags, list | tuple):
                raise TypeError(f"tags must be a list, got {type(raw_tags).__name__}")
            return cls(
                id=data["id"],
                author=data["pubkey"],
                created_at=data["created_at"],
                kind=data["kind"],
                content=data["content"],
                tags=parse_tags(raw_tags),
            )
        except KeyError as e:
            raise ValueError(f"event is missing field {e.args[0]!r}") from e

    @classmethod
    def from_nostr(cls, nostr_event: NostrEvent) -> Event:
        """Convert a ``nostr_sdk.Event`` received from a relay."""
        return cls(
            id=nostr_event.id().to_hex(),
            author=nostr_event.author().to_hex(),
            created_at=nostr_event.created_at().as_secs(),
            kind=nostr_event.kind().as_u16(),
            content=nostr_event.content(),
            tags=parse_tags(list(tag.as_vec()) for tag in nostr_event.tags().to_vec()),
        )

    def tags_named(self, name: str) -> tuple[Tag, ...]:
        """Return the tags whose relation equals *name*, in wire order."""
        return tuple(tag for tag in self.tags if tag.name == name)
