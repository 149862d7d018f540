"""
Relay query description.

[EventFilter][bangerbot.models.filter.EventFilter] carries the four NIP-01
filter fields the tracker uses. It is independent of any client library;
[bangerbot.utils.protocol][] converts it to a ``nostr_sdk.Filter``.
"""

from __future__ import annotations

from dataclasses import dataclass

from ._validation import validate_hex_key, validate_instance, validate_int
from .constants import EVENT_KIND_MAX


@dataclass(frozen=True, slots=True)
class EventFilter:
    """Immutable subscription filter.

    Empty tuples mean "no constraint" on that field.

    Args:
        kinds: Event kinds to match.
        authors: Author public keys (hex) to match.
        ids: Event ids (hex) to match.
        limit: Maximum number of stored events the relay should return.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If a kind, key, or the limit is out of range.
    """

    kinds: tuple[int, ...] = ()
    authors: tuple[str, ...] = ()
    ids: tuple[str, ...] = ()
    limit: int | None = None

    def __post_init__(self) -> None:
        validate_instance(self.kinds, tuple, "kinds")
        validate_instance(self.authors, tuple, "authors")
        validate_instance(self.ids, tuple, "ids")
        for kind in self.kinds:
            validate_int(kind, "kind", maximum=EVENT_KIND_MAX)
        for author in self.authors:
            validate_hex_key(author, "author")
        for event_id in self.ids:
            validate_hex_key(event_id, "id")
        if self.limit is not None:
            validate_int(self.limit, "limit", minimum=1)

    def matches(self, event_id: str, author: str, kind: int) -> bool:
        """Return ``True`` if an event with these fields satisfies the filter."""
        return (
            (not self.kinds or kind in self.kinds)
            and (not self.authors or author in self.authors)
            and (not self.ids or event_id in self.ids)
        )
