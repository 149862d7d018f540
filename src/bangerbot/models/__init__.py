"""Pure frozen dataclasses with zero I/O for Nostr events, tags, and profiles.

The models layer is the foundation of the diamond DAG. It has no
dependencies on any other bangerbot package. Every model uses
``@dataclass(frozen=True, slots=True)`` and validates in ``__post_init__``
so invalid instances never escape the constructor. This is the typed
ingestion boundary: raw relay data becomes an
[Event][bangerbot.models.event.Event] here or is rejected.

Attributes:
    Event: Validated Nostr event built from ``nostr_sdk.Event`` or raw JSON.
    Tag: Non-empty tuple of strings with positional accessors.
    EventFilter: Relay query description (kinds, authors, ids, limit).
    Profile: Display name and avatar parsed from kind-0 metadata.
    EventMessage: Event delivered on a subscription stream.
    EndOfStoredEvents: End of stored history on a subscription stream.
    Relay: Normalized ``ws``/``wss`` endpoint URL.
    EventKind: Well-known event kinds.
    FeedOrder: Top-level feed ordering strategy.
    ServiceName: Service identifiers for logging and metrics.

See Also:
    [bangerbot.nips][]: Protocol rules applied on top of these models.
"""

from ._validation import is_hex_key
from .constants import EVENT_KIND_MAX, EventKind, FeedOrder, ServiceName
from .event import Event
from .filter import EventFilter
from .message import EndOfStoredEvents, EventMessage, RelayMessage
from .profile import UNKNOWN_USER, Profile
from .relay import Relay, is_relay_url, normalize_relay_url
from .tag import Tag


__all__ = [
    "EVENT_KIND_MAX",
    "UNKNOWN_USER",
    "EndOfStoredEvents",
    "Event",
    "EventFilter",
    "EventKind",
    "EventMessage",
    "FeedOrder",
    "Profile",
    "Relay",
    "RelayMessage",
    "ServiceName",
    "Tag",
    "is_hex_key",
    "is_relay_url",
    "normalize_relay_url",
]
