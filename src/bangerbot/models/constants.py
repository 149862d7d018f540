"""Shared constants for the models layer.

Defines enumerations used across the models, nips, and services layers.
Placing them here avoids circular dependencies between packages.

See Also:
    [bangerbot.nips.nip10][]: Uses [EventKind][bangerbot.models.constants.EventKind]
        as the default tracked note kind.
    [bangerbot.services.tracker][]: Uses [ServiceName][bangerbot.models.constants.ServiceName]
        for logging and metrics labels.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class ServiceName(StrEnum):
    """Canonical service identifiers used in logging and metrics.

    The string values are used as the ``service`` label in Prometheus
    metrics and as the logger name of each service.

    Attributes:
        TRACKER: Mention tracker
            ([Tracker][bangerbot.services.tracker.Tracker]).
    """

    TRACKER = "tracker"


class EventKind(IntEnum):
    """Well-known Nostr event kinds used by the tracker.

    Attributes:
        SET_METADATA: NIP-01 kind 0 user profile metadata (JSON content).
        TEXT_NOTE: NIP-01 kind 1 short text note.
    """

    SET_METADATA = 0
    TEXT_NOTE = 1


class FeedOrder(StrEnum):
    """Ordering strategy for top-level feed entries.

    Attributes:
        APPEND: Arrival order, oldest entry evicted once the maximum is exceeded.
        REPOST_TIME: Most recent mentioning event first, fully re-sorted on
            every insertion.
    """

    APPEND = "append"
    REPOST_TIME = "repost_time"


EVENT_KIND_MAX = 65_535
MENTION_MARKER = "mention"
EVENT_TAG = "e"
