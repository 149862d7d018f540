"""
Deduplicated in-memory event store.

[EventStore][bangerbot.core.store.EventStore] is the single source of
truth for "have we seen this event". Every downstream side effect (feed
emission, profile fetch, recursive reference resolution) is keyed off the
``True`` returned by [put()][bangerbot.core.store.EventStore.put], so that
call is the only ordering-independence mechanism the engine relies on.

Note:
    ``put()`` checks and inserts without any suspension point in between.
    Under asyncio's cooperative scheduling this makes the insert
    at-most-once: when several relay subscriptions deliver the same event,
    exactly one caller observes ``True``.
"""

from __future__ import annotations

from collections.abc import Iterator

from bangerbot.models import Event


class EventStore:
    """Mapping from event id to [Event][bangerbot.models.event.Event].

    Entries are never removed or replaced for the lifetime of the store.

    Examples:
        ```python
        store = EventStore()
        store.put(event)       # True
        store.put(event)       # False (duplicate, no-op)
        store.get(event.id)    # event
        ```
    """

    def __init__(self) -> None:
        self._events: dict[str, Event] = {}

    def has(self, event_id: str) -> bool:
        return event_id in self._events

    def put(self, event: Event) -> bool:
        """Insert *event* unless its id is already stored.

        Returns:
            ``True`` if the event was newly inserted, ``False`` on duplicate.
        """
        if event.id in self._events:
            return False
        self._events[event.id] = event
        return True

    def get(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events.values())

    def __repr__(self) -> str:
        return f"EventStore(events={len(self._events)})"
