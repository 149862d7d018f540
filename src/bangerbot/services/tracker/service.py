"""Tracker service for bangerbot.

Follows one author across several relays and surfaces the notes where
that author explicitly quotes another note, together with the full chain
of quoted notes below each one.

The pipeline, driven entirely by relay callbacks:

1. [RelayPool][bangerbot.core.pool.RelayPool] connects to every relay
   independently. Each relay that reaches "connected" triggers the main
   subscription (``kinds=[note], authors=[tracked], limit``); the pool
   issues it at most once per relay.
2. Each delivered note passes the
   [mention filter][bangerbot.nips.nip10.is_qualifying] and the
   [EventStore][bangerbot.core.store.EventStore] at-most-once insert.
3. A newly stored note is added to the
   [FeedAssembler][bangerbot.services.tracker.feed.FeedAssembler], its
   author's profile is requested from the
   [ProfileCache][bangerbot.services.tracker.profiles.ProfileCache], and
   the [ReferenceResolver][bangerbot.services.tracker.resolver.ReferenceResolver]
   follows its references.

``run()`` is a heartbeat: it reports state and publishes gauges. It raises
[ConnectivityError][bangerbot.core.exceptions.ConnectivityError] while no
relay is connected and none is connecting, so ``run_forever()`` stops
after ``max_consecutive_failures`` such heartbeats.

Examples:
    ```python
    from bangerbot.services.tracker import LoggingListener, Tracker

    tracker = Tracker.from_yaml("config/tracker.yaml")
    tracker.add_listener(LoggingListener(tracker.profiles))

    async with tracker:
        await tracker.run_forever()
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import ClassVar

from bangerbot.core.base_service import BaseService
from bangerbot.core.exceptions import ConnectivityError
from bangerbot.core.metrics import RELAY_EVENTS
from bangerbot.core.pool import RelayClient, RelayPool
from bangerbot.core.store import EventStore
from bangerbot.models import Event, EventFilter
from bangerbot.models.constants import ServiceName
from bangerbot.nips.nip10 import extract_mentioned_id, is_qualifying
from bangerbot.utils.protocol import NostrRelayClient

from .configs import TrackerConfig
from .feed import FeedAssembler, FeedEntry
from .listeners import TrackerListener
from .profiles import ProfileCache
from .resolver import ReferenceResolver


STATUS_CONNECTING = "Connecting to relays..."
STATUS_SUBSCRIBING = "Subscribing to notes..."
STATUS_NO_RELAYS = "No relays connected"
STATUS_STOPPED = "Stopped"


def status_connected(count: int) -> str:
    return f"Connected to {count} relays"


class Tracker(BaseService[TrackerConfig]):
    """Mention tracking engine.

    One instance holds all session state: the relay pool, the event store,
    the profile cache, the feed, and the listeners. Nothing is shared
    between instances.

    Args:
        config: Tracker configuration (defaults if omitted).
        client_factory: Creates a relay client for an endpoint URL.
        listeners: Renderers notified of feed, profile, status, and count
            changes.
    """

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.TRACKER
    CONFIG_CLASS: ClassVar[type[TrackerConfig]] = TrackerConfig

    def __init__(
        self,
        config: TrackerConfig | None = None,
        *,
        client_factory: Callable[[str], RelayClient] = NostrRelayClient,
        listeners: Iterable[TrackerListener] = (),
    ) -> None:
        super().__init__(config=config)
        self._author = self._config.author_pubkey
        self._listeners: list[TrackerListener] = list(listeners)
        self._status = ""

        self._store = EventStore()
        self._pool = RelayPool(
            self._config.pool,
            client_factory=client_factory,
            on_connected=self._on_relay_connected,
            on_disconnected=self._on_relay_disconnected,
        )
        self._profiles = ProfileCache(self._pool, metadata_kind=self._config.kinds.metadata)
        self._profiles.subscribe(self._on_profile_resolved)
        self._feed = FeedAssembler(
            order=self._config.feed.order,
            max_entries=self._config.feed.max_entries,
            preview_length=self._config.feed.preview_length,
            on_change=self._on_feed_changed,
        )
        self._resolver = ReferenceResolver(
            self._pool,
            self._store,
            self._profiles,
            self._feed,
            note_kind=self._config.kinds.note,
            mode=self._config.mentions.mode,
            max_depth=self._config.resolver.max_depth,
        )
        self._feed_filter = EventFilter(
            kinds=(self._config.kinds.note,),
            authors=(self._author,),
            limit=self._config.subscription.limit,
        )

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def author(self) -> str:
        """Tracked author key as hex."""
        return self._author

    @property
    def store(self) -> EventStore:
        return self._store

    @property
    def profiles(self) -> ProfileCache:
        return self._profiles

    @property
    def feed(self) -> FeedAssembler:
        return self._feed

    @property
    def pool(self) -> RelayPool:
        return self._pool

    @property
    def resolver(self) -> ReferenceResolver:
        return self._resolver

    @property
    def status(self) -> str:
        return self._status

    def add_listener(self, listener: TrackerListener) -> None:
        self._listeners.append(listener)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start connecting to every configured relay. Returns immediately."""
        self._logger.info(
            "tracker_starting",
            author=self._author,
            relays=len(self._config.relays),
            order=self._config.feed.order,
        )
        self._set_status(STATUS_CONNECTING)
        self._pool.connect(self._config.relays)

    async def stop(self) -> None:
        """Close every relay client. In-flight queries are abandoned."""
        await self._pool.close()
        self._set_status(STATUS_STOPPED)
        self._emit_counts()

    async def run(self) -> None:
        """Heartbeat: publish state gauges and check that a relay is reachable.

        Raises:
            ConnectivityError: If no relay is connected and none is connecting.
        """
        counters = self._resolver.counters
        self.set_gauge("relays_connected", self._pool.connected_count)
        self.set_gauge("events_stored", len(self._store))
        self.set_gauge("profiles_cached", len(self._profiles))
        self.set_gauge("feed_entries", len(self._feed))
        self.set_gauge("references_resolved", counters.resolved)
        self.set_gauge("references_duplicate", counters.duplicates)
        self.set_gauge("queries_mention", counters.mention_queries)
        self.set_gauge("queries_inline", counters.inline_queries)
        self.set_gauge("queries_profile", self._profiles.queries)

        self._logger.info(
            "tracker_status",
            relays=self._pool.connected_count,
            connecting=self._pool.connecting_count,
            events=len(self._store),
            entries=len(self._feed),
            evicted=self._feed.evicted,
            profiles=len(self._profiles),
            resolved=counters.resolved,
        )

        if self._pool.connected_count == 0 and self._pool.connecting_count == 0:
            self._set_status(STATUS_NO_RELAYS)
            raise ConnectivityError(STATUS_NO_RELAYS)

    # -------------------------------------------------------------------------
    # Relay callbacks
    # -------------------------------------------------------------------------

    def _on_relay_connected(self, url: str) -> None:
        self._set_status(status_connected(self._pool.connected_count))
        self._emit_counts()
        self._set_status(STATUS_SUBSCRIBING)
        self._pool.subscribe(self._feed_filter, self._on_note)

    def _on_relay_disconnected(self, url: str) -> None:
        count = self._pool.connected_count
        self._set_status(status_connected(count) if count else STATUS_NO_RELAYS)
        self._emit_counts()

    def _on_note(self, event: Event, relay_url: str) -> None:
        if event.author != self._author or not is_qualifying(
            event, kind=self._config.kinds.note, mode=self._config.mentions.mode
        ):
            self._count_relay_event(relay_url, "skipped")
            return
        if not self._store.put(event):
            self._count_relay_event(relay_url, "duplicate")
            return

        self._count_relay_event(relay_url, "stored")
        mentioned = extract_mentioned_id(event, mode=self._config.mentions.mode)
        self._logger.info("note_stored", id=event.id, mentions=mentioned, relay=relay_url)
        self._feed.add(event, mentioned_id=mentioned)
        self._profiles.ensure_fetched(event.author)
        self._resolver.resolve(event)
        self._emit_counts()

    def _count_relay_event(self, relay_url: str, outcome: str) -> None:
        if self._config.metrics.enabled:
            RELAY_EVENTS.labels(relay=relay_url, outcome=outcome).inc()

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def _set_status(self, text: str) -> None:
        self._status = text
        for listener in self._listeners:
            listener.on_status_changed(text)

    def _emit_counts(self) -> None:
        relay_count = self._pool.connected_count
        note_count = len(self._store)
        for listener in self._listeners:
            listener.on_counts(relay_count, note_count)

    def _on_feed_changed(self, entries: Sequence[FeedEntry]) -> None:
        for listener in self._listeners:
            listener.on_feed_changed(entries)
        self._emit_counts()

    def _on_profile_resolved(self, author: str) -> None:
        for listener in self._listeners:
            listener.on_profile_resolved(author)
