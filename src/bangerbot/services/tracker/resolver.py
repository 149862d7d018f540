"""Recursive resolution of quoted and nested event references.

A stored event can reference other events in two ways, and both are
followed:

1. **Tag-mention**: the first ``["e", id, relay, "mention"]`` tag
   ([extract_mentioned_id()][bangerbot.nips.nip10.extract_mentioned_id]).
2. **Inline reference**: ``nostr:nevent1...`` tokens in the content
   ([parse_content()][bangerbot.nips.nip27.parse_content]). An inline
   reference to the same id as the tag-mention is skipped.

Each target is fetched with a point query (``ids=[target], limit=1``) on
every connected relay. A response goes through the store's at-most-once
insert; only a newly inserted event is attached to the feed, triggers a
profile fetch for its author, and is resolved in turn. Relays that
deliver the same event again hit the duplicate path and cause nothing.
That insert is what ends recursion on quote cycles; ``max_depth``
additionally bounds how deep below a tracked note resolution goes.

Per edge::

    pending query --> event received --> newly inserted --> attach + recurse
                  |                  \\-> duplicate -----> no-op
                  \\-> no response (terminal, no error)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from functools import partial

from bangerbot.core.logger import Logger
from bangerbot.core.pool import RelayPool
from bangerbot.core.store import EventStore
from bangerbot.models import Event, EventFilter, EventKind
from bangerbot.nips.nip10 import MentionMode, extract_mentioned_id
from bangerbot.nips.nip27 import parse_content

from .feed import FeedAssembler
from .profiles import ProfileCache


class ReferenceMechanism(StrEnum):
    """How a referenced event was found."""

    MENTION = "mention"
    INLINE = "inline"


@dataclass(slots=True)
class ResolverCounters:
    """Cumulative resolver statistics, published by the tracker heartbeat."""

    mention_queries: int = 0
    inline_queries: int = 0
    resolved: int = 0
    duplicates: int = 0
    already_stored: int = 0
    depth_limited: int = 0
    unmatched: int = 0


class ReferenceResolver:
    """Follows tag-mentions and inline references of stored events.

    Args:
        pool: Relay pool used for point queries.
        store: Event store providing the at-most-once insert.
        profiles: Profile cache notified of every resolved author.
        feed: Feed assembler receiving resolved events under their parent.
        note_kind: Kind of referenced notes.
        mode: Mention tag matching strictness.
        max_depth: Maximum nesting below a top-level note (0 = unlimited).
    """

    def __init__(
        self,
        pool: RelayPool,
        store: EventStore,
        profiles: ProfileCache,
        feed: FeedAssembler,
        *,
        note_kind: int = EventKind.TEXT_NOTE,
        mode: MentionMode = MentionMode.LENIENT,
        max_depth: int = 0,
    ) -> None:
        self._pool = pool
        self._store = store
        self._profiles = profiles
        self._feed = feed
        self._note_kind = note_kind
        self._mode = mode
        self._max_depth = max_depth
        self._counters = ResolverCounters()
        self._logger = Logger("resolver")

    @property
    def counters(self) -> ResolverCounters:
        return self._counters

    def resolve(self, event: Event, depth: int = 0) -> int:
        """Issue point queries for every event *event* references.

        Args:
            event: A newly stored event.
            depth: Nesting level of *event* (0 for a top-level note).

        Returns:
            Number of targets queried.
        """
        issued = 0
        mentioned = extract_mentioned_id(event, mode=self._mode)
        if mentioned is not None and self._request(
            event, mentioned, ReferenceMechanism.MENTION, depth + 1
        ):
            issued += 1

        for reference in parse_content(event.content).references:
            if reference.event_id == mentioned:
                self._logger.debug(
                    "inline_reference_skipped", parent=event.id, target=reference.event_id
                )
                continue
            if self._request(event, reference.event_id, ReferenceMechanism.INLINE, depth + 1):
                issued += 1
        return issued

    def _request(
        self, parent: Event, target: str, mechanism: ReferenceMechanism, depth: int
    ) -> bool:
        if self._max_depth and depth > self._max_depth:
            self._counters.depth_limited += 1
            self._logger.debug("reference_depth_limited", parent=parent.id, target=target, depth=depth)
            return False
        if self._store.has(target):
            self._counters.already_stored += 1
            self._logger.debug("reference_already_stored", parent=parent.id, target=target)
            return False

        event_filter = EventFilter(kinds=(self._note_kind,), ids=(target,), limit=1)
        handler = partial(self._on_reference, parent.id, target, depth)
        relays = self._pool.query(event_filter, handler)
        if relays == 0:
            self._logger.debug("reference_query_unsent", parent=parent.id, target=target)
            return False

        if mechanism is ReferenceMechanism.MENTION:
            self._counters.mention_queries += 1
        else:
            self._counters.inline_queries += 1
        self._logger.debug(
            "reference_requested",
            parent=parent.id,
            target=target,
            mechanism=mechanism,
            depth=depth,
            relays=relays,
        )
        return True

    def _on_reference(
        self, parent_id: str, target: str, depth: int, event: Event, relay_url: str
    ) -> None:
        if event.id != target or event.kind != self._note_kind:
            self._counters.unmatched += 1
            self._logger.debug("reference_unmatched", target=target, id=event.id, relay=relay_url)
            return
        if not self._store.put(event):
            self._counters.duplicates += 1
            return

        self._counters.resolved += 1
        self._logger.info(
            "reference_resolved", parent=parent_id, id=event.id, depth=depth, relay=relay_url
        )
        self._feed.attach(parent_id, event)
        self._profiles.ensure_fetched(event.author)
        self.resolve(event, depth)
