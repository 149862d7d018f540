"""Feed assembly: ordering, eviction, and nesting of resolved events.

Top-level entries are the tracked author's mention notes. Quoted events
resolved below them are attached to their parent's ``children`` in arrival
order and are never ordered independently.

Two ordering strategies are supported (see
[FeedOrder][bangerbot.models.constants.FeedOrder]):

* ``APPEND``: arrival order; once ``max_entries`` is exceeded the oldest
  entry is evicted.
* ``REPOST_TIME``: most recent repost first. The repost time of an entry
  is the latest timestamp at which any tracked note mentioned the same
  target. The list is fully re-sorted (stable) on every insertion because
  a later mention can raise the repost time of an earlier entry. This is
  quadratic in ``max_entries`` over a session, which is fine for display
  sized feeds.

Eviction only affects display. The event store keeps every event.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from bangerbot.core.logger import Logger
from bangerbot.models import Event, FeedOrder
from bangerbot.nips.nip27 import ParsedContent, parse_content


FeedListener = Callable[[Sequence["FeedEntry"]], None]
ContentParser = Callable[[str], ParsedContent]

_ELLIPSIS = "..."


@dataclass(slots=True)
class FeedEntry:
    """Display node for one resolved event.

    Attributes:
        event_id: Id of the event in the store.
        author: Author key of the event.
        created_at: Event timestamp.
        preview: Content with inline reference tokens removed, truncated.
        references: Event ids referenced inline by the content.
        mentioned_id: Tag-mention target (top-level entries only).
        children: Quoted events resolved below this one, in arrival order.
    """

    event_id: str
    author: str
    created_at: int
    preview: str
    references: tuple[str, ...] = ()
    mentioned_id: str | None = None
    children: list[FeedEntry] = field(default_factory=list)

    def walk(self) -> list[FeedEntry]:
        """This entry followed by all of its descendants, depth first."""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.walk())
        return nodes


def make_preview(text: str, length: int) -> str:
    if len(text) > length:
        return text[:length] + _ELLIPSIS
    return text


class FeedAssembler:
    """Ordered top-level entries with nested child slots.

    Args:
        order: Top-level ordering strategy.
        max_entries: Maximum top-level entries kept for display.
        preview_length: Characters of display text kept per entry.
        on_change: Called with the current entries after every change.
        parser: Content parser producing display text and references.
    """

    def __init__(
        self,
        *,
        order: FeedOrder = FeedOrder.APPEND,
        max_entries: int = 100,
        preview_length: int = 200,
        on_change: FeedListener | None = None,
        parser: ContentParser = parse_content,
    ) -> None:
        self._order = order
        self._max_entries = max_entries
        self._preview_length = preview_length
        self._on_change = on_change
        self._parser = parser
        self._entries: list[FeedEntry] = []
        self._nodes: dict[str, FeedEntry] = {}
        self._repost_times: dict[str, int] = {}
        self._evicted = 0
        self._logger = Logger("feed")

    def _make_entry(self, event: Event, mentioned_id: str | None = None) -> FeedEntry:
        parsed = self._parser(event.content)
        return FeedEntry(
            event_id=event.id,
            author=event.author,
            created_at=event.created_at,
            preview=make_preview(parsed.text, self._preview_length),
            references=parsed.event_ids,
            mentioned_id=mentioned_id,
        )

    def repost_time(self, entry: FeedEntry) -> int:
        """Latest mention time of the entry's target, or its own timestamp."""
        if entry.mentioned_id is None:
            return entry.created_at
        return self._repost_times.get(entry.mentioned_id, entry.created_at)

    def add(self, event: Event, *, mentioned_id: str | None = None) -> FeedEntry:
        """Insert a top-level entry for *event* and re-apply ordering and eviction."""
        existing = self._nodes.get(event.id)
        if existing is not None:
            return existing

        entry = self._make_entry(event, mentioned_id)
        if mentioned_id is not None:
            previous = self._repost_times.get(mentioned_id)
            if previous is None or event.created_at > previous:
                self._repost_times[mentioned_id] = event.created_at

        self._entries.append(entry)
        self._nodes[entry.event_id] = entry
        if self._order is FeedOrder.REPOST_TIME:
            self._entries.sort(key=self.repost_time, reverse=True)
            while len(self._entries) > self._max_entries:
                self._evict(self._entries.pop())
        else:
            while len(self._entries) > self._max_entries:
                self._evict(self._entries.pop(0))

        self._notify()
        return entry

    def attach(self, parent_id: str, event: Event) -> FeedEntry | None:
        """Append *event* to the child slot of *parent_id*.

        Returns:
            The new child entry, or ``None`` when the parent is not displayed
            (never added, or evicted).
        """
        parent = self._nodes.get(parent_id)
        if parent is None:
            self._logger.debug("attach_skipped", parent=parent_id, id=event.id)
            return None
        existing = self._nodes.get(event.id)
        if existing is not None:
            return existing

        child = self._make_entry(event)
        parent.children.append(child)
        self._nodes[child.event_id] = child
        self._notify()
        return child

    def _evict(self, entry: FeedEntry) -> None:
        for node in entry.walk():
            self._nodes.pop(node.event_id, None)
        self._evicted += 1
        self._logger.debug("entry_evicted", id=entry.event_id, evicted=self._evicted)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(tuple(self._entries))

    @property
    def entries(self) -> tuple[FeedEntry, ...]:
        return tuple(self._entries)

    @property
    def evicted(self) -> int:
        """Top-level entries evicted so far."""
        return self._evicted

    def get(self, event_id: str) -> FeedEntry | None:
        """Displayed entry (top-level or nested) for *event_id*."""
        return self._nodes.get(event_id)

    def __len__(self) -> int:
        return len(self._entries)
