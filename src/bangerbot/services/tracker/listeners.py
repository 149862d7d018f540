"""Push notifications from the tracker to a renderer.

The tracker owns no presentation state. A renderer implements
[TrackerListener][bangerbot.services.tracker.listeners.TrackerListener]
and reads the event store and profile cache for details.
[LoggingListener][bangerbot.services.tracker.listeners.LoggingListener] is
the renderer used by the CLI: it writes every notification as a
structured log line.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from bangerbot.core.logger import Logger


if TYPE_CHECKING:
    from .feed import FeedEntry
    from .profiles import ProfileCache


class TrackerListener(Protocol):
    """Receiver of tracker notifications. All methods are synchronous."""

    def on_feed_changed(self, entries: Sequence[FeedEntry]) -> None: ...

    def on_profile_resolved(self, author: str) -> None: ...

    def on_status_changed(self, text: str) -> None: ...

    def on_counts(self, relay_count: int, note_count: int) -> None: ...


class LoggingListener:
    """Log-based renderer.

    Feed changes log the newest top-level entry with its nested quotes;
    profile updates log the resolved display name.
    """

    def __init__(self, profiles: ProfileCache, logger: Logger | None = None) -> None:
        self._profiles = profiles
        self._logger = logger or Logger("feed_renderer")
        self._last_counts: tuple[int, int] | None = None

    def on_feed_changed(self, entries: Sequence[FeedEntry]) -> None:
        if not entries:
            return
        newest = max(entries, key=lambda entry: entry.created_at)
        for depth, node in _flatten(newest):
            self._logger.info(
                "feed_entry",
                id=node.event_id,
                author=self._profiles.label(node.author),
                created_at=node.created_at,
                depth=depth,
                preview=node.preview,
            )

    def on_profile_resolved(self, author: str) -> None:
        self._logger.info("profile_resolved", author=author, name=self._profiles.label(author))

    def on_status_changed(self, text: str) -> None:
        self._logger.info("status", text=text)

    def on_counts(self, relay_count: int, note_count: int) -> None:
        counts = (relay_count, note_count)
        if counts == self._last_counts:
            return
        self._last_counts = counts
        self._logger.info("counts", relays=relay_count, notes=note_count)


def _flatten(entry: FeedEntry, depth: int = 0) -> list[tuple[int, FeedEntry]]:
    rows = [(depth, entry)]
    for child in entry.children:
        rows.extend(_flatten(child, depth + 1))
    return rows
