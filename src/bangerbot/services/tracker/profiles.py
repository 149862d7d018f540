"""Per-author profile cache with at most one outstanding fetch per author.

See Also:
    [Profile][bangerbot.models.profile.Profile]: Parsed kind-0 metadata.
    [ReferenceResolver][bangerbot.services.tracker.resolver.ReferenceResolver]:
        Requests a profile for the author of every resolved event.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial

from bangerbot.core.logger import Logger
from bangerbot.core.pool import RelayPool
from bangerbot.models import Event, EventFilter, EventKind, Profile
from bangerbot.models.profile import short_key


ProfileListener = Callable[[str], None]


class ProfileCache:
    """Author key to [Profile][bangerbot.models.profile.Profile] cache.

    [ensure_fetched()][bangerbot.services.tracker.profiles.ProfileCache.ensure_fetched]
    issues a metadata point query only when the author has neither a
    profile nor a fetch in flight. Every relay response is parsed; a
    payload that is not a JSON object stores a placeholder so the author
    never stays unresolved.

    When several relays answer, a newer metadata event replaces an older
    one, and a placeholder never replaces a parsed profile.

    Args:
        pool: Relay pool used for metadata queries.
        metadata_kind: Kind of profile metadata events.
    """

    def __init__(self, pool: RelayPool, *, metadata_kind: int = EventKind.SET_METADATA) -> None:
        self._pool = pool
        self._metadata_kind = metadata_kind
        self._profiles: dict[str, Profile] = {}
        self._pending: set[str] = set()
        self._listeners: list[ProfileListener] = []
        self._queries = 0
        self._logger = Logger("profile_cache")

    def subscribe(self, listener: ProfileListener) -> None:
        """Register *listener*, called with the author key on every profile change."""
        self._listeners.append(listener)

    def ensure_fetched(self, author: str) -> bool:
        """Request the profile of *author* unless it is cached or already requested.

        Returns:
            ``True`` if a metadata query was issued.
        """
        if author in self._profiles or author in self._pending:
            return False

        event_filter = EventFilter(kinds=(self._metadata_kind,), authors=(author,), limit=1)
        self._pending.add(author)
        relays = self._pool.query(event_filter, partial(self._on_metadata, author))
        if relays == 0:
            # Nobody to ask yet; a later call may find connected relays.
            self._pending.discard(author)
            self._logger.debug("profile_fetch_deferred", author=author)
            return False

        self._queries += 1
        self._logger.debug("profile_fetch_issued", author=author, relays=relays)
        return True

    def _on_metadata(self, author: str, event: Event, relay_url: str) -> None:
        if event.author != author or event.kind != self._metadata_kind:
            self._logger.debug("metadata_unexpected", author=author, relay=relay_url, id=event.id)
            return

        self._pending.discard(author)
        profile = Profile.from_metadata(author, event.content, event.created_at)
        current = self._profiles.get(author)
        if current is not None:
            if profile.placeholder and not current.placeholder:
                return
            if profile.created_at < current.created_at and not current.placeholder:
                return

        self._profiles[author] = profile
        self._logger.debug(
            "profile_resolved",
            author=author,
            name=profile.label,
            placeholder=profile.placeholder,
            relay=relay_url,
        )
        for listener in self._listeners:
            listener(author)

    def get(self, author: str) -> Profile | None:
        return self._profiles.get(author)

    def label(self, author: str) -> str:
        """Display name of *author*, or the abbreviated key while unresolved."""
        profile = self._profiles.get(author)
        return profile.label if profile is not None else short_key(author)

    def is_pending(self, author: str) -> bool:
        return author in self._pending

    @property
    def queries(self) -> int:
        """Metadata queries issued so far."""
        return self._queries

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, author: object) -> bool:
        return author in self._profiles
