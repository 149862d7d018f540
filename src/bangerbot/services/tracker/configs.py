"""Tracker service configuration models.

See Also:
    [Tracker][bangerbot.services.tracker.Tracker]: The service class that
        consumes these configurations.
    [BaseServiceConfig][bangerbot.core.base_service.BaseServiceConfig]:
        Base class providing ``interval``, failure limits, and metrics.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from bangerbot.core.base_service import BaseServiceConfig
from bangerbot.core.pool import RelayPoolConfig
from bangerbot.models import EVENT_KIND_MAX, EventKind, FeedOrder, normalize_relay_url
from bangerbot.nips.nip10 import MentionMode
from bangerbot.nips.nip19 import IdentityDecodeError, decode_identity


DEFAULT_RELAYS = [
    "wss://relay.damus.io",
    "wss://nos.lol",
    "wss://relay.primal.net/",
]
DEFAULT_AUTHOR = "npub1t83prys2hepmqmln9adygpg8z5fq2lse5v6grjhecagr09rya4qs78wxhz"


class KindsConfig(BaseModel):
    """Event kinds the tracker subscribes to."""

    note: int = Field(
        default=EventKind.TEXT_NOTE, ge=0, le=EVENT_KIND_MAX, description="Tracked note kind"
    )
    metadata: int = Field(
        default=EventKind.SET_METADATA, ge=0, le=EVENT_KIND_MAX, description="Profile metadata kind"
    )

    @model_validator(mode="after")
    def validate_distinct(self) -> KindsConfig:
        if self.note == self.metadata:
            raise ValueError("note and metadata kinds must differ")
        return self


class SubscriptionConfig(BaseModel):
    """Main feed subscription settings."""

    limit: int = Field(
        default=50, ge=1, le=5000, description="Stored notes requested per relay on subscribe"
    )


class MentionsConfig(BaseModel):
    """Mention tag matching.

    ``strict`` additionally requires the relay hint of a mention tag to be
    a valid relay URL.
    """

    strict: bool = Field(default=False, description="Require a relay URL in the hint position")

    @property
    def mode(self) -> MentionMode:
        return MentionMode.STRICT if self.strict else MentionMode.LENIENT


class ResolverConfig(BaseModel):
    """Recursive reference resolution limits."""

    max_depth: int = Field(
        default=0,
        ge=0,
        description="Maximum quote nesting resolved below a tracked note (0 = unlimited)",
    )


class FeedConfig(BaseModel):
    """Feed ordering and display settings."""

    order: FeedOrder = Field(default=FeedOrder.APPEND, description="Top-level ordering strategy")
    max_entries: int = Field(
        default=100, ge=1, le=10_000, description="Maximum top-level entries retained for display"
    )
    preview_length: int = Field(
        default=200, ge=1, description="Characters of content kept in an entry preview"
    )


class TrackerConfig(BaseServiceConfig):
    """Configuration for the [Tracker][bangerbot.services.tracker.Tracker] service.

    Attributes:
        relays: Relay endpoints, normalized and de-duplicated on load.
        author: Tracked identity as ``npub1...`` or 64-character hex.
        kinds: Note and metadata kinds.
        subscription: Main feed subscription settings.
        mentions: Mention tag matching strictness.
        resolver: Recursive resolution limits.
        feed: Feed ordering and display settings.
        pool: Relay pool timeouts and retry policy.
    """

    relays: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RELAYS), min_length=1, validate_default=True
    )
    author: str = Field(
        default=DEFAULT_AUTHOR, validate_default=True, description="Tracked identity (npub or hex)"
    )
    kinds: KindsConfig = Field(default_factory=KindsConfig)
    subscription: SubscriptionConfig = Field(default_factory=SubscriptionConfig)
    mentions: MentionsConfig = Field(default_factory=MentionsConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    pool: RelayPoolConfig = Field(default_factory=RelayPoolConfig)

    @field_validator("relays", mode="after")
    @classmethod
    def normalize_relays(cls, v: list[str]) -> list[str]:
        """Normalize every URL and drop duplicates, keeping the first occurrence."""
        normalized: list[str] = []
        for raw in v:
            url = normalize_relay_url(raw)
            if url not in normalized:
                normalized.append(url)
        return normalized

    @field_validator("author", mode="after")
    @classmethod
    def validate_author(cls, v: str) -> str:
        try:
            decode_identity(v)
        except IdentityDecodeError as e:
            raise ValueError(str(e)) from e
        return v.strip()

    @property
    def author_pubkey(self) -> str:
        """The tracked identity as hex."""
        return decode_identity(self.author)
