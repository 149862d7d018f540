"""Tracker service package.

Re-exports the public API so callers can write
``from bangerbot.services.tracker import Tracker, TrackerConfig``.
"""

from .configs import (
    FeedConfig,
    KindsConfig,
    MentionsConfig,
    ResolverConfig,
    SubscriptionConfig,
    TrackerConfig,
)
from .feed import FeedAssembler, FeedEntry
from .listeners import LoggingListener, TrackerListener
from .profiles import ProfileCache
from .resolver import ReferenceMechanism, ReferenceResolver, ResolverCounters
from .service import Tracker


__all__ = [
    "FeedAssembler",
    "FeedConfig",
    "FeedEntry",
    "KindsConfig",
    "LoggingListener",
    "MentionsConfig",
    "ProfileCache",
    "ReferenceMechanism",
    "ReferenceResolver",
    "ResolverConfig",
    "ResolverCounters",
    "SubscriptionConfig",
    "Tracker",
    "TrackerConfig",
    "TrackerListener",
]
