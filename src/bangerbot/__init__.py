r"""BangerBot -- Nostr mention tracker.

Follows one author across several relays, keeps the notes in which that
author quotes another note, and recursively resolves the chain of quoted
notes below each one into a bounded, ordered feed.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              services         Business logic and orchestration
             /   |   \
          core  nips  utils    Infrastructure, protocol, and helpers
             \   |   /
              models           Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Pure frozen dataclasses. Zero I/O.
    core: Relay pool, event store, base service, exceptions, logging,
        metrics.
    nips: NIP-10 mention tags, NIP-19 identifiers, NIP-27 inline
        references.
    utils: nostr-sdk relay client and subscription streams.
    services: Business logic. The tracker service.

Note:
    For lightweight usage, import directly from subpackages::

        from bangerbot.models import Event
        from bangerbot.core import RelayPool

    Top-level imports (``from bangerbot import Event``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("bangerbot")

__all__ = [
    "BaseService",
    "ConfigT",
    "Event",
    "EventFilter",
    "EventStore",
    "FeedAssembler",
    "Logger",
    "LoggingListener",
    "Profile",
    "ProfileCache",
    "ReferenceResolver",
    "Relay",
    "RelayPool",
    "RelayPoolConfig",
    "Tag",
    "Tracker",
    "TrackerConfig",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BaseService": ("bangerbot.core", "BaseService"),
    "ConfigT": ("bangerbot.core", "ConfigT"),
    "EventStore": ("bangerbot.core", "EventStore"),
    "Logger": ("bangerbot.core", "Logger"),
    "RelayPool": ("bangerbot.core", "RelayPool"),
    "RelayPoolConfig": ("bangerbot.core", "RelayPoolConfig"),
    "Event": ("bangerbot.models", "Event"),
    "EventFilter": ("bangerbot.models", "EventFilter"),
    "Profile": ("bangerbot.models", "Profile"),
    "Relay": ("bangerbot.models", "Relay"),
    "Tag": ("bangerbot.models", "Tag"),
    "FeedAssembler": ("bangerbot.services.tracker", "FeedAssembler"),
    "LoggingListener": ("bangerbot.services.tracker", "LoggingListener"),
    "ProfileCache": ("bangerbot.services.tracker", "ProfileCache"),
    "ReferenceResolver": ("bangerbot.services.tracker", "ReferenceResolver"),
    "Tracker": ("bangerbot.services", "Tracker"),
    "TrackerConfig": ("bangerbot.services", "TrackerConfig"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'bangerbot' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
