"""Business logic services.

Every service subclasses
[BaseService][bangerbot.core.base_service.BaseService] and is registered
in the CLI service registry in ``bangerbot.__main__``.

Attributes:
    Tracker: Follows one author across relays, keeps the notes where the
        author quotes another note, and recursively resolves the quoted
        chain. See [Tracker][bangerbot.services.tracker.Tracker].
"""

from .tracker import Tracker, TrackerConfig


__all__ = ["Tracker", "TrackerConfig"]
