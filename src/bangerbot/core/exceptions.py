"""bangerbot exception hierarchy.

Typed exceptions for the few failure categories that cross component
boundaries. Inside the tracking engine every failure degrades to "skip
this unit of work", so these are caught close to where they are raised;
configuration and connectivity errors reach the service loop and the
CLI. Decoding failures are plain ``ValueError`` subclasses defined in
[bangerbot.nips.nip19][] so the nips layer stays independent of core.

Exception hierarchy:

```text
BangerBotError (base -- never raised directly)
├── ConfigurationError        -- config validation, bad YAML, bad identity
└── ConnectivityError         -- no relay reachable, connect failures
    └── RelayTimeoutError     -- no relay connected in time
```

See Also:
    [RelayPool][bangerbot.core.pool.RelayPool]: Catches
        [ConnectivityError][bangerbot.core.exceptions.ConnectivityError]
        per endpoint without failing the pool.
    [Tracker.run()][bangerbot.services.tracker.Tracker.run]: Raises
        [ConnectivityError][bangerbot.core.exceptions.ConnectivityError]
        when no relay is connected, counted as a failed heartbeat.
"""

from __future__ import annotations


class BangerBotError(Exception):
    """Base exception for all bangerbot errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(BangerBotError):
    """Invalid or missing configuration (YAML, CLI flags, tracked identity)."""


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(BangerBotError):
    """A relay could not be reached or dropped the connection.

    Attributes:
        url: The relay endpoint, when known.
    """

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class RelayTimeoutError(ConnectivityError):
    """No relay connection was established within the allowed time."""

