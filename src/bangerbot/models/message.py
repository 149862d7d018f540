"""Messages carried by a relay subscription stream.

A subscription yields zero or more
[EventMessage][bangerbot.models.message.EventMessage] items followed, for
stored history, by one
[EndOfStoredEvents][bangerbot.models.message.EndOfStoredEvents] signal.
The end-of-stored-events signal does not close a long-lived subscription.
"""

from __future__ import annotations

from dataclasses import dataclass

from .event import Event


@dataclass(frozen=True, slots=True)
class EventMessage:
    """An event delivered by *relay_url*."""

    relay_url: str
    event: Event


@dataclass(frozen=True, slots=True)
class EndOfStoredEvents:
    """*relay_url* has no more stored matches for the subscription."""

    relay_url: str


RelayMessage = EventMessage | EndOfStoredEvents
