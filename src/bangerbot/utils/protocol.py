"""Nostr relay client built on ``nostr-sdk``.

Provides [NostrRelayClient][bangerbot.utils.protocol.NostrRelayClient],
the default [RelayClient][bangerbot.core.pool.RelayClient] used by
[RelayPool][bangerbot.core.pool.RelayPool]. It owns one ``nostr_sdk.Client``
per endpoint and routes SDK notifications by subscription id into
[Subscription][bangerbot.utils.subscription.Subscription] streams after
being parsed into [Event][bangerbot.models.event.Event] models; events
that fail the typed parse are logged and dropped here, so nothing past
this boundary sees malformed wire data.

Attributes:
    create_client: Read-only ``nostr_sdk.Client`` factory.
    build_filter: Convert an [EventFilter][bangerbot.models.filter.EventFilter]
        to a ``nostr_sdk.Filter``.
    NostrRelayClient: Single-endpoint client with connect, subscribe,
        disconnect watch, and close.

Examples:
    ```python
    client = NostrRelayClient("wss://nos.lol")
    await client.connect(timeout=10.0)
    subscription = await client.subscribe(EventFilter(kinds=(1,), limit=50))
    async for message in subscription:
        ...
    await client.close()
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta

from nostr_sdk import (
    Client,
    ClientBuilder,
    EventId,
    Filter,
    HandleNotification,
    Kind,
    NostrSdkError,
    PublicKey,
    RelayMessage,
    RelayUrl,
)
from nostr_sdk import Event as NostrEvent

from bangerbot.models import Event, EventFilter
from bangerbot.models.message import EndOfStoredEvents, EventMessage

from .subscription import Subscription


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


async def create_client() -> Client:
    """Create a read-only ``nostr_sdk.Client`` (no signer)."""
    return ClientBuilder().build()


def build_filter(event_filter: EventFilter) -> Filter:
    """Convert an [EventFilter][bangerbot.models.filter.EventFilter] to a ``nostr_sdk.Filter``."""
    result = Filter()
    if event_filter.kinds:
        result = result.kinds([Kind(kind) for kind in event_filter.kinds])
    if event_filter.authors:
        result = result.authors([PublicKey.parse(author) for author in event_filter.authors])
    if event_filter.ids:
        result = result.ids([EventId.parse(event_id) for event_id in event_filter.ids])
    if event_filter.limit is not None:
        result = result.limit(event_filter.limit)
    return result


class _NotificationRouter(HandleNotification):
    """Forward SDK notifications to the owning client."""

    def __init__(self, owner: NostrRelayClient) -> None:
        super().__init__()
        self._owner = owner

    async def handle(self, relay_url: RelayUrl, subscription_id: str, event: NostrEvent) -> None:
        self._owner.dispatch_event(subscription_id, event)

    async def handle_msg(self, relay_url: RelayUrl, msg: RelayMessage) -> None:
        message = msg.as_enum()
        if message.is_end_of_stored_events():
            self._owner.dispatch_eose(message.subscription_id)


class NostrRelayClient:
    """[RelayClient][bangerbot.core.pool.RelayClient] backed by ``nostr_sdk.Client``.

    Args:
        url: Normalized relay URL.
        poll_interval: Seconds between connection status checks in
            [wait_disconnected()][bangerbot.utils.protocol.NostrRelayClient.wait_disconnected].
    """

    def __init__(self, url: str, *, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self._url = url
        self._poll_interval = poll_interval
        self._client: Client | None = None
        self._notifications: asyncio.Task[None] | None = None
        self._subscriptions: dict[str, Subscription] = {}

    @property
    def url(self) -> str:
        return self._url

    async def connect(self, timeout: float) -> None:  # noqa: ASYNC109
        """Connect to the relay and start routing notifications.

        Raises:
            TimeoutError: If the relay did not connect within *timeout*.
            OSError: If the relay rejected or failed the connection.
        """
        client = await create_client()
        self._client = client
        relay_url = RelayUrl.parse(self._url)
        await client.add_relay(relay_url)

        output = await client.try_connect(timedelta(seconds=timeout))
        if relay_url not in output.success:
            error = output.failed.get(relay_url)
            if error is None:
                raise TimeoutError(f"Connection timed out: {self._url}")
            raise OSError(f"Connection failed: {self._url} ({error})")

        self._notifications = asyncio.create_task(
            client.handle_notifications(_NotificationRouter(self)),
            name=f"notifications:{self._url}",
        )
        logger.debug("relay_client_connected relay=%s", self._url)

    async def subscribe(
        self, event_filter: EventFilter, *, close_on_eose: bool = False
    ) -> Subscription:
        """Open a subscription and return its notification stream.

        Raises:
            OSError: If the client is not connected.
        """
        if self._client is None:
            raise OSError(f"Not connected: {self._url}")

        output = await self._client.subscribe(build_filter(event_filter), None)
        subscription_id = str(output.id)
        subscription = Subscription(
            self._url,
            subscription_id,
            close_on_eose=close_on_eose,
            on_close=lambda: self._unsubscribe(subscription_id),
        )
        self._subscriptions[subscription_id] = subscription
        return subscription

    async def _unsubscribe(self, subscription_id: str) -> None:
        self._subscriptions.pop(subscription_id, None)
        if self._client is None:
            return
        with contextlib.suppress(NostrSdkError):
            await self._client.unsubscribe(subscription_id)

    def dispatch_event(self, subscription_id: str, nostr_event: NostrEvent) -> None:
        subscription = self._subscriptions.get(subscription_id)
        if subscription is None:
            return
        try:
            event = Event.from_nostr(nostr_event)
        except (ValueError, TypeError, OverflowError) as e:
            logger.debug("event_rejected relay=%s error=%s", self._url, e)
            return
        subscription.publish(EventMessage(self._url, event))

    def dispatch_eose(self, subscription_id: str) -> None:
        subscription = self._subscriptions.get(subscription_id)
        if subscription is not None:
            subscription.publish(EndOfStoredEvents(self._url))

    async def is_connected(self) -> bool:
        if self._client is None:
            return False
        try:
            relay = await self._client.relay(RelayUrl.parse(self._url))
        except NostrSdkError:
            return False
        return bool(relay.is_connected())

    async def wait_disconnected(self) -> None:
        """Return once the relay connection is no longer established."""
        while await self.is_connected():
            await asyncio.sleep(self._poll_interval)

    async def close(self) -> None:
        """Close every subscription and shut the client down. Idempotent."""
        for subscription in list(self._subscriptions.values()):
            subscription.end()
        self._subscriptions.clear()

        if self._notifications is not None:
            self._notifications.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await self._notifications
            self._notifications = None

        if self._client is not None:
            client, self._client = self._client, None
            with contextlib.suppress(Exception):
                await client.shutdown()
            logger.debug("relay_client_closed relay=%s", self._url)

    def __repr__(self) -> str:
        return f"NostrRelayClient(url={self._url}, connected={self._client is not None})"
