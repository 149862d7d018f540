"""
Relay pool: one client per endpoint, fan-out subscriptions and point queries.

[RelayPool][bangerbot.core.pool.RelayPool] owns the set of active relay
clients. Every endpoint connects independently in its own task, bounded
by a timeout, so a slow or dead relay never delays the others. Long-lived
subscriptions are issued at most once per endpoint; point queries are
sent to every connected endpoint and end on end-of-stored-events.

Relay clients are created through an injected factory so the pool depends
only on the [RelayClient][bangerbot.core.pool.RelayClient] protocol; the
tracker wires in [NostrRelayClient][bangerbot.utils.protocol.NostrRelayClient].

Examples:
    ```python
    pool = RelayPool(
        RelayPoolConfig(),
        client_factory=NostrRelayClient,
        on_connected=lambda url: pool.subscribe(feed_filter, handle_note),
    )
    pool.connect(["wss://nos.lol", "wss://relay.damus.io"])
    ...
    await pool.close()
    ```

See Also:
    [Tracker][bangerbot.services.tracker.Tracker]: Drives the pool.
    [Subscription][bangerbot.utils.subscription.Subscription]: The stream
        returned by ``RelayClient.subscribe()``.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Callable, Coroutine, Iterable
from types import TracebackType
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from bangerbot.models import EndOfStoredEvents, Event, EventFilter, RelayMessage

from .exceptions import ConnectivityError, RelayTimeoutError
from .logger import Logger


EventHandler = Callable[[Event, str], None]


class SubscriptionStream(Protocol):
    """Async stream of relay messages that can be closed."""

    def __aiter__(self) -> AsyncIterator[RelayMessage]: ...

    async def close(self) -> None: ...


class RelayClient(Protocol):
    """Connection to a single relay endpoint.

    ``connect()`` raises ``OSError``, ``TimeoutError``, or
    [ConnectivityError][bangerbot.core.exceptions.ConnectivityError] on
    failure. ``wait_disconnected()`` returns once an established connection
    is lost. ``close()`` must be idempotent.
    """

    @property
    def url(self) -> str: ...

    async def connect(self, timeout: float) -> None: ...  # noqa: ASYNC109

    async def subscribe(
        self, event_filter: EventFilter, *, close_on_eose: bool = False
    ) -> SubscriptionStream: ...

    async def wait_disconnected(self) -> None: ...

    async def close(self) -> None: ...


_CONNECT_ERRORS = (TimeoutError, OSError, ConnectivityError)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class RelayPoolTimeoutsConfig(BaseModel):
    """Timeouts for relay operations."""

    connect: float = Field(
        default=10.0, ge=0.1, le=300.0, description="Per-relay connection timeout in seconds"
    )


class RelayPoolRetryConfig(BaseModel):
    """Retry strategy for failed initial connection attempts.

    ``max_attempts=1`` (the default) disables retries. Exponential backoff
    waits ``initial_delay * 2^attempt``, linear backoff
    ``initial_delay * (attempt + 1)``, both capped at ``max_delay``.
    Relays that disconnect after connecting are never retried.
    """

    max_attempts: int = Field(default=1, ge=1, le=10, description="Connection attempts per relay")
    initial_delay: float = Field(default=1.0, ge=0.1, description="Initial retry delay")
    max_delay: float = Field(default=10.0, ge=0.1, description="Maximum retry delay")
    exponential_backoff: bool = Field(default=True, description="Use exponential backoff")

    @field_validator("max_delay")
    @classmethod
    def validate_max_delay(cls, v: float, info: ValidationInfo) -> float:
        """Ensure max_delay >= initial_delay."""
        initial_delay = info.data.get("initial_delay", 1.0)
        if v < initial_delay:
            raise ValueError(f"max_delay ({v}) must be >= initial_delay ({initial_delay})")
        return v


class RelayPoolConfig(BaseModel):
    """Aggregate configuration for the relay pool."""

    timeouts: RelayPoolTimeoutsConfig = Field(default_factory=RelayPoolTimeoutsConfig)
    retry: RelayPoolRetryConfig = Field(default_factory=RelayPoolRetryConfig)


# ---------------------------------------------------------------------------
# Pool Class
# ---------------------------------------------------------------------------


class RelayPool:
    """Set of relay clients with per-endpoint subscription tracking.

    All state changes happen synchronously between awaits, so the
    subscribed-endpoint guard and the connected set stay consistent under
    asyncio's cooperative scheduling.

    Args:
        config: Pool configuration (defaults if omitted).
        client_factory: Creates an unconnected client for an endpoint URL.
        on_connected: Called with the URL each time an endpoint connects.
        on_disconnected: Called with the URL when a connected endpoint drops.
    """

    def __init__(
        self,
        config: RelayPoolConfig | None = None,
        *,
        client_factory: Callable[[str], RelayClient],
        on_connected: Callable[[str], None] | None = None,
        on_disconnected: Callable[[str], None] | None = None,
    ) -> None:
        self._config = config or RelayPoolConfig()
        self._client_factory = client_factory
        self._on_connected = on_connected
        self._on_disconnected = on_disconnected
        self._clients: dict[str, RelayClient] = {}
        self._connecting: set[str] = set()
        self._subscribed: set[str] = set()
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False
        self._state_changed = asyncio.Event()
        self._logger = Logger("relay_pool")

    def _retry_delay(self, attempt: int) -> float:
        retry = self._config.retry
        if retry.exponential_backoff:
            delay = retry.initial_delay * (2**attempt)
        else:
            delay = retry.initial_delay * (attempt + 1)
        return float(min(delay, retry.max_delay))

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.error(
                "pool_task_failed",
                task=task.get_name(),
                error=str(error),
                error_type=type(error).__name__,
            )

    # -------------------------------------------------------------------------
    # Connection Lifecycle
    # -------------------------------------------------------------------------

    def connect(self, endpoints: Iterable[str]) -> int:
        """Start connecting to every endpoint without waiting for any of them.

        Endpoints already connected or connecting are skipped.

        Returns:
            Number of connection attempts scheduled.
        """
        self._closed = False
        scheduled = 0
        for url in endpoints:
            if url in self._clients or url in self._connecting:
                continue
            self._connecting.add(url)
            self._spawn(self._connect_endpoint(url), name=f"connect:{url}")
            scheduled += 1
        self._logger.info("connection_starting", relays=scheduled)
        return scheduled

    async def _connect_endpoint(self, url: str) -> None:
        log = self._logger.bind(url=url)
        timeout = self._config.timeouts.connect
        max_attempts = self._config.retry.max_attempts
        try:
            for attempt in range(max_attempts):
                client = self._client_factory(url)
                try:
                    await asyncio.wait_for(client.connect(timeout), timeout=timeout)
                except asyncio.CancelledError:
                    await self._close_client(client)
                    raise
                except _CONNECT_ERRORS as e:
                    await self._close_client(client)
                    error = str(e) or type(e).__name__
                    if attempt + 1 >= max_attempts:
                        log.warning("relay_connect_failed", attempts=attempt + 1, error=error)
                        return
                    delay = self._retry_delay(attempt)
                    log.warning(
                        "relay_connect_retry", attempt=attempt + 1, delay=delay, error=error
                    )
                    await asyncio.sleep(delay)
                    continue

                if self._closed:
                    await self._close_client(client)
                    return
                self._clients[url] = client
                log.info("relay_connected", connected=self.connected_count)
                self._spawn(self._watch(url, client), name=f"watch:{url}")
                if self._on_connected is not None:
                    self._on_connected(url)
                return
        finally:
            self._connecting.discard(url)
            self._state_changed.set()

    async def wait_connected(self, timeout: float) -> None:  # noqa: ASYNC109
        """Wait until at least one endpoint is connected.

        Raises:
            ConnectivityError: If every connection attempt has settled and
                none succeeded.
            RelayTimeoutError: If no endpoint connected within *timeout*.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not self._clients:
            if not self._connecting:
                raise ConnectivityError("No relays connected")
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise RelayTimeoutError(f"No relay connected within {timeout}s")
            self._state_changed.clear()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._state_changed.wait(), timeout=remaining)

    async def _watch(self, url: str, client: RelayClient) -> None:
        log = self._logger.bind(url=url)
        await client.wait_disconnected()
        if self._clients.get(url) is not client:
            return
        del self._clients[url]
        self._subscribed.discard(url)
        await self._close_client(client)
        log.warning("relay_disconnected", connected=self.connected_count)
        if self._on_disconnected is not None:
            self._on_disconnected(url)

    @staticmethod
    async def _close_client(client: RelayClient) -> None:
        # Shutdown of a half-open client can fail in many transport-specific ways.
        with contextlib.suppress(Exception):
            await client.close()

    async def close(self) -> None:
        """Cancel in-flight work and close every relay client. Idempotent."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        clients = list(self._clients.values())
        self._clients.clear()
        self._subscribed.clear()
        self._connecting.clear()
        for client in clients:
            await self._close_client(client)
        if clients:
            self._logger.info("pool_closed", relays=len(clients))

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, event_filter: EventFilter, handler: EventHandler) -> int:
        """Issue a long-lived subscription to every connected endpoint.

        Endpoints that already carry a subscription from this pool are
        skipped, so calling this on every new connection is idempotent.

        Returns:
            Number of endpoints newly subscribed.
        """
        issued = 0
        for url, client in list(self._clients.items()):
            if url in self._subscribed:
                continue
            self._subscribed.add(url)
            self._spawn(
                self._consume(url, client, event_filter, handler, close_on_eose=False),
                name=f"subscription:{url}",
            )
            issued += 1
        if issued:
            self._logger.debug("subscription_issued", relays=issued)
        return issued

    def query(self, event_filter: EventFilter, handler: EventHandler) -> int:
        """Send a point query to every connected endpoint.

        The query ends on each relay's end-of-stored-events signal. A relay
        that never answers leaves the query open until the pool is closed.

        Returns:
            Number of endpoints queried (``0`` when none is connected).
        """
        for url, client in list(self._clients.items()):
            self._spawn(
                self._consume(url, client, event_filter, handler, close_on_eose=True),
                name=f"query:{url}",
            )
        return len(self._clients)

    async def _consume(
        self,
        url: str,
        client: RelayClient,
        event_filter: EventFilter,
        handler: EventHandler,
        *,
        close_on_eose: bool,
    ) -> None:
        log = self._logger.bind(url=url)
        try:
            stream = await client.subscribe(event_filter, close_on_eose=close_on_eose)
        except (OSError, ConnectivityError) as e:
            log.warning("subscribe_failed", error=str(e))
            if not close_on_eose:
                self._subscribed.discard(url)
            return

        try:
            async for message in stream:
                if isinstance(message, EndOfStoredEvents):
                    log.debug("end_of_stored_events", query=close_on_eose)
                    continue
                try:
                    handler(message.event, url)
                except Exception as e:  # Intentionally broad: one bad event must not end the stream
                    log.error("handler_failed", id=message.event.id, error=str(e))
        finally:
            await stream.close()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def connected_count(self) -> int:
        """Number of endpoints currently connected."""
        return len(self._clients)

    @property
    def connecting_count(self) -> int:
        """Number of endpoints with a connection attempt in flight."""
        return len(self._connecting)

    @property
    def connected(self) -> tuple[str, ...]:
        return tuple(self._clients)

    def is_connected(self, url: str) -> bool:
        return url in self._clients

    def is_subscribed(self, url: str) -> bool:
        return url in self._subscribed

    @property
    def config(self) -> RelayPoolConfig:
        return self._config

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> RelayPool:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"RelayPool(connected={len(self._clients)}, connecting={len(self._connecting)}, "
            f"subscribed={len(self._subscribed)})"
        )
