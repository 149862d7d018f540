"""Async notification stream for one relay subscription.

A [Subscription][bangerbot.utils.subscription.Subscription] turns the relay
client's push callbacks into an async iterator. The client publishes
[EventMessage][bangerbot.utils.subscription.EventMessage] and
[EndOfStoredEvents][bangerbot.utils.subscription.EndOfStoredEvents] items;
consumers iterate with ``async for``. Several consumers may listen to the
same subscription, and each receives every message published after it
started listening. Messages published before the first listener attaches
are buffered and handed to that listener.

Examples:
    ```python
    subscription = await client.subscribe(event_filter, close_on_eose=True)
    async for message in subscription:
        if isinstance(message, EventMessage):
            handle(message.event)
    ```
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable

from bangerbot.models.message import EndOfStoredEvents, EventMessage, RelayMessage


__all__ = ["EndOfStoredEvents", "EventMessage", "RelayMessage", "Subscription"]

_CLOSED = object()


class Subscription:
    """Cancelable, multi-consumer notification stream.

    Args:
        relay_url: Endpoint the subscription was issued to.
        subscription_id: Identifier assigned by the relay client.
        close_on_eose: End the stream right after the end-of-stored-events
            signal (point queries).
        on_close: Coroutine function run once when the subscription is
            closed, typically an unsubscribe request to the relay.
    """

    def __init__(
        self,
        relay_url: str,
        subscription_id: str = "",
        *,
        close_on_eose: bool = False,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._relay_url = relay_url
        self._subscription_id = subscription_id
        self._close_on_eose = close_on_eose
        self._on_close = on_close
        self._queues: list[asyncio.Queue[RelayMessage | object]] = []
        self._backlog: list[RelayMessage] = []
        self._finished = False
        self._released = False

    @property
    def relay_url(self) -> str:
        return self._relay_url

    @property
    def subscription_id(self) -> str:
        return self._subscription_id

    @property
    def closed(self) -> bool:
        return self._finished

    def publish(self, message: RelayMessage) -> None:
        """Deliver *message* to every listener. Ignored once the stream is closed."""
        if self._finished:
            return
        if self._queues:
            for queue in self._queues:
                queue.put_nowait(message)
        else:
            self._backlog.append(message)
        if self._close_on_eose and isinstance(message, EndOfStoredEvents):
            self.end()

    def end(self) -> None:
        """End the stream for every listener without releasing it at the relay."""
        if self._finished:
            return
        self._finished = True
        for queue in self._queues:
            queue.put_nowait(_CLOSED)

    async def listen(self) -> AsyncIterator[RelayMessage]:
        """Yield messages until the subscription is closed."""
        queue: asyncio.Queue[RelayMessage | object] = asyncio.Queue()
        if not self._queues:
            for message in self._backlog:
                queue.put_nowait(message)
            self._backlog.clear()
        if self._finished:
            queue.put_nowait(_CLOSED)
        self._queues.append(queue)
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item  # type: ignore[misc]
        finally:
            self._queues.remove(queue)

    def __aiter__(self) -> AsyncIterator[RelayMessage]:
        return self.listen()

    async def close(self) -> None:
        """End the stream for every listener and release it at the relay. Idempotent."""
        self.end()
        if self._released:
            return
        self._released = True
        if self._on_close is not None:
            await self._on_close()

    def __repr__(self) -> str:
        return (
            f"Subscription(relay={self._relay_url}, id={self._subscription_id}, "
            f"closed={self._finished})"
        )
