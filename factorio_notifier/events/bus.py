"""Lossy broadcast channel between the log tailer and its consumers.

The producer never waits: each subscriber owns a fixed-size ring buffer and a
subscriber that falls behind loses its oldest unread events. The next ``recv()``
after such a loss raises ``SubscriberLagged`` so the consumer can see the gap.
"""

import asyncio
from collections import deque
from typing import Deque, List

from ..errors import NotifierError
from ..logger import logger
from .base import GameEvent


class SubscriberLagged(NotifierError):
    """Raised once by ``recv()`` after buffered events were overwritten."""

    def __init__(self, skipped: int):
        super().__init__(f"Subscriber lagged, {skipped} event(s) dropped")
        self.skipped = skipped


class BusClosed(NotifierError):
    """Raised by ``recv()`` once the bus is closed and the buffer is drained."""


class Subscription:
    """A single consumer's view of the bus."""

    def __init__(self, bus: "EventBus", capacity: int):
        self._bus = bus
        self._buffer: Deque[GameEvent] = deque(maxlen=capacity)
        self._skipped = 0
        self._ready = asyncio.Event()
        self._closed = False

    @property
    def pending(self) -> int:
        """Number of buffered, unread events."""
        return len(self._buffer)

    @property
    def closed(self) -> bool:
        return self._closed

    def _push(self, event: GameEvent) -> None:
        if len(self._buffer) == self._buffer.maxlen:
            # deque(maxlen=...) evicts the oldest entry on append
            self._skipped += 1
        self._buffer.append(event)
        self._ready.set()

    def _shutdown(self) -> None:
        self._closed = True
        self._ready.set()

    async def recv(self) -> GameEvent:
        """Wait for and return the next event.

        Raises:
            SubscriberLagged: events were dropped since the previous call
            BusClosed: the bus was closed and nothing is left to read
        """
        while True:
            if self._skipped:
                skipped, self._skipped = self._skipped, 0
                raise SubscriberLagged(skipped)

            if self._buffer:
                return self._buffer.popleft()

            if self._closed:
                raise BusClosed("Event bus closed")

            self._ready.clear()
            await self._ready.wait()

    def close(self) -> None:
        """Unsubscribe from the bus. Buffered events remain readable."""
        self._bus._unsubscribe(self)
        self._shutdown()


class EventBus:
    """Publish/subscribe channel with per-subscriber bounded buffers."""

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._subscribers: List[Subscription] = []
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self) -> Subscription:
        """Create a subscription that receives every event published from now on."""
        subscription = Subscription(self, self.capacity)
        if self._closed:
            subscription._shutdown()
        else:
            self._subscribers.append(subscription)
        return subscription

    def publish(self, event: GameEvent) -> int:
        """Hand an event to every subscriber without waiting.

        Returns:
            Number of subscribers the event was delivered to
        """
        if self._closed:
            logger.debug(f"Event bus closed, discarding {event.event_type}")
            return 0

        for subscription in self._subscribers:
            subscription._push(event)
        return len(self._subscribers)

    def close(self) -> None:
        """Stop accepting events. Subscribers drain what they hold, then see BusClosed."""
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscribers:
            subscription._shutdown()
        self._subscribers.clear()

    def _unsubscribe(self, subscription: Subscription) -> None:
        try:
            self._subscribers.remove(subscription)
        except ValueError:
            pass
