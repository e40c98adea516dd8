"""Forwards presence events to a notification sink."""

import html
from typing import assert_never

from ..events.base import (
    GameEvent,
    PlayerJoinedEvent,
    PlayerLeftEvent,
    SessionResetEvent,
)
from ..events.bus import BusClosed, EventBus, SubscriberLagged
from ..logger import log_exception, logger
from .sink import NotificationSink


def format_event(event: GameEvent) -> str:
    """Render an event as an HTML chat message."""
    match event:
        case PlayerJoinedEvent(player_name=player_name):
            return f"<b>{html.escape(player_name)}</b> joined the game"
        case PlayerLeftEvent(player_name=player_name):
            return f"<b>{html.escape(player_name)}</b> left the game"
        case SessionResetEvent():
            return "Server session restarted"
        case _:
            assert_never(event)


class NotificationWorker:
    """Consumes the event bus and delivers one message per event, in order."""

    def __init__(self, event_bus: EventBus, sink: NotificationSink):
        """Initialize notification worker.

        Subscribes right away so nothing published before ``run()`` starts
        is missed.

        Args:
            event_bus: Bus to consume events from
            sink: Destination for formatted messages
        """
        self.sink = sink
        self.subscription = event_bus.subscribe()
        self.delivered = 0
        self.failed = 0

    async def run(self) -> None:
        """Deliver events until the bus is closed."""
        logger.info("Notification worker is started")

        while True:
            try:
                event = await self.subscription.recv()
            except SubscriberLagged as e:
                logger.warning(
                    f"Notification worker fell behind, {e.skipped} event(s) dropped"
                )
                continue
            except BusClosed:
                logger.info("Event bus closed, notification worker exiting")
                return

            message = format_event(event)
            logger.info(f"Notification: {message}")
            if await self._deliver(message):
                self.delivered += 1
            else:
                self.failed += 1

    @log_exception("Failed to deliver notification", default_return=False)
    async def _deliver(self, message: str) -> bool:
        await self.sink.deliver(message)
        return True
