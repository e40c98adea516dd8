"""Notification sink interface."""

from typing import Protocol


class NotificationSink(Protocol):
    """Delivers a formatted message to a human-facing channel."""

    async def deliver(self, message: str) -> None:
        """Deliver one message.

        Raises:
            DeliveryError: if the message could not be delivered
        """
        ...
