"""
Chat notifications for presence changes.
"""

from .sink import NotificationSink
from .telegram import TelegramPayload, TelegramSink
from .worker import NotificationWorker, format_event

__all__ = [
    "NotificationSink",
    "TelegramPayload",
    "TelegramSink",
    "NotificationWorker",
    "format_event",
]
