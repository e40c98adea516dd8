"""
Event system for the Factorio notifier.

Typed game events and the lossy broadcast bus that carries them from the
log tailer to notification consumers.
"""

from .base import (
    BaseEvent,
    GameEvent,
    PlayerJoinedEvent,
    PlayerLeftEvent,
    SessionResetEvent,
)
from .bus import BusClosed, EventBus, SubscriberLagged, Subscription
from .types import EventType

__all__ = [
    "BaseEvent",
    "GameEvent",
    "PlayerJoinedEvent",
    "PlayerLeftEvent",
    "SessionResetEvent",
    "EventBus",
    "Subscription",
    "SubscriberLagged",
    "BusClosed",
    "EventType",
]
