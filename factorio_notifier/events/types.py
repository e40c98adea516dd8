"""Event type definitions."""

from enum import Enum


class EventType(str, Enum):
    """All event types in the system."""

    # Player presence events from the log
    PLAYER_JOINED = "player.joined"
    PLAYER_LEFT = "player.left"

    # Server log events
    SESSION_RESET = "server.session_reset"
