"""Game events produced by the log tailer."""

from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .types import EventType


class BaseEvent(BaseModel):
    """Base class for all events."""

    model_config = ConfigDict(frozen=True)

    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PlayerJoinedEvent(BaseEvent):
    """Fired when a player becomes online."""

    event_type: Literal[EventType.PLAYER_JOINED] = EventType.PLAYER_JOINED
    player_name: str = Field(..., description="Player username")


class PlayerLeftEvent(BaseEvent):
    """Fired when an online player goes offline."""

    event_type: Literal[EventType.PLAYER_LEFT] = EventType.PLAYER_LEFT
    player_name: str = Field(..., description="Player username")


class SessionResetEvent(BaseEvent):
    """Fired when the server starts a new session and everyone is dropped."""

    event_type: Literal[EventType.SESSION_RESET] = EventType.SESSION_RESET


GameEvent = Annotated[
    Union[PlayerJoinedEvent, PlayerLeftEvent, SessionResetEvent],
    Field(discriminator="event_type"),
]
