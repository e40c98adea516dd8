"""Log parser for the Factorio player log."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..config import LogParserSettings
from ..logger import logger


class LineKind(str, Enum):
    """Meaningful line shapes in the player log."""

    SESSION_STARTED = "SESSION_STARTED"
    JOIN = "JOIN"
    LEAVE = "LEAVE"


class ParsedLine(BaseModel):
    """A classified log line."""

    model_config = ConfigDict(frozen=True)

    kind: LineKind
    actor: str = ""
    player_name: Optional[str] = None


SESSION_STARTED = ParsedLine(kind=LineKind.SESSION_STARTED)


class LogParser:
    """Classifies player log lines.

    A line containing the session marker anywhere starts a new session.
    Otherwise ``ACTION | actor | username`` with ACTION being JOIN or LEAVE
    is a player action. Everything else is ignored.
    """

    def __init__(self, settings: Optional[LogParserSettings] = None):
        self.settings = settings or LogParserSettings()

    def parse_line(self, line: str) -> Optional[ParsedLine]:
        """Parse a log line.

        Args:
            line: Log line without its line terminator

        Returns:
            Parsed line or None if the line is not recognized
        """
        if self.settings.session_marker in line:
            return SESSION_STARTED

        parts = [part.strip() for part in line.split(self.settings.field_separator)]
        if len(parts) != 3:
            return None

        action, actor, player_name = parts
        if action not in (LineKind.JOIN.value, LineKind.LEAVE.value):
            return None

        if not player_name:
            logger.debug(f"{action} line with an empty username: {line!r}")

        return ParsedLine(kind=LineKind(action), actor=actor, player_name=player_name)
