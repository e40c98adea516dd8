"""Silent replay of existing log content at startup."""

from pathlib import Path
from typing import Optional, Set

import aiofiles
from aiofiles import os as aioos

from ..errors import ReconciliationAccessError
from ..logger import logger
from ..players.store import PresenceStore
from .parser import LineKind, LogParser, ParsedLine


def apply_line(players: Set[str], parsed: Optional[ParsedLine]) -> None:
    """Fold one classified line into a player set."""
    if parsed is None:
        return
    match parsed.kind:
        case LineKind.SESSION_STARTED:
            players.clear()
        case LineKind.JOIN:
            players.add(parsed.player_name)
        case LineKind.LEAVE:
            players.discard(parsed.player_name)


def decode_line(raw: bytes) -> str:
    """Decode a raw log line and drop its terminator."""
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


class HistoryReconciler:
    """Rebuilds the presence set from the log without emitting any events."""

    def __init__(self, store: PresenceStore, log_parser: LogParser):
        self.store = store
        self.log_parser = log_parser

    async def reconcile(self, log_path: Path) -> int:
        """Replay every complete line of the log into the store.

        A trailing line without a newline is left alone; the tailer picks
        it up once it is finished.

        Args:
            log_path: Path to the player log

        Returns:
            Byte offset just past the last replayed line (0 if the file
            does not exist yet)

        Raises:
            ReconciliationAccessError: if the file exists but can't be read
        """
        if not await aioos.path.exists(log_path):
            logger.info(f"Log file {log_path} not found, nothing to replay")
            return 0

        logger.info(f"Reading history from file: {log_path}")

        offset = 0
        replayed = 0
        try:
            async with self.store.exclusive() as players:
                async with aiofiles.open(log_path, "rb") as f:
                    async for raw in f:
                        if not raw.endswith(b"\n"):
                            break
                        parsed = self.log_parser.parse_line(decode_line(raw))
                        apply_line(players, parsed)
                        offset += len(raw)
                        replayed += 1
        except OSError as e:
            raise ReconciliationAccessError(
                f"Failed to read log file {log_path} at byte {offset}: {e}"
            ) from e

        logger.info(
            f"Replayed {replayed} lines, {len(self.store)} player(s) online: "
            f"{sorted(self.store.snapshot())}"
        )
        return offset
