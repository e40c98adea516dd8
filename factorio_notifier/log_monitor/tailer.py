"""Live log following using watchfiles."""

import asyncio
from pathlib import Path
from typing import Optional

import aiofiles
from aiofiles import os as aioos
from watchfiles import Change, awatch

from ..config import TailerSettings
from ..errors import TailAccessError
from ..events.base import PlayerJoinedEvent, PlayerLeftEvent, SessionResetEvent
from ..events.bus import EventBus
from ..logger import logger
from ..players.store import PresenceStore
from .parser import LineKind, LogParser
from .reconciler import decode_line


class LiveTailer:
    """Follows the player log and turns new lines into presence changes and events.

    This is the only writer of the presence store once startup replay is
    done, and the only producer on the event bus.
    """

    def __init__(
        self,
        store: PresenceStore,
        event_bus: EventBus,
        log_parser: LogParser,
        settings: Optional[TailerSettings] = None,
    ):
        """Initialize live tailer.

        Args:
            store: Presence store to mutate
            event_bus: Bus to publish presence changes on
            log_parser: Log parser for classifying lines
            settings: Polling and watch settings
        """
        self.store = store
        self.event_bus = event_bus
        self.log_parser = log_parser
        self.settings = settings or TailerSettings()

        # Byte offset of the first unread byte
        self._file_pointer = 0
        # Bytes of an unfinished last line
        self._partial = b""

        self._stop_event = asyncio.Event()

    @property
    def file_pointer(self) -> int:
        return self._file_pointer

    def stop(self) -> None:
        """Ask the tail loop to finish at its next wakeup."""
        self._stop_event.set()

    async def run(self, log_path: Path, start_offset: int = 0) -> None:
        """Follow the log until stopped.

        Args:
            log_path: Path to the player log
            start_offset: Byte offset where startup replay stopped

        Raises:
            TailAccessError: if the log is removed or can't be read
        """
        log_path = log_path.resolve()
        self._file_pointer = start_offset
        self._partial = b""

        if not await self._wait_for_file(log_path):
            return

        logger.info("Log monitor started.")

        try:
            # Empty change sets are yielded on every rescan timeout once the
            # watcher is running; reading on those catches writes that landed
            # before it started.
            async for changes in awatch(
                log_path.parent,
                watch_filter=None,
                debounce=self.settings.watch_debounce_ms,
                stop_event=self._stop_event,
                rust_timeout=self.settings.rescan_interval_ms,
                yield_on_timeout=True,
                force_polling=self.settings.force_polling,
                recursive=False,
            ):
                kinds = {
                    change_type
                    for change_type, changed_path in changes
                    if Path(changed_path).resolve() == log_path
                }
                if changes and not kinds:
                    continue

                if Change.deleted in kinds and not await aioos.path.exists(log_path):
                    raise TailAccessError(f"Log file {log_path} was removed")

                if Change.added in kinds:
                    logger.info(f"Log file {log_path} recreated, reading from the start")
                    self._file_pointer = 0
                    self._partial = b""

                await self._read_new_lines(log_path)

        except asyncio.CancelledError:
            logger.debug("Tail loop cancelled")
            raise
        except OSError as e:
            raise TailAccessError(f"Failed to watch log file {log_path}: {e}") from e

        logger.info("Log monitor stopped.")

    async def _wait_for_file(self, log_path: Path) -> bool:
        """Poll until the log exists. Returns False if stopped first."""
        announced = False
        while not await aioos.path.exists(log_path):
            if not announced:
                logger.info("Waiting for Factorio to create the log file...")
                announced = True
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.settings.poll_interval_seconds,
                )
            except asyncio.TimeoutError:
                continue
            return False
        return not self._stop_event.is_set()

    async def _read_new_lines(self, log_path: Path) -> None:
        """Read bytes past the file pointer and handle each completed line."""
        try:
            current_size = await aioos.path.getsize(log_path)

            # Check if file was truncated (log rotation)
            if current_size < self._file_pointer:
                logger.info(f"Log file {log_path} truncated, reading from beginning")
                self._file_pointer = 0
                self._partial = b""

            if current_size == self._file_pointer:
                return

            async with aiofiles.open(log_path, "rb") as f:
                await f.seek(self._file_pointer)
                new_content = await f.read()
                self._file_pointer = await f.tell()
        except OSError as e:
            raise TailAccessError(f"Failed to read log file {log_path}: {e}") from e

        *lines, self._partial = (self._partial + new_content).split(b"\n")
        for raw in lines:
            await self.handle_line(decode_line(raw))

    async def handle_line(self, line: str) -> None:
        """Apply one log line to the store, publishing an event if presence changed."""
        parsed = self.log_parser.parse_line(line)
        if parsed is None:
            return

        match parsed.kind:
            case LineKind.SESSION_STARTED:
                await self.store.clear(
                    on_change=lambda: self.event_bus.publish(SessionResetEvent())
                )
                logger.info("Session reset detected. Cleared player list")

            case LineKind.JOIN:
                player_name = parsed.player_name
                if await self.store.add(
                    player_name,
                    on_change=lambda: self.event_bus.publish(
                        PlayerJoinedEvent(player_name=player_name)
                    ),
                ):
                    logger.info(f"Detected join event for: {player_name}")

            case LineKind.LEAVE:
                player_name = parsed.player_name
                if await self.store.remove(
                    player_name,
                    on_change=lambda: self.event_bus.publish(
                        PlayerLeftEvent(player_name=player_name)
                    ),
                ):
                    logger.info(f"Detected leave event for: {player_name}")
