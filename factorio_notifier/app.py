"""Wires the presence pipeline together and owns its background tasks."""

import asyncio
from typing import Optional

from .config import Settings
from .errors import TailAccessError
from .events.bus import EventBus
from .log_monitor import HistoryReconciler, LiveTailer, LogParser
from .logger import logger
from .notifications import NotificationSink, NotificationWorker, TelegramSink
from .players import PresenceStore


class NotifierApp:
    """Replays the log, then runs the tailer and the notification worker."""

    def __init__(self, settings: Settings, sink: Optional[NotificationSink] = None):
        """Initialize the notifier.

        Args:
            settings: Loaded settings
            sink: Notification sink, defaults to Telegram from settings
        """
        self.settings = settings

        # Shared state, created once and handed to every component
        self.store = PresenceStore()
        self.event_bus = EventBus(capacity=settings.notifications.bus_capacity)

        self.log_parser = LogParser(settings.log_parser)
        self.reconciler = HistoryReconciler(self.store, self.log_parser)
        self.tailer = LiveTailer(
            self.store, self.event_bus, self.log_parser, settings.tailer
        )

        self.sink = sink or TelegramSink(
            token=settings.telegram_token,
            chat_id=settings.telegram_chat_id,
            api_base_url=settings.notifications.api_base_url,
            timeout=settings.notifications.request_timeout_seconds,
        )
        self.worker = NotificationWorker(self.event_bus, self.sink)

        self._tail_task: Optional[asyncio.Task] = None
        self._worker_task: Optional[asyncio.Task] = None
        self._shutdown_event = asyncio.Event()
        self.tail_failed = False

    async def start(self) -> None:
        """Replay history and start the background tasks.

        Raises:
            ReconciliationAccessError: if the existing log can't be replayed
        """
        log_path = self.settings.factorio_log_path
        offset = await self.reconciler.reconcile(log_path)

        self._worker_task = asyncio.create_task(
            self.worker.run(), name="notification-worker"
        )
        self._tail_task = asyncio.create_task(
            self._run_tailer(offset), name="log-tailer"
        )

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    async def run(self) -> int:
        """Run until shutdown is requested.

        Returns:
            Process exit code
        """
        try:
            await self.start()
            await self._shutdown_event.wait()
        finally:
            await self.stop()

        if self.tail_failed and self.settings.exit_on_tail_failure:
            return 1
        return 0

    async def stop(self) -> None:
        """Cancel background tasks without draining pending notifications."""
        logger.info("Shutting down log monitor")
        self.tailer.stop()

        for task in (self._tail_task, self._worker_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        aclose = getattr(self.sink, "aclose", None)
        if aclose is not None:
            await aclose()

    async def _run_tailer(self, offset: int) -> None:
        try:
            await self.tailer.run(self.settings.factorio_log_path, offset)
        except TailAccessError as e:
            self.tail_failed = True
            logger.error(f"Log monitor error: {e}", exc_info=True)
        except Exception as e:
            self.tail_failed = True
            logger.error(f"Unexpected log monitor failure: {e}", exc_info=True)
        else:
            return

        # Nothing will be published again, let the worker finish what it holds
        self.event_bus.close()
        if self.settings.exit_on_tail_failure:
            logger.error("Log monitor stopped, shutting down")
            self.request_shutdown()
        else:
            logger.warning("Log monitor stopped, no further notifications will be sent")
