"""Tests for NotificationWorker."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from factorio_notifier.errors import DeliveryError
from factorio_notifier.events.base import (
    PlayerJoinedEvent,
    PlayerLeftEvent,
    SessionResetEvent,
)
from factorio_notifier.events.bus import EventBus
from factorio_notifier.notifications.worker import NotificationWorker, format_event


class RecordingSink:
    """Sink that records messages and optionally fails on some of them."""

    def __init__(self, fail_on=()):
        self.messages = []
        self.fail_on = set(fail_on)
        self.in_flight = 0
        self.max_in_flight = 0

    async def deliver(self, message: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            if message in self.fail_on:
                raise DeliveryError(f"rejected {message}")
            self.messages.append(message)
        finally:
            self.in_flight -= 1


async def run_until_closed(worker, bus):
    bus.close()
    await asyncio.wait_for(worker.run(), timeout=5.0)


class TestFormatEvent:
    """Test message templates."""

    def test_joined(self):
        assert (
            format_event(PlayerJoinedEvent(player_name="Alice"))
            == "<b>Alice</b> joined the game"
        )

    def test_left(self):
        assert (
            format_event(PlayerLeftEvent(player_name="Bob"))
            == "<b>Bob</b> left the game"
        )

    def test_session_reset(self):
        assert format_event(SessionResetEvent()) == "Server session restarted"

    def test_name_is_html_escaped(self):
        """Test markup in a player name can't break the HTML message."""
        assert (
            format_event(PlayerJoinedEvent(player_name="<i>x</i>&"))
            == "<b>&lt;i&gt;x&lt;/i&gt;&amp;</b> joined the game"
        )


class TestNotificationWorker:
    """Test the delivery loop."""

    @pytest.mark.asyncio
    async def test_delivers_in_order(self):
        """Test each event becomes one message, in publish order."""
        bus = EventBus()
        sink = RecordingSink()
        worker = NotificationWorker(bus, sink)

        bus.publish(PlayerJoinedEvent(player_name="Carol"))
        bus.publish(SessionResetEvent())
        bus.publish(PlayerJoinedEvent(player_name="Dave"))
        await run_until_closed(worker, bus)

        assert sink.messages == [
            "<b>Carol</b> joined the game",
            "Server session restarted",
            "<b>Dave</b> joined the game",
        ]
        assert worker.delivered == 3

    @pytest.mark.asyncio
    async def test_subscribes_on_creation(self):
        """Test events published before run() starts are still delivered."""
        bus = EventBus()
        worker = NotificationWorker(bus, RecordingSink())

        assert bus.subscriber_count == 1
        assert bus.publish(SessionResetEvent()) == 1
        assert worker.subscription.pending == 1

    @pytest.mark.asyncio
    async def test_delivery_is_serialized(self):
        """Test the worker never has two sink calls in flight."""
        bus = EventBus()
        sink = RecordingSink()
        worker = NotificationWorker(bus, sink)

        for i in range(5):
            bus.publish(PlayerJoinedEvent(player_name=f"p{i}"))
        await run_until_closed(worker, bus)

        assert sink.max_in_flight == 1
        assert len(sink.messages) == 5

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_skipped(self, caplog):
        """Test a failed delivery doesn't stop later ones."""
        bus = EventBus()
        sink = RecordingSink(fail_on={"<b>Bob</b> joined the game"})
        worker = NotificationWorker(bus, sink)

        bus.publish(PlayerJoinedEvent(player_name="Alice"))
        bus.publish(PlayerJoinedEvent(player_name="Bob"))
        bus.publish(PlayerJoinedEvent(player_name="Carol"))
        await run_until_closed(worker, bus)

        assert sink.messages == [
            "<b>Alice</b> joined the game",
            "<b>Carol</b> joined the game",
        ]
        assert worker.delivered == 2
        assert worker.failed == 1
        assert "Failed to deliver notification" in caplog.text
        assert "DeliveryError" in caplog.text

        errors = [r.getMessage() for r in caplog.records if r.levelname == "ERROR"]
        assert len(errors) == 1
        assert errors[0].count("'<b>Bob</b> joined the game'") == 1

    @pytest.mark.asyncio
    async def test_failure_is_not_retried(self):
        """Test a failed message is attempted exactly once."""
        bus = EventBus()
        sink = AsyncMock()
        sink.deliver.side_effect = DeliveryError("boom")
        worker = NotificationWorker(bus, sink)

        bus.publish(SessionResetEvent())
        await run_until_closed(worker, bus)

        sink.deliver.assert_awaited_once_with("Server session restarted")

    @pytest.mark.asyncio
    async def test_lag_is_logged_and_loop_continues(self, caplog):
        """Test a lagged subscription reports the gap and keeps going."""
        bus = EventBus(capacity=2)
        sink = RecordingSink()
        worker = NotificationWorker(bus, sink)

        for i in range(5):
            bus.publish(PlayerLeftEvent(player_name=f"p{i}"))
        await run_until_closed(worker, bus)

        assert sink.messages == [
            "<b>p3</b> left the game",
            "<b>p4</b> left the game",
        ]
        assert "3 event(s) dropped" in caplog.text

    @pytest.mark.asyncio
    async def test_exits_when_bus_closes(self, caplog):
        """Test a worker waiting on an empty bus returns once it's closed."""
        bus = EventBus()
        worker = NotificationWorker(bus, RecordingSink())

        task = asyncio.create_task(worker.run())
        await asyncio.sleep(0.01)
        assert not task.done()

        bus.close()
        await asyncio.wait_for(task, timeout=1.0)

        assert "notification worker exiting" in caplog.text
