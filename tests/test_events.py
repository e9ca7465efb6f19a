"""Tests for the task event bus."""

import logging

import pytest

from cronrra.events import TASK_FAILED, TASK_STARTED, EventBus


class TestEventBus:
    """Tests for EventBus."""

    @pytest.mark.asyncio
    async def test_sync_and_async_subscribers(self):
        bus = EventBus()
        sync_events = []
        async_events = []

        async def collect(event):
            async_events.append(event)

        bus.subscribe(sync_events.append)
        bus.subscribe(collect)
        await bus.emit({"type": TASK_STARTED, "task_id": "a"})

        assert sync_events == [{"type": TASK_STARTED, "task_id": "a"}]
        assert async_events == sync_events
        assert bus.subscriber_count == 2

    @pytest.mark.asyncio
    async def test_filter_by_type(self):
        bus = EventBus()
        failures = []
        bus.subscribe(failures.append, event_type=TASK_FAILED)

        await bus.emit({"type": TASK_STARTED, "task_id": "a"})
        await bus.emit({"type": TASK_FAILED, "task_id": "a"})

        assert [event["type"] for event in failures] == [TASK_FAILED]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        events = []
        bus.subscribe(events.append)

        await bus.unsubscribe(events.append)
        await bus.emit({"type": TASK_STARTED})

        assert events == []
        assert bus.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_subscriber_error_is_isolated(self, caplog):
        caplog.set_level(logging.ERROR, logger="cronrra.events")
        bus = EventBus()
        events = []

        def broken(event):
            raise RuntimeError("subscriber crashed")

        bus.subscribe(broken)
        bus.subscribe(events.append)
        await bus.emit({"type": TASK_STARTED})

        assert len(events) == 1
        assert "subscriber crashed" in caplog.text

    @pytest.mark.asyncio
    async def test_emit_without_subscribers(self):
        await EventBus().emit({"type": TASK_STARTED})
