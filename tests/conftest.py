"""Pytest configuration and fixtures for cronrra tests."""

import asyncio
from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from cronrra import Scheduler, SchedulerConfig, TaskRegistry
from cronrra.scheduler.repository import TaskRepository


class FakeClock:
    """Injectable clock whose sleep advances time instead of waiting.

    Args:
        start: Initial time
        real_delay: Real seconds each sleep yields for, so other
            coroutines make progress between ticks
        drift: Extra seconds added to every sleep, simulating late wake-ups
    """

    def __init__(self, start: datetime, real_delay: float = 0.0, drift: float = 0.0):
        self.now = start
        self.real_delay = real_delay
        self.drift = drift
        self.sleeps: list[float] = []

    def __call__(self) -> datetime:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += timedelta(seconds=seconds + self.drift)
        await asyncio.sleep(self.real_delay)


class RecordingLauncher:
    """Launcher stand-in recording every dispatch."""

    def __init__(self):
        self.launched: list[tuple[str, datetime]] = []

    def launch(self, scheduled, fire_time):
        self.launched.append((scheduled.id, fire_time))
        return object()


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.005):
    """Poll ``predicate`` until it holds or ``timeout`` expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(interval)


@pytest.fixture
def fake_clock():
    """Clock starting a quarter second into 2024-06-15 10:00:00."""
    return FakeClock(datetime(2024, 6, 15, 10, 0, 0, 250000), real_delay=0.01)


@pytest.fixture
def repository():
    return TaskRepository()


@pytest.fixture
def recording_launcher():
    return RecordingLauncher()


@pytest.fixture
def registry():
    """Task registry with sample tasks."""
    registry = TaskRegistry()

    @registry.task(name="jobs.cleanup")
    def cleanup():
        return "cleaned"

    @registry.task(name="jobs.report")
    async def report():
        return "reported"

    return registry


@pytest_asyncio.fixture
async def scheduler(fake_clock):
    """Scheduler driven by the fake clock, stopped after the test."""
    scheduler = Scheduler(SchedulerConfig(), clock=fake_clock, sleep=fake_clock.sleep)
    yield scheduler
    await scheduler.close()


# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)
