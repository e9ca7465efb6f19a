"""Tick loop waking at second or minute boundaries."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from cronrra.exceptions import SchedulerAlreadyStartedError
from cronrra.scheduler.cron import CalendarFields
from cronrra.scheduler.launcher import TaskLauncher
from cronrra.scheduler.models import ScheduledTask, SchedulerState
from cronrra.scheduler.repository import TaskRepository

logger = logging.getLogger("cronrra.scheduler")

Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[None]]


class TimerLoop:
    """Control loop of the scheduler.

    Each iteration computes the next boundary from the current clock reading
    (never by accumulating fixed sleeps), sleeps until it, then evaluates a
    repository snapshot against the boundary time and hands every match to
    the launcher. The loop ticks every second when ``match_second`` is set or
    any registered pattern has its own second field, otherwise every minute.

    The loop wakes at every second boundary in both cadences and re-reads the
    cadence on each wake; in minute cadence it only ticks at second 0. If the
    clock or sleep fails the loop logs the error and ends in STOPPED.

    Args:
        repository: Registered tasks
        launcher: Dispatcher for matched tasks
        match_second: Always tick at second boundaries
        clock: Returns the current time (defaults to datetime.now)
        sleep: Coroutine sleeping for the given seconds (defaults to asyncio.sleep)
    """

    def __init__(
        self,
        repository: TaskRepository,
        launcher: TaskLauncher,
        match_second: bool = False,
        clock: Clock | None = None,
        sleep: Sleep | None = None,
    ):
        self.repository = repository
        self.launcher = launcher
        self.match_second = match_second
        self._clock = clock or datetime.now
        self._sleep = sleep or asyncio.sleep
        self._state = SchedulerState.STOPPED
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    def start(self) -> None:
        """Spawn the control task.

        Raises:
            SchedulerAlreadyStartedError: If the loop is running
        """
        if self._state is SchedulerState.RUNNING:
            raise SchedulerAlreadyStartedError()

        self._state = SchedulerState.RUNNING
        self._task = asyncio.create_task(self._run(), name="cronrra-timer")

    async def stop(self) -> None:
        """Stop the loop and wait for the control task to exit."""
        if self._state is SchedulerState.STOPPED:
            return

        self._state = SchedulerState.STOPPED

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def _second_mode(self, snapshot: tuple[ScheduledTask, ...]) -> bool:
        return self.match_second or any(entry.pattern.has_second for entry in snapshot)

    @staticmethod
    def next_boundary(now: datetime, second_mode: bool) -> datetime:
        """First second (or minute) boundary strictly after ``now``."""
        boundary = now.replace(microsecond=0)
        if second_mode:
            return boundary + timedelta(seconds=1)
        return boundary.replace(second=0) + timedelta(minutes=1)

    async def _run(self) -> None:
        logger.debug("Timer loop started")
        try:
            while self._state is SchedulerState.RUNNING:
                boundary = self.next_boundary(self._clock(), True)

                try:
                    await self._sleep_until(boundary)
                except asyncio.CancelledError:
                    break

                if self._state is not SchedulerState.RUNNING:
                    break

                lag = (self._clock() - boundary).total_seconds()
                if lag >= 1:
                    logger.warning(f"Timer fell behind by {lag:.1f}s, skipping missed boundaries")

                # Cadence is re-read at every second so a newly added 6 field
                # pattern is ticked from the next second on
                if boundary.second and not self._second_mode(self.repository.snapshot()):
                    continue

                try:
                    self.tick(boundary)
                except Exception as e:
                    logger.error(f"Scheduler error: {e}", exc_info=True)
        except Exception as e:
            logger.error(f"Timer loop crashed: {e}", exc_info=True)
        finally:
            self._state = SchedulerState.STOPPED
            logger.debug("Timer loop stopped")

    async def _sleep_until(self, boundary: datetime) -> None:
        while True:
            remaining = (boundary - self._clock()).total_seconds()
            if remaining <= 0:
                return
            await self._sleep(remaining)

    def tick(self, now: datetime) -> int:
        """Evaluate the current snapshot at ``now`` and dispatch every match.

        Pattern updates published after the snapshot is taken apply from the
        next tick.

        Returns:
            Number of tasks dispatched
        """
        snapshot = self.repository.snapshot()
        fields = CalendarFields.from_datetime(now)

        dispatched = 0
        for scheduled in snapshot:
            if scheduled.pattern.matches(*fields):
                if self.launcher.launch(scheduled, now) is not None:
                    dispatched += 1

        if dispatched:
            logger.debug(f"Tick {now.isoformat()}: dispatched {dispatched} task(s)")
        return dispatched
