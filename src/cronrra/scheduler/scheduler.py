"""Scheduler service for registering and running cron tasks."""

import logging
from datetime import datetime

from cronrra.config import LauncherConfig, SchedulerConfig
from cronrra.events import EventBus
from cronrra.exceptions import (
    CronSyntaxError,
    DuplicateTaskError,
    SchedulerAlreadyStartedError,
    ScheduleSourceError,
    TaskNotFoundError,
)
from cronrra.scheduler.cron import CronPattern, parse
from cronrra.scheduler.launcher import TaskLauncher
from cronrra.scheduler.models import ScheduledTask, SchedulerState
from cronrra.scheduler.repository import TaskRepository
from cronrra.scheduler.sources.base import BaseScheduleSource
from cronrra.scheduler.timer import Clock, Sleep, TimerLoop
from cronrra.task import TaskFunc

logger = logging.getLogger("cronrra.scheduler")

# Source problems that leave the registered tasks untouched
_SOURCE_ERRORS = (ScheduleSourceError, CronSyntaxError, TaskNotFoundError, DuplicateTaskError)


class Scheduler:
    """Cron scheduler owned by the host application.

    Features:
        - 5, 6 and 7 field cron patterns (minute, second and year precision)
        - Add, remove and re-pattern tasks while running, from any thread
        - Task bodies run concurrently, never on the timer loop
        - Failing tasks stay registered
        - Batch source loaded on first start and reloaded on restart
        - Daemon mode: stop() does not wait for running tasks

    Args:
        config: Scheduler configuration (optional, defaults to SchedulerConfig())
        source: Batch schedule source (optional)
        launcher_config: Worker pool configuration (optional)
        events: Event bus for task lifecycle events (optional, one is created)
        clock: Returns the current time (defaults to now in the configured timezone)
        sleep: Coroutine sleeping for the given seconds (defaults to asyncio.sleep)

    Example:
        scheduler = Scheduler()

        async def refresh_cache():
            ...

        scheduler.schedule("*/5 * * * *", refresh_cache, task_id="refresh-cache")

        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        source: BaseScheduleSource | None = None,
        launcher_config: LauncherConfig | None = None,
        events: EventBus | None = None,
        clock: Clock | None = None,
        sleep: Sleep | None = None,
    ):
        self.config = config or SchedulerConfig()
        self.source = source
        self.events = events or EventBus()
        self.repository = TaskRepository()
        self.launcher = TaskLauncher(launcher_config, events=self.events)

        if clock is None:
            tz = self.config.get_tzinfo()
            clock = (lambda: datetime.now(tz)) if tz is not None else datetime.now

        self._timer = TimerLoop(
            self.repository,
            self.launcher,
            match_second=self.config.match_second,
            clock=clock,
            sleep=sleep,
        )
        self._daemon = self.config.daemon
        self._source_loaded = False

    # Schedule management

    def schedule(
        self,
        pattern: str | CronPattern,
        task: TaskFunc,
        task_id: str | None = None,
    ) -> str:
        """Register a task.

        Safe to call while running and from any thread.

        Args:
            pattern: Cron expression or compiled pattern
            task: Zero-argument callable, sync or async
            task_id: Custom ID (generated if not provided)

        Returns:
            Task ID

        Raises:
            CronSyntaxError: If the expression is invalid
            DuplicateTaskError: If task_id is already registered
            TypeError: If task is not callable
        """
        if not callable(task):
            raise TypeError(f"Task must be callable, got {type(task).__name__}")

        compiled = parse(pattern)
        task_id = self.repository.add(compiled, task, task_id)
        logger.debug(f"Scheduled {task_id} with '{compiled}'")
        return task_id

    def remove(self, task_id: str) -> bool:
        """Remove a scheduled task.

        Args:
            task_id: ID of task to remove

        Returns:
            True if removed, False if not found
        """
        removed = self.repository.remove(task_id)
        if removed:
            logger.debug(f"Removed {task_id}")
        return removed

    def update_pattern(self, task_id: str, pattern: str | CronPattern) -> bool:
        """Replace the pattern of a scheduled task.

        A tick already evaluating keeps the old pattern; the new one applies
        from the next tick.

        Returns:
            True if updated, False if not found

        Raises:
            CronSyntaxError: If the expression is invalid
        """
        compiled = parse(pattern)
        updated = self.repository.update_pattern(task_id, compiled)
        if updated:
            logger.debug(f"Updated {task_id} to '{compiled}'")
        return updated

    def get_task(self, task_id: str) -> ScheduledTask | None:
        return self.repository.get(task_id)

    def get_pattern(self, task_id: str) -> CronPattern | None:
        scheduled = self.repository.get(task_id)
        return scheduled.pattern if scheduled else None

    def list_scheduled_tasks(self) -> list[ScheduledTask]:
        return list(self.repository.snapshot())

    def clear(self) -> int:
        """Remove every scheduled task.

        Returns:
            Number of tasks removed
        """
        return self.repository.clear()

    @property
    def is_empty(self) -> bool:
        return len(self.repository) == 0

    def __len__(self) -> int:
        return len(self.repository)

    # Configuration

    def set_match_second(self, match_second: bool) -> None:
        """Tick every second instead of every minute.

        Expressions with their own second field make the loop tick every
        second regardless of this flag. 5 field expressions always fire at
        second 0 of each matching minute.

        Raises:
            SchedulerAlreadyStartedError: If the scheduler is running
        """
        if self.is_running:
            raise SchedulerAlreadyStartedError(
                "Cannot change second matching while the scheduler is running, stop it first."
            )
        self.config.match_second = match_second
        self._timer.match_second = match_second

    @property
    def match_second(self) -> bool:
        return self._timer.match_second

    # Lifecycle

    async def load_source(self, replace: bool = True) -> int:
        """Install the entries of the batch source.

        Failures are tolerated: a missing or malformed source is logged and
        the registered tasks are left as they are.

        Args:
            replace: Drop every registered task first. If False, source
                entries are added next to existing ones.

        Returns:
            Number of entries installed
        """
        if self.source is None:
            return 0

        try:
            entries = await self.source.load()
            batch = [
                ScheduledTask(id=entry.id, pattern=parse(entry.pattern), task=entry.task)
                for entry in entries
            ]
            if replace:
                self.repository.replace_all(batch)
            else:
                self.repository.add_all(batch)
        except _SOURCE_ERRORS as e:
            logger.warning(f"Schedule source {self.source!r} not loaded: {e}")
            return 0

        self._source_loaded = True
        logger.info(f"Loaded {len(batch)} task(s) from {self.source!r}")
        return len(batch)

    async def start(self, daemon: bool | None = None) -> None:
        """Start the scheduler.

        On the first start the batch source entries are added to the tasks
        already scheduled.

        Args:
            daemon: If True, stop() returns without waiting for running
                tasks. Defaults to the configured value.

        Raises:
            SchedulerAlreadyStartedError: If already running
        """
        if self.is_running:
            raise SchedulerAlreadyStartedError()

        if daemon is not None:
            self._daemon = daemon

        if not self._source_loaded:
            await self.load_source(replace=False)

        self._timer.start()
        logger.info(
            f"Scheduler started: tasks={len(self.repository)}, daemon={self._daemon}, "
            f"match_second={self._timer.match_second}"
        )

    async def stop(self) -> None:
        """Stop the scheduler.

        Always waits for the timer loop to exit. Running task bodies are
        never interrupted: in daemon mode they are left to finish on their
        own, otherwise this waits for them.
        """
        if not self.is_running:
            return

        await self._timer.stop()
        await self.launcher.shutdown(wait=not self._daemon)
        logger.info("Scheduler stopped")

    async def restart(self) -> None:
        """Stop if running, reload the batch source and start again.

        Tasks added with schedule() are dropped when the source loads; if it
        cannot be read the current tasks are kept. The daemon flag of the
        previous start is reused.
        """
        if self.is_running:
            await self.stop()

        if self.source is None:
            self.repository.clear()
        else:
            await self.load_source(replace=True)
        self._source_loaded = True
        await self.start(self._daemon)

    async def close(self) -> None:
        """Stop and release the batch source."""
        await self.stop()
        if self.source is not None:
            await self.source.close()

    @property
    def state(self) -> SchedulerState:
        return self._timer.state

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._timer.is_running

    @property
    def is_daemon(self) -> bool:
        return self._daemon

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
