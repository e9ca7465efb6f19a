"""Thread-safe registry of scheduled tasks."""

import threading
import uuid
from typing import Iterable

from cronrra.exceptions import DuplicateTaskError
from cronrra.scheduler.cron import CronPattern
from cronrra.scheduler.models import ScheduledTask
from cronrra.task import TaskFunc


class TaskRepository:
    """Mapping of task id to :class:`ScheduledTask` with copy-on-write reads.

    Every mutation runs under one lock, builds a fresh dict and publishes a
    new immutable snapshot tuple. Readers take the published tuple without
    locking, so a tick never waits on writers and never sees a partially
    applied change.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tasks: dict[str, ScheduledTask] = {}
        self._snapshot: tuple[ScheduledTask, ...] = ()

    def _publish(self, tasks: dict[str, ScheduledTask]) -> None:
        self._tasks = tasks
        self._snapshot = tuple(tasks.values())

    def add(self, pattern: CronPattern, task: TaskFunc, task_id: str | None = None) -> str:
        """Register a task.

        Args:
            pattern: Compiled cron pattern
            task: Zero-argument callable
            task_id: Custom ID (generated if not provided)

        Returns:
            Task ID

        Raises:
            DuplicateTaskError: If task_id is already registered
        """
        task_id = task_id or str(uuid.uuid4())
        with self._lock:
            if task_id in self._tasks:
                raise DuplicateTaskError(task_id)
            tasks = dict(self._tasks)
            tasks[task_id] = ScheduledTask(id=task_id, pattern=pattern, task=task)
            self._publish(tasks)
        return task_id

    def remove(self, task_id: str) -> bool:
        """Remove a task, returning False if it was not registered."""
        with self._lock:
            if task_id not in self._tasks:
                return False
            tasks = dict(self._tasks)
            del tasks[task_id]
            self._publish(tasks)
        return True

    def update_pattern(self, task_id: str, pattern: CronPattern) -> bool:
        """Replace the pattern of a task, keeping its id and callable."""
        with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                return False
            tasks = dict(self._tasks)
            tasks[task_id] = current.with_pattern(pattern)
            self._publish(tasks)
        return True

    def add_all(self, entries: Iterable[ScheduledTask]) -> None:
        """Add several tasks at once, all or nothing.

        Raises:
            DuplicateTaskError: If any id is already registered or repeated
        """
        with self._lock:
            tasks = dict(self._tasks)
            for entry in entries:
                if entry.id in tasks:
                    raise DuplicateTaskError(entry.id)
                tasks[entry.id] = entry
            self._publish(tasks)

    def replace_all(self, entries: Iterable[ScheduledTask]) -> None:
        """Drop every registered task and install ``entries`` in one step.

        Raises:
            DuplicateTaskError: If ``entries`` repeats an id; nothing changes
        """
        tasks: dict[str, ScheduledTask] = {}
        for entry in entries:
            if entry.id in tasks:
                raise DuplicateTaskError(entry.id)
            tasks[entry.id] = entry

        with self._lock:
            self._publish(tasks)

    def clear(self) -> int:
        with self._lock:
            count = len(self._tasks)
            self._publish({})
        return count

    def get(self, task_id: str) -> ScheduledTask | None:
        return self._tasks.get(task_id)

    def snapshot(self) -> tuple[ScheduledTask, ...]:
        """Point-in-time view of every registered task."""
        return self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tasks
