"""Scheduler models."""

from dataclasses import dataclass, replace
from enum import Enum

from cronrra.scheduler.cron import CronPattern
from cronrra.task import TaskFunc


class SchedulerState(Enum):
    """Lifecycle state of the timer loop."""
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True)
class ScheduledTask:
    """A task registered for execution at every boundary matching its pattern.

    Attributes:
        id: Unique identifier, stable across pattern updates
        pattern: Compiled cron pattern
        task: Zero-argument callable (sync or async)
    """

    id: str
    pattern: CronPattern
    task: TaskFunc

    def with_pattern(self, pattern: CronPattern) -> "ScheduledTask":
        """Copy of this entry carrying a new pattern."""
        return replace(self, pattern=pattern)

    @property
    def task_name(self) -> str:
        return getattr(self.task, "task_name", None) or getattr(self.task, "__qualname__", repr(self.task))
