"""Base interface for batch schedule sources."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from cronrra.task import TaskFunc


@dataclass(frozen=True)
class ScheduleEntry:
    """One ``(id, pattern, task)`` triple produced by a source."""

    id: str
    pattern: str
    task: TaskFunc


class BaseScheduleSource(ABC):
    """Abstract base class for batch schedule sources.

    A source yields the tasks a scheduler installs on first start and
    reinstalls on restart. Sources are read-only from the scheduler's point
    of view; each ``load()`` reflects the current content of the source.
    """

    @abstractmethod
    async def load(self) -> List[ScheduleEntry]:
        """Read every entry of the source.

        Returns:
            Entries in source order

        Raises:
            ScheduleSourceError: If the source cannot be read
            TaskNotFoundError: If an entry names an unknown task
        """
        pass

    async def close(self) -> None:
        """Close source connections. Optional to implement."""
        pass
