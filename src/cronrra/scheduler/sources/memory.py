"""In-memory schedule source."""

from typing import Iterable, List

from cronrra.scheduler.sources.base import BaseScheduleSource, ScheduleEntry
from cronrra.task import TaskFunc


class StaticScheduleSource(BaseScheduleSource):
    """Schedule source backed by a list held in memory.

    Best for:
    - Schedules declared in code
    - Tests

    Entries can be changed between loads with ``set_entries()``.
    """

    def __init__(self, entries: Iterable[ScheduleEntry | tuple[str, str, TaskFunc]] = ()):
        self.set_entries(entries)

    def set_entries(self, entries: Iterable[ScheduleEntry | tuple[str, str, TaskFunc]]) -> None:
        self._entries = [
            entry if isinstance(entry, ScheduleEntry) else ScheduleEntry(*entry)
            for entry in entries
        ]

    async def load(self) -> List[ScheduleEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
