"""Crontab file source.

File format (INI style, ``#`` and ``;`` start comment lines)::

    # keys before any section are full task paths
    myapp.maintenance.vacuum = 0 3 * * *

    # a section prefixes its keys with a module path
    [myapp.jobs]
    send_digest = 0 8 * * MON-FRI
    Reports.nightly = 0 30 1 * * ?

Each key resolves to a task through the registry first, then by import.
The entry id is the full task path, e.g. ``myapp.jobs.send_digest``.
"""

import asyncio
import configparser
import logging
from pathlib import Path
from typing import List, Sequence

from cronrra.exceptions import ScheduleSourceError
from cronrra.registry import TaskRegistry
from cronrra.scheduler.sources.base import BaseScheduleSource, ScheduleEntry

logger = logging.getLogger("cronrra.scheduler")

DEFAULT_PATHS = ("config/cron.ini", "cron.ini")

_ROOT_SECTION = "__root__"


class IniScheduleSource(BaseScheduleSource):
    """Schedule source reading a crontab INI file.

    Args:
        path: Path to the crontab file
        registry: Registry used to resolve task names (optional)
        encoding: File encoding
    """

    def __init__(
        self,
        path: str | Path,
        registry: TaskRegistry | None = None,
        encoding: str = "utf-8",
    ):
        self.path = Path(path)
        self.registry = registry or TaskRegistry()
        self.encoding = encoding

    @classmethod
    def discover(
        cls,
        paths: Sequence[str | Path] = DEFAULT_PATHS,
        registry: TaskRegistry | None = None,
    ) -> "IniScheduleSource | None":
        """Source for the first existing file in ``paths``, or None."""
        for path in paths:
            if Path(path).is_file():
                logger.debug(f"Using crontab file {path}")
                return cls(path, registry=registry)
        return None

    def _read(self) -> list[tuple[str, str]]:
        try:
            text = self.path.read_text(encoding=self.encoding)
        except OSError as e:
            raise ScheduleSourceError(f"Cannot read crontab file {self.path}: {e}") from e

        parser = configparser.ConfigParser(
            interpolation=None,
            delimiters=("=",),
            default_section="__defaults__",
        )
        parser.optionxform = str
        try:
            parser.read_string(f"[{_ROOT_SECTION}]\n{text}", source=str(self.path))
        except configparser.Error as e:
            raise ScheduleSourceError(f"Malformed crontab file {self.path}: {e}") from e

        rows = []
        for section in parser.sections():
            for key, pattern in parser.items(section):
                task_path = key if section == _ROOT_SECTION else f"{section}.{key}"
                rows.append((task_path, pattern.strip()))
        return rows

    async def load(self) -> List[ScheduleEntry]:
        rows = await asyncio.to_thread(self._read)
        return [
            ScheduleEntry(id=task_path, pattern=pattern, task=self.registry.resolve(task_path))
            for task_path, pattern in rows
        ]

    def __repr__(self) -> str:
        return f"IniScheduleSource('{self.path}')"
