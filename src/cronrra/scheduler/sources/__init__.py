"""Batch schedule sources."""

from cronrra.registry import TaskRegistry
from cronrra.scheduler.sources.base import BaseScheduleSource, ScheduleEntry
from cronrra.scheduler.sources.ini import IniScheduleSource
from cronrra.scheduler.sources.memory import StaticScheduleSource

__all__ = [
    "BaseScheduleSource",
    "ScheduleEntry",
    "StaticScheduleSource",
    "IniScheduleSource",
    "get_schedule_source",
]


def get_schedule_source(
    url: str | None = None,
    registry: TaskRegistry | None = None,
) -> BaseScheduleSource | None:
    """Create a schedule source from a URL.

    Args:
        url: Source URL or path, None to look for a default crontab file
        registry: Registry used to resolve task names

    Returns:
        Schedule source instance, or None if url is None and no crontab
        file exists at the default locations

    Raises:
        ValueError: If URL scheme is unsupported

    Supported URLs:
        - None - first of "config/cron.ini", "cron.ini" that exists
        - "ini:///path/to/cron.ini" or a plain "*.ini"/"*.cfg" path - crontab file
        - "sqlite:///path/to/schedules.db" - SQLite table

    Examples:
        source = get_schedule_source("ini://config/cron.ini")
        source = get_schedule_source("sqlite:///var/lib/app/schedules.db", registry=registry)
    """
    from urllib.parse import urlparse

    if url is None:
        return IniScheduleSource.discover(registry=registry)

    parsed = urlparse(url)
    scheme = parsed.scheme.lower()

    if scheme == "ini" or (not scheme and url.endswith((".ini", ".cfg"))):
        path = _local_path(parsed.netloc + parsed.path) if scheme else url
        return IniScheduleSource(path, registry=registry)

    elif scheme == "sqlite":
        from cronrra.scheduler.sources.sqlite import SQLiteScheduleSource

        path = parsed.netloc + parsed.path
        if path:
            return SQLiteScheduleSource(database_path=_local_path(path), registry=registry)
        return SQLiteScheduleSource(registry=registry)

    else:
        raise ValueError(
            f"Unsupported schedule source URL: '{url}'. "
            f"Supported schemes: ini, sqlite"
        )


def _local_path(path: str) -> str:
    # "ini:///cron.ini" and "ini://cron.ini" both mean a relative path;
    # four slashes keep an absolute one
    if path.startswith("//"):
        return path[1:]
    return path.lstrip("/") if path.startswith("/") else path
