"""cronrra - Cron task scheduler built on asyncio.

Runs zero-argument tasks at every time boundary matching their cron pattern.
Tasks can be added, removed and re-scheduled while the scheduler runs.

Basic usage with Cronrra (unified API):
    from cronrra import Cronrra

    app = Cronrra()

    # Plain functions run on a worker thread
    @app.cron("0 3 * * *")
    def vacuum_database():
        db.execute("VACUUM")

    # Coroutine functions run on the event loop
    @app.cron("*/15 * * * * *")
    async def poll_queue():
        await queue.drain()

    async def main():
        async with app:
            await asyncio.Event().wait()

Advanced usage with the Scheduler directly:
    from cronrra import Scheduler, SchedulerConfig

    scheduler = Scheduler(SchedulerConfig(match_second=True, daemon=True))
    task_id = scheduler.schedule("0 0 15 * FRI", pay_day)
    await scheduler.start()
"""

__version__ = "0.1.0"

from cronrra.app import Cronrra
from cronrra.events import EventBus
from cronrra.registry import TaskRegistry
from cronrra.scheduler import CronPattern, ScheduledTask, Scheduler, SchedulerState, parse
from cronrra.scheduler.sources import (
    IniScheduleSource,
    ScheduleEntry,
    StaticScheduleSource,
    get_schedule_source,
)
from cronrra.task import TaskExecution, TaskStatus
from cronrra.config import Config, LauncherConfig, SchedulerConfig, SourceConfig
from cronrra.exceptions import (
    CronrraError,
    CronSyntaxError,
    SchedulerAlreadyStartedError,
    DuplicateTaskError,
    TaskNotFoundError,
    ScheduleSourceError,
)

__all__ = [
    # Main Application
    "Cronrra",
    "Scheduler",
    "TaskRegistry",
    "EventBus",
    # Patterns
    "CronPattern",
    "parse",
    # Sources
    "ScheduleEntry",
    "StaticScheduleSource",
    "IniScheduleSource",
    "get_schedule_source",
    # Configuration
    "Config",
    "SchedulerConfig",
    "LauncherConfig",
    "SourceConfig",
    # Models
    "ScheduledTask",
    "SchedulerState",
    "TaskExecution",
    "TaskStatus",
    # Exceptions
    "CronrraError",
    "CronSyntaxError",
    "SchedulerAlreadyStartedError",
    "DuplicateTaskError",
    "TaskNotFoundError",
    "ScheduleSourceError",
]
