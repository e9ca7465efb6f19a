"""Cron scheduling for cronrra.

Example:
    from cronrra.scheduler import Scheduler

    scheduler = Scheduler()

    def rotate_logs():
        ...

    async def poll_feeds():
        ...

    scheduler.schedule("0 0 * * *", rotate_logs)                  # daily at midnight
    scheduler.schedule("*/30 * * * * *", poll_feeds, "poll-feeds")  # every 30 seconds

    await scheduler.start()
    ...
    scheduler.update_pattern("poll-feeds", "0 * * * * *")           # every minute
    scheduler.remove("poll-feeds")
    await scheduler.stop()
"""

from cronrra.scheduler.scheduler import Scheduler
from cronrra.scheduler.models import ScheduledTask, SchedulerState
from cronrra.scheduler.cron import CalendarFields, CronPattern, parse
from cronrra.scheduler.fields import CronField, FieldKind

__all__ = [
    "Scheduler",
    "ScheduledTask",
    "SchedulerState",
    "CronPattern",
    "CronField",
    "FieldKind",
    "CalendarFields",
    "parse",
]
