"""Basic usage example demonstrating the Cronrra API.

This example shows:
1. Scheduling sync and async tasks with the @app.cron decorator
2. Second-precision patterns (6 fields)
3. Changing schedules while the scheduler runs
4. Listening to task failures through the event bus
5. Loading a batch of schedules from a crontab file
"""

import asyncio
import logging
import tempfile
from pathlib import Path

from cronrra import Config, Cronrra, Scheduler, SchedulerConfig, SourceConfig, StaticScheduleSource


async def main():
    """Main example demonstrating Cronrra usage."""
    print("Cronrra Basic Usage Example")
    print("=" * 60)

    # No crontab file: pass an empty source to skip discovery
    app = Cronrra(source=StaticScheduleSource([]))

    # Plain functions run on a worker thread
    @app.cron("*/2 * * * * *", task_id="heartbeat")
    def heartbeat():
        print("  heartbeat")

    # Coroutine functions run on the event loop
    @app.cron("*/3 * * * * *", task_id="poll")
    async def poll_queue():
        await asyncio.sleep(0.1)
        print("  polled queue")

    @app.cron("*/5 * * * * *", task_id="flaky")
    def flaky():
        raise RuntimeError("upstream unavailable")

    def on_failure(event: dict):
        print(f"  task {event['task_id']} failed: {event['error']}")

    app.events.subscribe(on_failure, event_type="task.failed")

    async with app:
        print("\n1. Running for 6 seconds...")
        await asyncio.sleep(6)

        print("\n2. Slowing heartbeat down and removing the flaky task...")
        app.scheduler.update_pattern("heartbeat", "*/4 * * * * *")
        app.scheduler.remove("flaky")
        await asyncio.sleep(5)

    print("\n" + "=" * 60)
    print("Scheduler stopped")


async def example_with_crontab():
    """Example loading schedules from a crontab file."""
    print("\n\nCronrra with crontab file Example")
    print("=" * 60)

    with tempfile.TemporaryDirectory() as tmp:
        crontab = Path(tmp) / "cron.ini"
        crontab.write_text(
            "# every 2 seconds\n"
            "reports.tick = */2 * * * * *\n"
        )

        app = Cronrra(Config(source=SourceConfig(url=str(crontab))))

        @app.task(name="reports.tick")
        async def report_tick():
            print("  report tick")

        async with app:
            print(f"Loaded: {[task.id for task in app.scheduler.list_scheduled_tasks()]}")
            await asyncio.sleep(4)

            print("\nEditing the crontab and restarting...")
            crontab.write_text("reports.tick = */1 * * * * *\n")
            await app.restart()
            await asyncio.sleep(3)


async def example_scheduler_only():
    """Example using the Scheduler without the app object."""
    print("\n\nScheduler Example")
    print("=" * 60)

    scheduler = Scheduler(SchedulerConfig(match_second=True, daemon=True))

    async def slow_export():
        print("  export started")
        await asyncio.sleep(5)
        print("  export finished")

    scheduler.schedule("* * * * * *", slow_export, task_id="export")

    await scheduler.start()
    await asyncio.sleep(1.5)
    # Daemon mode: returns without waiting for the export
    await scheduler.stop()
    print("Scheduler stopped, export still running in the background")

    pattern = scheduler.get_pattern("export")
    print(f"Next three runs of '{pattern}':")
    for run in pattern.iter_matches(pattern.next_match(), count=3):
        print(f"  {run:%H:%M:%S}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
    asyncio.run(example_with_crontab())
    asyncio.run(example_scheduler_only())
