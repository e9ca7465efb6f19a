from typing import Callable

from cronrra.config import Config
from cronrra.events import EventBus
from cronrra.registry import TaskRegistry
from cronrra.scheduler.cron import CronPattern
from cronrra.scheduler.scheduler import Scheduler
from cronrra.scheduler.sources.base import BaseScheduleSource


class Cronrra:
    """Cron application object for a program's composition root.

    Bundles a task registry, a scheduler and its batch source. Create one
    where the application is wired together and pass it to the code that
    needs it; there is no global instance.

    Usage:
        app = Cronrra.from_env()

        @app.cron("0 */2 * * *")
        def sync_inventory():
            ...

        @app.cron("*/10 * * * * *", task_id="heartbeat")
        async def heartbeat():
            ...

        # Named task, scheduled by a crontab file or database row
        @app.task(name="reports.nightly")
        def nightly_report():
            ...

        async def main():
            async with app:
                await serve_forever()
    """

    def __init__(
        self,
        config: Config | None = None,
        registry: TaskRegistry | None = None,
        source: BaseScheduleSource | None = None,
        events: EventBus | None = None,
    ):
        if config is None:
            config = Config()

        self._config = config
        self.registry = registry or TaskRegistry()
        if source is None:
            source = config.create_source(self.registry)

        self.scheduler = Scheduler(
            config=config.scheduler,
            source=source,
            launcher_config=config.launcher,
            events=events,
        )

    @classmethod
    def from_env(cls, prefix: str = "CRONRRA_") -> "Cronrra":
        """Convenience method to create Cronrra from environment variables."""
        return cls(config=Config.from_env(prefix))

    @property
    def config(self) -> Config:
        return self._config

    @property
    def events(self) -> EventBus:
        return self.scheduler.events

    def task(self, name: str | None = None):
        """Register a task by name without scheduling it.

        Args:
            name: Custom task name (defaults to module.qualname)

        Returns:
            Decorator function
        """
        return self.registry.task(name=name)

    def cron(
        self,
        pattern: str | CronPattern,
        task_id: str | None = None,
        name: str | None = None,
    ):
        """Register a task and schedule it.

        Args:
            pattern: Cron expression
            task_id: Scheduled task ID (defaults to the task name)
            name: Custom task name (defaults to module.qualname)

        Returns:
            Decorator function

        Raises:
            CronSyntaxError: If the expression is invalid
        """
        register = self.registry.task(name=name)

        def decorator(func: Callable):
            registered = register(func)
            self.scheduler.schedule(pattern, registered, task_id=task_id or registered.task_name)
            return registered

        return decorator

    async def start(self, daemon: bool | None = None):
        await self.scheduler.start(daemon)

    async def stop(self):
        await self.scheduler.stop()

    async def restart(self):
        await self.scheduler.restart()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.scheduler.close()

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running
