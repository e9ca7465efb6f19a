import os
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass
class SchedulerConfig:
    match_second: bool = False
    daemon: bool = False
    timezone: str | None = None

    def __post_init__(self):
        """Validate scheduler configuration."""
        if self.timezone is not None:
            try:
                ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown timezone: {self.timezone}") from e

    def get_tzinfo(self) -> tzinfo | None:
        """Resolve the configured timezone, None means local time."""
        if self.timezone is None:
            return None
        return ZoneInfo(self.timezone)


@dataclass
class LauncherConfig:
    max_workers: int = 32
    thread_name_prefix: str = "cronrra-task"

    def __post_init__(self):
        """Validate launcher configuration."""
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")


@dataclass
class SourceConfig:
    url: str

    def __post_init__(self):
        """Validate source configuration."""
        if not self.url:
            raise ValueError("Source URL is required")

    def create_source(self, registry: "TaskRegistry | None" = None) -> "BaseScheduleSource | None":
        """Create batch source instance from this configuration.

        Args:
            registry: Registry used to resolve task names

        Returns:
            Schedule source instance

        Raises:
            ValueError: If URL scheme is unsupported
        """
        from cronrra.scheduler.sources import get_schedule_source

        return get_schedule_source(self.url, registry=registry)


@dataclass
class Config:
    """Main cronrra configuration aggregating component configs.

    Args:
        scheduler: Timer loop and lifecycle settings
        launcher: Worker pool settings
        source: Batch schedule source (optional, discovers cron.ini if None)
    """
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    launcher: LauncherConfig = field(default_factory=LauncherConfig)
    source: SourceConfig | None = None

    def __post_init__(self):
        """Ensure component configs exist."""
        if self.scheduler is None:
            self.scheduler = SchedulerConfig()
        if self.launcher is None:
            self.launcher = LauncherConfig()

    def create_source(self, registry: "TaskRegistry | None" = None) -> "BaseScheduleSource | None":
        """Create the batch source from configuration.

        Returns:
            Configured source, a discovered crontab file, or None
        """
        from cronrra.scheduler.sources import get_schedule_source

        if self.source is not None:
            return self.source.create_source(registry)
        return get_schedule_source(None, registry=registry)

    @classmethod
    def from_env(cls, prefix: str = "CRONRRA_") -> "Config":
        """Load configuration from environment variables using mappings."""
        env_cache: dict[str, str | None] = {}

        def get_env(key: str, default: Any = None, type_cast: type = str) -> Any:
            env_key = f"{prefix}{key.upper()}"
            if env_key not in env_cache:
                env_cache[env_key] = os.getenv(env_key)

            value = env_cache[env_key]

            if value is None:
                return default
            if type_cast == bool:
                return value.lower() in ('true', '1', 'yes', 'on')
            elif type_cast == int:
                return int(value)
            else:
                return value

        scheduler_map = {
            "match_second": ("match_second", bool, False),
            "daemon": ("daemon", bool, False),
            "timezone": ("timezone", str, None),
        }

        launcher_map = {
            "max_workers": ("max_workers", int, 32),
        }

        def build_config(map_def):
            kwargs = {}
            for name, (env_name, type_cast, default) in map_def.items():
                kwargs[name] = get_env(env_name, default=default, type_cast=type_cast)
            return kwargs

        scheduler = SchedulerConfig(**build_config(scheduler_map))
        launcher = LauncherConfig(**build_config(launcher_map))

        source_url = get_env("source_url")
        source = SourceConfig(url=source_url) if source_url else None

        return cls(scheduler=scheduler, launcher=launcher, source=source)
