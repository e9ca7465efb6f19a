"""Tests for configuration."""

from zoneinfo import ZoneInfo

import pytest

from cronrra.config import Config, LauncherConfig, SchedulerConfig, SourceConfig
from cronrra.scheduler.sources import IniScheduleSource
from cronrra.scheduler.sources.sqlite import SQLiteScheduleSource


class TestSchedulerConfig:
    def test_defaults(self):
        config = SchedulerConfig()

        assert config.match_second is False
        assert config.daemon is False
        assert config.get_tzinfo() is None

    def test_timezone(self):
        config = SchedulerConfig(timezone="UTC")
        assert config.get_tzinfo() == ZoneInfo("UTC")

    def test_unknown_timezone(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            SchedulerConfig(timezone="Mars/Olympus_Mons")


class TestLauncherConfig:
    def test_defaults(self):
        config = LauncherConfig()
        assert config.max_workers == 32
        assert config.thread_name_prefix == "cronrra-task"

    def test_max_workers_validation(self):
        with pytest.raises(ValueError, match="max_workers must be at least 1"):
            LauncherConfig(max_workers=0)


class TestSourceConfig:
    def test_requires_url(self):
        with pytest.raises(ValueError, match="Source URL is required"):
            SourceConfig(url="")

    def test_create_source(self, registry):
        source = SourceConfig(url="sqlite:///schedules.db").create_source(registry)

        assert isinstance(source, SQLiteScheduleSource)
        assert source.registry is registry


class TestConfig:
    def test_defaults(self):
        config = Config()

        assert isinstance(config.scheduler, SchedulerConfig)
        assert isinstance(config.launcher, LauncherConfig)
        assert config.source is None

    def test_none_components_replaced(self):
        config = Config(scheduler=None, launcher=None)

        assert isinstance(config.scheduler, SchedulerConfig)
        assert isinstance(config.launcher, LauncherConfig)

    def test_create_source_from_url(self):
        config = Config(source=SourceConfig(url="ini://cron.ini"))
        assert isinstance(config.create_source(), IniScheduleSource)

    def test_create_source_discovers_crontab(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert Config().create_source() is None

        (tmp_path / "cron.ini").write_text("")
        assert isinstance(Config().create_source(), IniScheduleSource)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CRONRRA_MATCH_SECOND", "true")
        monkeypatch.setenv("CRONRRA_DAEMON", "1")
        monkeypatch.setenv("CRONRRA_TIMEZONE", "UTC")
        monkeypatch.setenv("CRONRRA_MAX_WORKERS", "4")
        monkeypatch.setenv("CRONRRA_SOURCE_URL", "sqlite:///schedules.db")

        config = Config.from_env()

        assert config.scheduler.match_second is True
        assert config.scheduler.daemon is True
        assert config.scheduler.timezone == "UTC"
        assert config.launcher.max_workers == 4
        assert config.source.url == "sqlite:///schedules.db"

    def test_from_env_defaults(self, monkeypatch):
        for key in ("MATCH_SECOND", "DAEMON", "TIMEZONE", "MAX_WORKERS", "SOURCE_URL"):
            monkeypatch.delenv(f"CRONRRA_{key}", raising=False)

        config = Config.from_env()

        assert config.scheduler.match_second is False
        assert config.scheduler.daemon is False
        assert config.launcher.max_workers == 32
        assert config.source is None

    def test_from_env_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("JOBS_MATCH_SECOND", "yes")
        monkeypatch.setenv("JOBS_DAEMON", "off")

        config = Config.from_env(prefix="JOBS_")

        assert config.scheduler.match_second is True
        assert config.scheduler.daemon is False
