"""Tests for task registry."""

import pytest
from cronrra.registry import TaskRegistry, import_task
from cronrra.exceptions import TaskNotFoundError

NOT_CALLABLE = 42


def module_job():
    return "module"


class Job:
    def run(self):
        return "run"

    @staticmethod
    def ping():
        return "pong"


class NeedsArgs:
    def __init__(self, required):
        self.required = required

    def run(self):
        return self.required


class TestTaskRegistry:
    """Tests for TaskRegistry."""

    def test_registry_initialization(self):
        """Test registry starts empty."""
        registry = TaskRegistry()

        assert len(registry) == 0
        assert registry.list_tasks() == []

    def test_register_with_default_name(self):
        """Test that the default name is the qualified function name."""
        registry = TaskRegistry()

        @registry.task()
        def my_task():
            return 1

        expected = f"{my_task.__module__}.{my_task.__qualname__}"
        assert my_task.task_name == expected
        assert my_task.is_cronrra_task is True
        assert expected in registry
        assert registry.is_registered(expected)

    def test_register_task_with_custom_name(self):
        """Test registering a task with a custom name."""
        registry = TaskRegistry()

        @registry.task(name="custom_name")
        async def my_function():
            return "hello"

        assert "custom_name" in registry
        assert registry.get("custom_name") is my_function
        assert registry.list_tasks() == ["custom_name"]

    def test_register_accepts_optional_parameters(self):
        """Test that parameters with defaults are allowed."""
        registry = TaskRegistry()

        @registry.task(name="optional")
        def task_with_defaults(limit=10, *args, **kwargs):
            return limit

        assert "optional" in registry

    def test_reject_required_parameters(self):
        """Test that tasks must be callable with no arguments."""
        registry = TaskRegistry()

        with pytest.raises(TypeError, match="must take no arguments"):

            @registry.task(name="needs_args")
            def needs_args(x, y):
                return x + y

        assert "needs_args" not in registry

    def test_register_explicit(self):
        registry = TaskRegistry()

        registered = registry.register("jobs.module", module_job)

        assert registered is module_job
        assert registry.get("jobs.module") is module_job

    def test_get_or_raise(self):
        """Test get_or_raise with unknown names."""
        registry = TaskRegistry()

        with pytest.raises(TaskNotFoundError) as exc_info:
            registry.get_or_raise("missing")

        assert exc_info.value.task_name == "missing"
        assert registry.get("missing") is None

    def test_unregister(self):
        registry = TaskRegistry()
        registry.register("jobs.module", module_job)

        assert registry.unregister("jobs.module") is True
        assert registry.unregister("jobs.module") is False
        assert len(registry) == 0

    def test_resolve_prefers_registered_names(self):
        """Test that registered names win over import paths."""
        registry = TaskRegistry()

        @registry.task(name=f"{__name__}.module_job")
        def replacement():
            return "replacement"

        assert registry.resolve(f"{__name__}.module_job") is replacement

    def test_resolve_falls_back_to_import(self):
        registry = TaskRegistry()
        assert registry.resolve(f"{__name__}.module_job") is module_job


class TestImportTask:
    """Tests for import path resolution."""

    def test_dotted_function(self):
        assert import_task(f"{__name__}.module_job") is module_job

    def test_colon_function(self):
        assert import_task(f"{__name__}:module_job") is module_job

    def test_instance_method(self):
        """Test that a class followed by a method instantiates the class."""
        task = import_task(f"{__name__}:Job.run")

        assert isinstance(task.__self__, Job)
        assert task() == "run"

    def test_dotted_instance_method(self):
        assert import_task(f"{__name__}.Job.run")() == "run"

    def test_static_method(self):
        task = import_task(f"{__name__}:Job.ping")
        assert task is Job.ping
        assert task() == "pong"

    def test_stdlib_function(self):
        import os.path

        assert import_task("os.path.join") is os.path.join

    @pytest.mark.parametrize(
        "path",
        [
            "no_such_module_xyz.job",
            "no_such_module_xyz:job",
            f"{__name__}.missing_job",
            f"{__name__}:Job",
            f"{__name__}:NOT_CALLABLE",
            "job",
        ],
    )
    def test_unresolvable(self, path):
        with pytest.raises(TaskNotFoundError) as exc_info:
            import_task(path)

        assert exc_info.value.task_name == path

    def test_class_needing_arguments(self):
        """Test that a failing constructor is reported as not found."""
        with pytest.raises(TaskNotFoundError) as exc_info:
            import_task(f"{__name__}:NeedsArgs.run")

        assert isinstance(exc_info.value.__cause__, TypeError)

    @pytest.mark.parametrize("separator", [".", ":"])
    def test_module_raising_on_import(self, tmp_path, monkeypatch, separator):
        module_name = f"cronrra_broken_jobs_{'colon' if separator == ':' else 'dot'}"
        (tmp_path / f"{module_name}.py").write_text('raise RuntimeError("missing setting")\n\ndef job():\n    pass\n')
        monkeypatch.syspath_prepend(str(tmp_path))

        with pytest.raises(TaskNotFoundError) as exc_info:
            import_task(f"{module_name}{separator}job")

        assert isinstance(exc_info.value.__cause__, RuntimeError)
