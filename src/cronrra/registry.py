import importlib
import inspect
from typing import Callable

from cronrra.exceptions import TaskNotFoundError
from cronrra.task import TaskFunc


class TaskRegistry:
    def __init__(self):
        self._tasks: dict[str, TaskFunc] = {}

    def task(self, name: str | None = None):
        """Decorator to register a zero-argument function as a task.

        Both plain functions and ``async def`` functions are accepted. Plain
        functions run on a worker thread, coroutine functions on the loop.

        Args:
            name: Custom task name (defaults to the function's qualified name)
        """
        def decorator(func: Callable):
            if not callable(func):
                raise TypeError(f"Task '{name or func!r}' must be callable")

            params = [
                p for p in inspect.signature(func).parameters.values()
                if p.default is inspect.Parameter.empty
                and p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
            ]
            if params:
                raise TypeError(
                    f"Task '{name or func.__name__}' must take no arguments, "
                    f"got required parameters: {', '.join(p.name for p in params)}"
                )

            task_name = name or f"{func.__module__}.{func.__qualname__}"
            func.task_name = task_name
            func.is_cronrra_task = True
            self._tasks[task_name] = func
            return func

        return decorator

    def register(self, name: str, func: TaskFunc) -> TaskFunc:
        """Register a callable under an explicit name."""
        return self.task(name=name)(func)

    def get(self, name: str):
        return self._tasks.get(name)

    def get_or_raise(self, name: str):
        task = self._tasks.get(name)
        if task is None:
            raise TaskNotFoundError(name)

        return task

    def resolve(self, name: str) -> TaskFunc:
        """Resolve a task name to a callable.

        Registered names win. Otherwise ``name`` is treated as an import path,
        either ``package.module.func`` or ``package.module:Class.method``.
        A class followed by an instance method is instantiated with no
        arguments and the bound method is returned.

        Raises:
            TaskNotFoundError: If the name cannot be resolved
        """
        task = self._tasks.get(name)
        if task is not None:
            return task

        return import_task(name)

    def list_tasks(self):
        return list(self._tasks.keys())

    def is_registered(self, name: str):
        return name in self._tasks

    def unregister(self, name):
        if name in self._tasks:
            del self._tasks[name]
            return True

        return False

    def __len__(self):
        return len(self._tasks)

    def __contains__(self, name):
        return name in self._tasks


def _import_longest_prefix(parts: list[str]):
    for i in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:i])
        try:
            return importlib.import_module(module_name), parts[i:]
        except ModuleNotFoundError as e:
            # Only skip prefixes that are themselves missing
            if e.name is None or not (module_name == e.name or module_name.startswith(e.name + ".")):
                raise
    return None, parts


def import_task(path: str) -> TaskFunc:
    """Import a callable from a dotted path.

    Any failure, including an error raised while importing the module or
    instantiating the class, is reported as TaskNotFoundError.
    """
    if ":" in path:
        module_name, _, attr_path = path.partition(":")
        try:
            obj = importlib.import_module(module_name)
        except Exception as e:
            raise TaskNotFoundError(path) from e
        attrs = attr_path.split(".")
    else:
        try:
            obj, attrs = _import_longest_prefix(path.split("."))
        except Exception as e:
            raise TaskNotFoundError(path) from e
        if obj is None:
            raise TaskNotFoundError(path)

    for attr in attrs:
        parent = obj
        try:
            obj = getattr(parent, attr)
        except AttributeError as e:
            raise TaskNotFoundError(path) from e

        if inspect.isclass(parent) and inspect.isfunction(obj):
            if not isinstance(inspect.getattr_static(parent, attr), staticmethod):
                try:
                    instance = parent()
                except Exception as e:
                    raise TaskNotFoundError(path) from e
                obj = getattr(instance, attr)

    if inspect.isclass(obj) or not callable(obj):
        raise TaskNotFoundError(path)

    return obj
