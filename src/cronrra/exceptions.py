"""Custom exceptions for cronrra."""

class CronrraError(Exception):
    pass


class CronSyntaxError(CronrraError, ValueError):
    """Raised when a cron expression cannot be parsed."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Invalid cron expression '{expression}': {reason}")


class SchedulerAlreadyStartedError(CronrraError):
    """Raised when an operation requires a stopped scheduler."""

    def __init__(self, message: str = "Scheduler has been started, please stop it first."):
        super().__init__(message)


class DuplicateTaskError(CronrraError, ValueError):
    """Raised when scheduling with an id that is already registered."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Scheduled task '{task_id}' already exists")


class TaskNotFoundError(CronrraError):
    """Raised when a task name cannot be resolved to a callable."""

    def __init__(self, task_name: str):
        self.task_name = task_name
        super().__init__(f"Task '{task_name}' not registered")


class ScheduleSourceError(CronrraError):
    """Raised when a batch schedule source cannot be read."""
    pass
