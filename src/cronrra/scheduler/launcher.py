"""Task launcher: runs matched tasks away from the timer loop."""

import asyncio
import inspect
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from cronrra.config import LauncherConfig
from cronrra.events import TASK_FAILED, TASK_STARTED, TASK_SUCCEEDED, EventBus
from cronrra.scheduler.models import ScheduledTask
from cronrra.task import TaskExecution, TaskStatus

logger = logging.getLogger("cronrra")


class TaskLauncher:
    """Dispatches scheduled tasks onto independent workers.

    Every dispatch gets its own ``asyncio.Task``. Coroutine functions are
    awaited on the event loop; plain callables run on a thread pool so a
    blocking body never stalls the loop. Failures stop at this boundary:
    they are logged and published as ``task.failed`` events.

    At most ``max_workers`` bodies run at once. A dispatch arriving at
    capacity is logged and skipped rather than queued.

    Args:
        config: Worker pool configuration
        events: Event bus receiving task lifecycle events (optional)
    """

    def __init__(self, config: LauncherConfig | None = None, events: EventBus | None = None):
        self.config = config or LauncherConfig()
        self.events = events
        self._pool: ThreadPoolExecutor | None = None
        self._in_flight: set[asyncio.Task] = set()
        # Untracked after a non-waiting shutdown, referenced until they finish
        self._abandoned: set[asyncio.Task] = set()

    @property
    def max_workers(self) -> int:
        return self.config.max_workers

    @property
    def in_flight_count(self) -> int:
        """Number of dispatched bodies that have not finished."""
        return len(self._in_flight)

    def launch(self, scheduled: ScheduledTask, fire_time: datetime) -> asyncio.Task | None:
        """Dispatch one task body.

        Must be called from the event loop thread.

        Args:
            scheduled: Task to run
            fire_time: Boundary the task matched

        Returns:
            The worker task, or None if the dispatch was shed
        """
        if len(self._in_flight) >= self.config.max_workers:
            logger.warning(
                f"Worker capacity ({self.config.max_workers}) reached, "
                f"skipping {scheduled.id} at {fire_time.isoformat()}"
            )
            return None

        execution = TaskExecution(
            execution_id=str(uuid.uuid4()),
            task_id=scheduled.id,
            fire_time=fire_time,
        )
        worker = asyncio.create_task(
            self._run(scheduled, execution),
            name=f"cronrra-{scheduled.id}-{execution.execution_id[:8]}",
        )
        self._in_flight.add(worker)
        worker.add_done_callback(self._in_flight.discard)
        return worker

    async def _run(self, scheduled: ScheduledTask, execution: TaskExecution) -> TaskExecution:
        execution.started_at = datetime.now()
        await self._emit(TASK_STARTED, execution)
        logger.debug(f"Running {scheduled.id}[{execution.execution_id[:8]}]")

        try:
            await self._call(scheduled)
        except Exception as e:
            execution.status = TaskStatus.FAILED
            execution.error = str(e)
            execution.finished_at = datetime.now()
            logger.error(f"Task {scheduled.id}[{execution.execution_id[:8]}] failed: {e}", exc_info=True)
            await self._emit(TASK_FAILED, execution)
        else:
            execution.status = TaskStatus.SUCCESS
            execution.finished_at = datetime.now()
            logger.debug(f"Task {scheduled.id}[{execution.execution_id[:8]}] succeeded")
            await self._emit(TASK_SUCCEEDED, execution)

        return execution

    async def _call(self, scheduled: ScheduledTask) -> None:
        task = scheduled.task
        if inspect.iscoroutinefunction(task):
            await task()
            return

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(self._get_pool(), task)
        if inspect.isawaitable(result):
            await result

    def _get_pool(self) -> ThreadPoolExecutor:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(
                max_workers=self.config.max_workers,
                thread_name_prefix=self.config.thread_name_prefix,
            )
            logger.debug(f"Initialized ThreadPoolExecutor with {self.config.max_workers} workers")
        return self._pool

    async def _emit(self, event_type: str, execution: TaskExecution) -> None:
        if self.events is None:
            return
        event = {
            "type": event_type,
            "task_id": execution.task_id,
            "execution": execution.to_dict(),
        }
        if execution.error is not None:
            event["error"] = execution.error
        await self.events.emit(event)

    async def shutdown(self, wait: bool = True) -> None:
        """Release workers.

        Args:
            wait: If True, wait for every in-flight body to finish. If False,
                stop tracking them; they still run to completion. A body
                calling this never waits for itself.
        """
        in_flight = list(self._in_flight)
        pool, self._pool = self._pool, None

        if wait:
            current = asyncio.current_task()
            in_flight = [worker for worker in in_flight if worker is not current]
            if in_flight:
                logger.info(f"Waiting for {len(in_flight)} running task(s) to finish")
                await asyncio.gather(*in_flight, return_exceptions=True)
            if pool is not None:
                pool.shutdown(wait=True)
        else:
            for worker in in_flight:
                self._abandoned.add(worker)
                worker.add_done_callback(self._abandoned.discard)
            self._in_flight.clear()
            if pool is not None:
                pool.shutdown(wait=False)
