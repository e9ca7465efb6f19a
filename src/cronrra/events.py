import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger("cronrra.events")

Subscriber = Callable[[dict], Awaitable[None] | None]

TASK_STARTED = "task.started"
TASK_SUCCEEDED = "task.succeeded"
TASK_FAILED = "task.failed"


class EventBus:
    """
    Task lifecycle event hub owned by one scheduler.

    The launcher emits ``task.started``, ``task.succeeded`` and
    ``task.failed`` events. Subscribers may be plain functions or coroutine
    functions; each receives the event dict.

    Features:
        - Thread-safe subscribe/unsubscribe operations
        - Concurrent event emission to all subscribers
        - Error isolation (one subscriber's error doesn't affect others or the task)
        - Optional filtering by event type

    Example:
        async def on_failure(event: dict):
            report(event["task_id"], event["error"])

        scheduler.events.subscribe(on_failure, event_type="task.failed")
    """

    def __init__(self):
        self._subscribers: list[tuple[Subscriber, str | None]] = []
        self._lock = asyncio.Lock()

    def subscribe(self, fn: Subscriber, event_type: str | None = None):
        """
        Subscribe to events.

        Args:
            fn: Function receiving the event dict
            event_type: Only deliver events of this type (None = all)
        """
        self._subscribers.append((fn, event_type))

    async def unsubscribe(self, fn: Subscriber):
        """
        Unsubscribe from events.

        Args:
            fn: The subscriber function to remove
        """
        async with self._lock:
            self._subscribers = [(s, t) for s, t in self._subscribers if s != fn]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def emit(self, event: dict[str, Any]):
        """
        Emit event to matching subscribers concurrently.

        Args:
            event: Event dict to broadcast, must carry a ``type`` key
        """
        async with self._lock:
            subscribers = [
                fn for fn, event_type in self._subscribers
                if event_type is None or event_type == event.get("type")
            ]

        if subscribers:
            await asyncio.gather(
                *(self._safe_emit(fn, event) for fn in subscribers),
                return_exceptions=True,
            )

    async def _safe_emit(self, fn: Subscriber, event: dict):
        try:
            result = fn(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error("Error in subscriber %s: %s", getattr(fn, "__name__", fn), e, exc_info=True)
