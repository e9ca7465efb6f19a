"""SQLite schedule source."""

import aiosqlite
from typing import List

from cronrra.exceptions import ScheduleSourceError
from cronrra.registry import TaskRegistry
from cronrra.scheduler.sources.base import BaseScheduleSource, ScheduleEntry


class SQLiteScheduleSource(BaseScheduleSource):
    """SQLite-based schedule source.

    Reads enabled rows of the ``cron_schedules`` table. The ``task`` column
    holds a registered task name or an import path.

    Features:
        - Local file-based storage
        - Automatic schema creation
        - Rows can be maintained with save()/delete() or any SQLite client

    Args:
        database_path: Path to SQLite database file (defaults to ".cronrra.db")
        registry: Registry used to resolve task names (optional)
    """

    def __init__(self, database_path: str = ".cronrra.db", registry: TaskRegistry | None = None):
        self.database_path = database_path
        self.registry = registry or TaskRegistry()
        self._db: aiosqlite.Connection | None = None

    async def _ensure_connected(self) -> aiosqlite.Connection:
        """Ensure database connection and schema exist."""
        if self._db is None:
            try:
                self._db = await aiosqlite.connect(self.database_path)
                self._db.row_factory = aiosqlite.Row
                await self._create_schema()
            except aiosqlite.Error as e:
                self._db = None
                raise ScheduleSourceError(f"Cannot open schedule database {self.database_path}: {e}") from e

        return self._db

    async def _create_schema(self) -> None:
        """Create database schema if it doesn't exist."""
        if self._db is None:
            return

        await self._db.execute(
            """
            CREATE TABLE IF NOT EXISTS cron_schedules (
                id TEXT PRIMARY KEY,
                pattern TEXT NOT NULL,
                task TEXT NOT NULL,
                enabled INTEGER NOT NULL DEFAULT 1
            )
            """
        )
        await self._db.commit()

    async def save(self, task_id: str, pattern: str, task: str, enabled: bool = True) -> None:
        """Insert or replace one schedule row.

        Args:
            task_id: Entry id
            pattern: Cron expression
            task: Registered task name or import path
            enabled: Whether load() returns the row
        """
        db = await self._ensure_connected()
        try:
            await db.execute(
                """
                INSERT INTO cron_schedules (id, pattern, task, enabled) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    pattern = excluded.pattern, task = excluded.task, enabled = excluded.enabled
                """,
                (task_id, pattern, task, 1 if enabled else 0),
            )
            await db.commit()
        except aiosqlite.Error as e:
            raise ScheduleSourceError(f"Cannot save schedule '{task_id}': {e}") from e

    async def delete(self, task_id: str) -> bool:
        """Delete one schedule row, returning False if it did not exist."""
        db = await self._ensure_connected()
        try:
            cursor = await db.execute("DELETE FROM cron_schedules WHERE id = ?", (task_id,))
            await db.commit()
        except aiosqlite.Error as e:
            raise ScheduleSourceError(f"Cannot delete schedule '{task_id}': {e}") from e
        return cursor.rowcount > 0

    async def load(self) -> List[ScheduleEntry]:
        db = await self._ensure_connected()
        try:
            async with db.execute(
                "SELECT id, pattern, task FROM cron_schedules WHERE enabled = 1 ORDER BY id"
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise ScheduleSourceError(f"Cannot read schedule database {self.database_path}: {e}") from e

        return [
            ScheduleEntry(id=row["id"], pattern=row["pattern"], task=self.registry.resolve(row["task"]))
            for row in rows
        ]

    async def close(self) -> None:
        """Close database connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None
