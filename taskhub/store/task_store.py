"""SQLite implementation of task persistence.

Every write commits on its own while holding the store group's lock, so a
rollback never discards another request's pending statements. Concurrent
writers to the same row resolve as last write wins.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import aiosqlite

from ..models.task import Task, TaskPriority, TaskStatus, utc_now
from .query import TASK_COLUMNS, TaskFilter, build_task_query
from .schema import from_db_timestamp, to_db_timestamp

logger = logging.getLogger(__name__)

UPDATABLE_COLUMNS = frozenset(
    {"title", "description", "status", "priority", "assigned_to", "due_date"}
)


def _encode(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_db_timestamp(value)
    return value


class SqliteTaskStore:
    """Task table access over a shared aiosqlite connection."""

    def __init__(self, conn: aiosqlite.Connection, lock: Optional[asyncio.Lock] = None) -> None:
        self._conn = conn
        self._lock = lock or asyncio.Lock()

    async def create_task(
        self,
        *,
        title: str,
        project_id: int,
        created_by: int,
        description: Optional[str] = None,
        status: TaskStatus = TaskStatus.TODO,
        priority: TaskPriority = TaskPriority.MEDIUM,
        assigned_to: Optional[int] = None,
        due_date: Optional[datetime] = None,
    ) -> Task:
        """Insert a task and return the stored record.

        Raises:
            aiosqlite.IntegrityError: If a referenced project or user is missing
        """
        now = to_db_timestamp(utc_now())
        async with self._lock:
            try:
                cursor = await self._conn.execute(
                    """
                    INSERT INTO tasks (title, description, status, priority, project_id,
                                       assigned_to, created_by, due_date, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        title,
                        description,
                        _encode(status),
                        _encode(priority),
                        project_id,
                        assigned_to,
                        created_by,
                        _encode(due_date),
                        now,
                        now,
                    ),
                )
                await self._conn.commit()
            except aiosqlite.IntegrityError:
                await self._conn.rollback()
                raise

            task = await self._fetch_task(cursor.lastrowid)

        if task is None:
            raise RuntimeError(f"Task {cursor.lastrowid} missing right after insert")

        logger.debug(f"Inserted task {task.id} into project {project_id}")
        return task

    async def get_task(self, task_id: int) -> Optional[Task]:
        async with self._lock:
            return await self._fetch_task(task_id)

    async def list_tasks(self, task_filter: Optional[TaskFilter] = None) -> List[Task]:
        """Run the filtered task query, newest first."""
        sql, params = build_task_query(task_filter or TaskFilter())
        async with self._lock:
            cursor = await self._conn.execute(sql, params)
            rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task(self, task_id: int, changes: Dict[str, Any]) -> Optional[Task]:
        """Apply a partial update and refresh ``updated_at``.

        Args:
            task_id: Task ID
            changes: Column name to new value; may be empty

        Returns:
            Updated task, or None if the row does not exist

        Raises:
            ValueError: If a column is not updatable
            aiosqlite.IntegrityError: If a referenced user is missing
        """
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not updatable: {', '.join(sorted(unknown))}")

        assignments = [f"{column} = ?" for column in changes]
        params = [_encode(value) for value in changes.values()]
        assignments.append("updated_at = ?")
        params.append(to_db_timestamp(utc_now()))
        params.append(task_id)

        async with self._lock:
            try:
                cursor = await self._conn.execute(
                    f"UPDATE tasks SET {', '.join(assignments)} WHERE id = ?",
                    params,
                )
                await self._conn.commit()
            except aiosqlite.IntegrityError:
                await self._conn.rollback()
                raise

            if cursor.rowcount == 0:
                return None
            return await self._fetch_task(task_id)

    async def delete_task(self, task_id: int) -> bool:
        """Permanently remove a task. Returns False if it did not exist."""
        async with self._lock:
            cursor = await self._conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            await self._conn.commit()
        return cursor.rowcount > 0

    async def _fetch_task(self, task_id: int) -> Optional[Task]:
        # caller holds the lock
        cursor = await self._conn.execute(
            f"SELECT {TASK_COLUMNS} FROM tasks WHERE id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            status=row["status"],
            priority=row["priority"],
            project_id=row["project_id"],
            assigned_to=row["assigned_to"],
            created_by=row["created_by"],
            due_date=from_db_timestamp(row["due_date"]),
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"]),
        )
