"""Task service: create, read, filter, update and delete tasks."""

import logging
from typing import List, Optional, Tuple

import aiosqlite

from ..errors import NotFound, ValidationError
from ..models.task import Task
from ..models.user import Identity
from ..schemas import TaskCreate, TaskUpdate
from ..store.query import TaskFilter
from ..store.task_store import SqliteTaskStore

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found"


def _reference_error() -> ValidationError:
    return ValidationError(
        [
            {
                "field": "projectId/assignedTo",
                "message": "must reference an existing project and user",
                "type": "foreign_key",
            }
        ],
        message="Referenced project or user does not exist",
    )


class TaskService:
    """Service for task CRUD operations over the task store.

    Any authenticated identity may read, update and delete any task. Only
    ``create_task`` uses the identity, to stamp ``created_by``.
    """

    def __init__(self, store: SqliteTaskStore):
        """Initialize the task service."""
        self._store = store

    async def create_task(self, task_data: TaskCreate, identity: Identity) -> Task:
        """Create a new task owned by the requesting identity.

        Args:
            task_data: Validated task creation data
            identity: Verified requester

        Returns:
            Created task

        Raises:
            ValidationError: If the project or assignee does not exist
        """
        try:
            task = await self._store.create_task(
                title=task_data.title,
                description=task_data.description,
                status=task_data.status,
                priority=task_data.priority,
                project_id=task_data.project_id,
                assigned_to=task_data.assigned_to,
                created_by=identity.id,
                due_date=task_data.due_date,
            )
        except aiosqlite.IntegrityError as e:
            logger.warning(f"Task creation by user {identity.id} rejected: {str(e)}")
            raise _reference_error() from e

        logger.info(f"Created task {task.id} for user {identity.id}: {task.title}")
        return task

    async def get_task(self, task_id: int) -> Task:
        """Get a task by ID.

        Raises:
            NotFound: If no task has this ID
        """
        task = await self._store.get_task(task_id)
        if task is None:
            logger.debug(f"Task {task_id} not found")
            raise NotFound(TASK_NOT_FOUND)

        return task

    async def list_tasks(self, task_filter: Optional[TaskFilter] = None) -> Tuple[List[Task], int]:
        """List tasks matching every supplied filter, newest first.

        Returns:
            The matching tasks and their count
        """
        tasks = await self._store.list_tasks(task_filter)
        logger.debug(f"Listed {len(tasks)} tasks (filter={task_filter})")
        return tasks, len(tasks)

    async def update_task(self, task_id: int, task_data: TaskUpdate) -> Task:
        """Merge the provided fields over an existing task.

        An update with no fields only refreshes ``updated_at``.

        Raises:
            NotFound: If no task has this ID
            ValidationError: If the new assignee does not exist
        """
        await self.get_task(task_id)

        changes = task_data.changes()
        try:
            task = await self._store.update_task(task_id, changes)
        except aiosqlite.IntegrityError as e:
            logger.warning(f"Update of task {task_id} rejected: {str(e)}")
            raise _reference_error() from e

        if task is None:
            # deleted between the existence check and the update
            logger.warning(f"Task {task_id} not found for update")
            raise NotFound(TASK_NOT_FOUND)

        logger.info(f"Updated task {task_id}: fields={sorted(changes)}")
        return task

    async def delete_task(self, task_id: int) -> None:
        """Permanently delete a task.

        Raises:
            NotFound: If no task has this ID
        """
        deleted = await self._store.delete_task(task_id)
        if not deleted:
            logger.warning(f"Task {task_id} not found for deletion")
            raise NotFound(TASK_NOT_FOUND)

        logger.info(f"Deleted task {task_id}")
