"""Task management CRUD routes."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ..deps import CurrentIdentity, get_task_service
from ..errors import InternalError, TaskHubError
from ..schemas import MessageResponse, TaskEnvelope, TaskListResponse, TaskMutationResponse
from ..services.task_service import TaskService
from ..store.query import parse_task_filter
from ..validation import parse_resource_id, validate_task_create, validate_task_update

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    identity: CurrentIdentity,
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    project_id: Optional[str] = Query(None, alias="projectId"),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    search: Optional[str] = Query(None),
    task_service: TaskService = Depends(get_task_service)
) -> TaskListResponse:
    """List tasks with optional filters.

    Every supplied filter must match. Results are newest first.
    """
    task_filter = parse_task_filter(
        {
            "status": status_filter,
            "priority": priority,
            "projectId": project_id,
            "assignedTo": assigned_to,
            "search": search,
        }
    )

    try:
        tasks, count = await task_service.list_tasks(task_filter)
        return TaskListResponse(tasks=tasks, count=count)

    except TaskHubError:
        raise
    except Exception as e:
        logger.error(f"Error fetching tasks: {str(e)}", exc_info=True)
        raise InternalError("Failed to fetch tasks") from e


@router.get("/{task_id}", response_model=TaskEnvelope)
async def get_task(
    task_id: str,
    identity: CurrentIdentity,
    task_service: TaskService = Depends(get_task_service)
) -> TaskEnvelope:
    """Get a specific task by ID.

    Raises:
        NotFound: If the task does not exist
    """
    task_pk = parse_resource_id(task_id)

    try:
        task = await task_service.get_task(task_pk)
        return TaskEnvelope(task=task)

    except TaskHubError:
        raise
    except Exception as e:
        logger.error(f"Error fetching task {task_pk}: {str(e)}", exc_info=True)
        raise InternalError("Failed to fetch task") from e


@router.post("", response_model=TaskMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    identity: CurrentIdentity,
    payload: Any = Body(None),
    task_service: TaskService = Depends(get_task_service)
) -> TaskMutationResponse:
    """Create a new task.

    ``createdBy`` is always the requesting user.

    Raises:
        ValidationError: If the payload is invalid
    """
    task_data = validate_task_create(payload)

    try:
        logger.info(f"Creating new task for user {identity.id}: {task_data.title}")
        task = await task_service.create_task(task_data, identity)
        return TaskMutationResponse(message="Task created successfully", task=task)

    except TaskHubError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error creating task: {str(e)}", exc_info=True)
        raise InternalError("Failed to create task") from e


@router.put("/{task_id}", response_model=TaskMutationResponse)
async def update_task(
    task_id: str,
    identity: CurrentIdentity,
    payload: Any = Body(None),
    task_service: TaskService = Depends(get_task_service)
) -> TaskMutationResponse:
    """Update a task with a partial payload.

    Raises:
        ValidationError: If the ID or payload is invalid
        NotFound: If the task does not exist
    """
    task_pk = parse_resource_id(task_id)
    task_data = validate_task_update(payload)

    try:
        logger.info(f"Updating task {task_pk} for user {identity.id}")
        task = await task_service.update_task(task_pk, task_data)
        return TaskMutationResponse(message="Task updated successfully", task=task)

    except TaskHubError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error updating task {task_pk}: {str(e)}", exc_info=True)
        raise InternalError("Failed to update task") from e


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    identity: CurrentIdentity,
    task_service: TaskService = Depends(get_task_service)
) -> MessageResponse:
    """Delete a task permanently.

    Raises:
        NotFound: If the task does not exist
    """
    task_pk = parse_resource_id(task_id)

    try:
        logger.info(f"Deleting task {task_pk} for user {identity.id}")
        await task_service.delete_task(task_pk)
        return MessageResponse(message="Task deleted successfully")

    except TaskHubError:
        raise
    except Exception as e:
        logger.error(f"Error deleting task {task_pk}: {str(e)}", exc_info=True)
        raise InternalError("Failed to delete task") from e
