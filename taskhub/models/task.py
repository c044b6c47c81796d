"""Domain models for the task management system."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class TaskStatus(str, Enum):
    """Task status enumeration."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Task(BaseModel):
    """Task domain model.

    Serialized with camelCase keys (``projectId``, ``createdBy`` ...) to match
    the JSON surface of the API.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    id: int = Field(..., description="Unique task identifier")
    title: str = Field(..., min_length=1, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Task status")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    project_id: int = Field(..., gt=0, description="Owning project")
    assigned_to: Optional[int] = Field(None, description="Assignee user id")
    created_by: int = Field(..., description="Creator user id")
    due_date: Optional[datetime] = Field(None, description="Task due date")
    created_at: datetime = Field(default_factory=utc_now, description="Task creation timestamp")
    updated_at: datetime = Field(default_factory=utc_now, description="Task last update timestamp")
