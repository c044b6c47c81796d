"""API request/response schemas for the task management system."""

import re
from datetime import datetime, timezone
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictStr, field_validator
from pydantic.alias_generators import to_camel

from .models.task import Task, TaskPriority, TaskStatus
from .models.user import Project, User

# Largest value an SQLite INTEGER column can hold
MAX_ID = 2**63 - 1

PositiveId = Annotated[int, Field(strict=True, gt=0, le=MAX_ID)]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 date-time string into an aware UTC datetime.

    Naive values are taken to be UTC. Bare dates are rejected.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("must be an ISO-8601 date-time string")
    text = value.strip()
    if "T" not in text.upper():
        raise ValueError("must be an ISO-8601 date-time string")
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError("must be an ISO-8601 date-time string") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


IsoDateTime = Annotated[datetime, BeforeValidator(parse_iso_datetime)]


class CamelModel(BaseModel):
    """Request body accepting camelCase keys; unknown keys are dropped."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# Task-related schemas
class TaskCreate(CamelModel):
    """Schema for creating a new task."""
    title: StrictStr = Field(..., min_length=1, description="Task title")
    description: Optional[StrictStr] = Field(None, description="Task description")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Task status")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    project_id: PositiveId = Field(..., description="Owning project id")
    assigned_to: Optional[PositiveId] = Field(None, description="Assignee user id")
    due_date: Optional[IsoDateTime] = Field(None, description="Due date as ISO-8601 date-time")


class TaskUpdate(CamelModel):
    """Schema for updating an existing task.

    Every field is optional and only the fields present in the payload are
    applied. ``projectId`` and ``createdBy`` cannot be changed.
    """
    title: Optional[StrictStr] = Field(None, min_length=1, description="Task title")
    description: Optional[StrictStr] = Field(None, description="Task description")
    status: Optional[TaskStatus] = Field(None, description="Task status")
    priority: Optional[TaskPriority] = Field(None, description="Task priority")
    assigned_to: Optional[PositiveId] = Field(None, description="Assignee user id")
    due_date: Optional[IsoDateTime] = Field(None, description="Due date as ISO-8601 date-time")

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value

    def changes(self) -> dict:
        """Fields explicitly provided in the payload, keyed by column name."""
        return self.model_dump(exclude_unset=True)


class TaskEnvelope(BaseModel):
    """Single task response."""
    task: Task


class TaskMutationResponse(TaskEnvelope):
    """Task response for create and update, with a status message."""
    message: str


class TaskListResponse(BaseModel):
    """Schema for task list API responses."""
    tasks: List[Task] = Field(..., description="List of tasks")
    count: int = Field(..., description="Number of tasks returned")


class MessageResponse(BaseModel):
    message: str


# Auth-related schemas
class RegisterRequest(CamelModel):
    """Schema for user registration."""
    email: StrictStr = Field(..., description="Login email, unique per user")
    password: StrictStr = Field(..., min_length=6, description="Plain-text password")
    name: StrictStr = Field(..., min_length=1, description="Display name")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not _EMAIL_RE.match(value):
            raise ValueError("must be a valid email address")
        return value


class LoginRequest(CamelModel):
    """Schema for user login."""
    email: StrictStr = Field(..., min_length=1)
    password: StrictStr = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class AuthResponse(BaseModel):
    message: str
    user: User
    token: str


class UserEnvelope(BaseModel):
    user: User


# Project-related schemas
class ProjectCreate(CamelModel):
    """Schema for creating a project."""
    name: StrictStr = Field(..., min_length=1, description="Project name")
    description: Optional[StrictStr] = Field(None, description="Project description")


class ProjectEnvelope(BaseModel):
    message: str
    project: Project


class ProjectListResponse(BaseModel):
    projects: List[Project]
    count: int


# Health check schema
class HealthResponse(BaseModel):
    """Schema for health check responses."""
    status: str = Field(default="ok", description="Service health status")
    timestamp: datetime = Field(..., description="Health check timestamp")
