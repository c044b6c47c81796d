"""Task list filtering: query-string parsing and SQL predicate composition.

Each supplied filter contributes one clause and the clauses are ANDed.
``search`` matches a literal, case-sensitive substring of the title or the
description. Results are always ordered newest first.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..errors import ValidationError
from ..models.task import TaskPriority, TaskStatus
from ..validation import parse_positive_int

TASK_COLUMNS = (
    "id, title, description, status, priority, project_id, assigned_to, "
    "created_by, due_date, created_at, updated_at"
)


class TaskFilter(BaseModel):
    """Request-scoped set of task predicates. Unset fields do not filter."""

    model_config = ConfigDict(frozen=True)

    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    project_id: Optional[int] = None
    assigned_to: Optional[int] = None
    search: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


def parse_task_filter(params: Mapping[str, Optional[str]]) -> TaskFilter:
    """Build a ``TaskFilter`` from raw query parameters.

    Keys are the public names: ``status``, ``priority``, ``projectId``,
    ``assignedTo`` and ``search``. Missing or empty values are ignored.

    Raises:
        ValidationError: If an enum value is unknown or an id is not a
            positive integer. All offending parameters are reported.
    """
    values: Dict[str, Any] = {}
    details: List[Dict[str, Any]] = []

    def raw(name: str) -> Optional[str]:
        value = params.get(name)
        return value if value else None

    for name, enum in (("status", TaskStatus), ("priority", TaskPriority)):
        value = raw(name)
        if value is None:
            continue
        try:
            values[name] = enum(value)
        except ValueError:
            allowed = ", ".join(member.value for member in enum)
            details.append(
                {"field": name, "message": f"must be one of: {allowed}", "type": "enum"}
            )

    for name, field in (("projectId", "project_id"), ("assignedTo", "assigned_to")):
        value = raw(name)
        if value is None:
            continue
        try:
            values[field] = parse_positive_int(value)
        except ValueError as e:
            details.append({"field": name, "message": str(e), "type": "int_parsing"})

    search = raw("search")
    if search is not None:
        values["search"] = search

    if details:
        raise ValidationError(details, message="Invalid query parameters")

    return TaskFilter(**values)


def build_task_query(task_filter: TaskFilter) -> Tuple[str, List[Any]]:
    """Compose the SELECT statement and its parameters for a filter."""
    clauses: List[str] = []
    params: List[Any] = []

    if task_filter.status is not None:
        clauses.append("status = ?")
        params.append(task_filter.status.value)

    if task_filter.priority is not None:
        clauses.append("priority = ?")
        params.append(task_filter.priority.value)

    if task_filter.project_id is not None:
        clauses.append("project_id = ?")
        params.append(task_filter.project_id)

    if task_filter.assigned_to is not None:
        clauses.append("assigned_to = ?")
        params.append(task_filter.assigned_to)

    if task_filter.search is not None:
        # instr() is case-sensitive and has no wildcard characters
        clauses.append(
            "(instr(title, ?) > 0 OR instr(COALESCE(description, ''), ?) > 0)"
        )
        params.extend([task_filter.search, task_filter.search])

    sql = f"SELECT {TASK_COLUMNS} FROM tasks"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY created_at DESC, id DESC"

    return sql, params
