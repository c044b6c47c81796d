"""SQLite schema initialization.

PRAGMA setup plus DDL and indexes for every table of the task board:
users, projects, project membership, tasks, comments, notifications and
files. Only users, projects and tasks are read or written by the API.
"""

from datetime import datetime, timezone
from typing import Optional

import aiosqlite

from ..models.task import TaskPriority, TaskStatus
from ..models.user import Role


def _check_in(column: str, values) -> str:
    allowed = ", ".join(f"'{value.value}'" for value in values)
    return f"CHECK ({column} IN ({allowed}))"


NOTIFICATION_TYPES = ("task_assigned", "task_updated", "comment_added", "project_invite")

_USERS_DDL = f"""
CREATE TABLE IF NOT EXISTS users (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    email       TEXT NOT NULL UNIQUE,
    password    TEXT NOT NULL,
    name        TEXT NOT NULL,
    role        TEXT NOT NULL DEFAULT 'user' {_check_in("role", Role)},
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
"""

_PROJECTS_DDL = """
CREATE TABLE IF NOT EXISTS projects (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    name         TEXT NOT NULL,
    description  TEXT,
    owner_id     INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);
"""

_PROJECT_USERS_DDL = """
CREATE TABLE IF NOT EXISTS project_users (
    project_id  INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    user_id     INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    joined_at   TEXT NOT NULL,
    PRIMARY KEY (project_id, user_id)
);
"""

_TASKS_DDL = f"""
CREATE TABLE IF NOT EXISTS tasks (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    title        TEXT NOT NULL CHECK (length(title) > 0),
    description  TEXT,
    status       TEXT NOT NULL DEFAULT 'todo' {_check_in("status", TaskStatus)},
    priority     TEXT NOT NULL DEFAULT 'medium' {_check_in("priority", TaskPriority)},
    project_id   INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    assigned_to  INTEGER REFERENCES users(id) ON DELETE SET NULL,
    created_by   INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    due_date     TEXT,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);
"""

_TASK_COMMENTS_DDL = """
CREATE TABLE IF NOT EXISTS task_comments (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id     INTEGER NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
    user_id     INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    content     TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
"""

_NOTIFICATIONS_DDL = f"""
CREATE TABLE IF NOT EXISTS notifications (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id             INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    type                TEXT NOT NULL CHECK (type IN ({", ".join(f"'{t}'" for t in NOTIFICATION_TYPES)})),
    title               TEXT NOT NULL,
    message             TEXT NOT NULL,
    is_read             INTEGER NOT NULL DEFAULT 0,
    related_task_id     INTEGER REFERENCES tasks(id) ON DELETE CASCADE,
    related_project_id  INTEGER REFERENCES projects(id) ON DELETE CASCADE,
    created_at          TEXT NOT NULL
);
"""

_FILES_DDL = """
CREATE TABLE IF NOT EXISTS files (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    filename       TEXT NOT NULL,
    original_name  TEXT NOT NULL,
    mimetype       TEXT NOT NULL,
    size           INTEGER NOT NULL,
    path           TEXT NOT NULL,
    uploaded_by    INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    task_id        INTEGER REFERENCES tasks(id) ON DELETE CASCADE,
    project_id     INTEGER REFERENCES projects(id) ON DELETE CASCADE,
    created_at     TEXT NOT NULL
);
"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_projects_owner_id ON projects(owner_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_priority ON tasks(priority);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_project_id ON tasks(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_assigned_to ON tasks(assigned_to);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_task_comments_task_id ON task_comments(task_id);",
    "CREATE INDEX IF NOT EXISTS idx_notifications_user_id ON notifications(user_id);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """Apply PRAGMAs, create tables and indexes.

    Args:
        conn: aiosqlite connection
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    for ddl in (
        _USERS_DDL,
        _PROJECTS_DDL,
        _PROJECT_USERS_DDL,
        _TASKS_DDL,
        _TASK_COMMENTS_DDL,
        _NOTIFICATIONS_DDL,
        _FILES_DDL,
    ):
        await conn.execute(ddl)

    for idx_sql in _INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Encode a datetime as a fixed-width UTC ISO-8601 string.

    Fixed width keeps lexical order equal to chronological order.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)
