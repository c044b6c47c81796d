"""SQLite implementation of user and project persistence."""

import asyncio
from typing import List, Optional, Tuple

import aiosqlite

from ..models.task import utc_now
from ..models.user import Project, Role, User
from .schema import from_db_timestamp, to_db_timestamp


class SqliteUserStore:
    """User table access. Password hashes never leave this class in a ``User``."""

    def __init__(self, conn: aiosqlite.Connection, lock: Optional[asyncio.Lock] = None) -> None:
        self._conn = conn
        self._lock = lock or asyncio.Lock()

    async def create_user(
        self,
        email: str,
        password_hash: str,
        name: str,
        role: Role = Role.USER,
    ) -> User:
        """Insert a user.

        Raises:
            aiosqlite.IntegrityError: If the email is already registered
        """
        now = to_db_timestamp(utc_now())
        async with self._lock:
            try:
                cursor = await self._conn.execute(
                    """
                    INSERT INTO users (email, password, name, role, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (email, password_hash, name, Role(role).value, now, now),
                )
                await self._conn.commit()
            except aiosqlite.IntegrityError:
                await self._conn.rollback()
                raise

            user = await self._fetch_user(cursor.lastrowid)

        if user is None:
            raise RuntimeError(f"User {cursor.lastrowid} missing right after insert")
        return user

    async def get_user(self, user_id: int) -> Optional[User]:
        async with self._lock:
            return await self._fetch_user(user_id)

    async def get_credentials(self, email: str) -> Optional[Tuple[User, str]]:
        """Look up a user and their password hash by email."""
        async with self._lock:
            cursor = await self._conn.execute(
                """
                SELECT id, email, name, role, created_at, updated_at, password
                FROM users WHERE email = ?
                """,
                (email,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_user(row), row["password"]

    async def _fetch_user(self, user_id: int) -> Optional[User]:
        # caller holds the lock
        cursor = await self._conn.execute(
            "SELECT id, email, name, role, created_at, updated_at FROM users WHERE id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_user(row) if row is not None else None

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            role=row["role"],
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"]),
        )


class SqliteProjectStore:
    """Project table access."""

    def __init__(self, conn: aiosqlite.Connection, lock: Optional[asyncio.Lock] = None) -> None:
        self._conn = conn
        self._lock = lock or asyncio.Lock()

    async def create_project(
        self,
        name: str,
        owner_id: int,
        description: Optional[str] = None,
    ) -> Project:
        """Insert a project and register the owner as a member.

        Both rows are committed together.

        Raises:
            aiosqlite.IntegrityError: If the owner does not exist
        """
        now = to_db_timestamp(utc_now())
        async with self._lock:
            try:
                cursor = await self._conn.execute(
                    """
                    INSERT INTO projects (name, description, owner_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (name, description, owner_id, now, now),
                )
                await self._conn.execute(
                    "INSERT INTO project_users (project_id, user_id, joined_at) VALUES (?, ?, ?)",
                    (cursor.lastrowid, owner_id, now),
                )
                await self._conn.commit()
            except aiosqlite.IntegrityError:
                await self._conn.rollback()
                raise

            project = await self._fetch_project(cursor.lastrowid)

        if project is None:
            raise RuntimeError(f"Project {cursor.lastrowid} missing right after insert")
        return project

    async def get_project(self, project_id: int) -> Optional[Project]:
        async with self._lock:
            return await self._fetch_project(project_id)

    async def list_projects(self) -> List[Project]:
        async with self._lock:
            cursor = await self._conn.execute(
                "SELECT id, name, description, owner_id, created_at, updated_at "
                "FROM projects ORDER BY created_at DESC, id DESC"
            )
            rows = await cursor.fetchall()
        return [self._row_to_project(row) for row in rows]

    async def _fetch_project(self, project_id: int) -> Optional[Project]:
        # caller holds the lock
        cursor = await self._conn.execute(
            "SELECT id, name, description, owner_id, created_at, updated_at "
            "FROM projects WHERE id = ?",
            (project_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_project(row) if row is not None else None

    @staticmethod
    def _row_to_project(row: aiosqlite.Row) -> Project:
        return Project(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            owner_id=row["owner_id"],
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"]),
        )
