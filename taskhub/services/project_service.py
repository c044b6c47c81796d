"""Project service: projects give tasks something to belong to."""

import logging
from typing import List, Tuple

import aiosqlite

from ..errors import NotFound
from ..models.user import Identity, Project
from ..schemas import ProjectCreate
from ..store.user_store import SqliteProjectStore

logger = logging.getLogger(__name__)


class ProjectService:
    def __init__(self, store: SqliteProjectStore):
        self._store = store

    async def create_project(self, data: ProjectCreate, identity: Identity) -> Project:
        """Create a project owned by the requesting identity."""
        try:
            project = await self._store.create_project(
                name=data.name,
                description=data.description,
                owner_id=identity.id,
            )
        except aiosqlite.IntegrityError as e:
            logger.warning(f"Project owner {identity.id} does not exist")
            raise NotFound("User not found") from e

        logger.info(f"Created project {project.id} for user {identity.id}: {project.name}")
        return project

    async def list_projects(self) -> Tuple[List[Project], int]:
        projects = await self._store.list_projects()
        return projects, len(projects)
