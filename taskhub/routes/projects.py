"""Project routes."""

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from ..deps import CurrentIdentity, get_project_service
from ..schemas import ProjectCreate, ProjectEnvelope, ProjectListResponse
from ..services.project_service import ProjectService
from ..validation import validate_payload

router = APIRouter()


@router.post("", response_model=ProjectEnvelope, status_code=status.HTTP_201_CREATED)
async def create_project(
    identity: CurrentIdentity,
    payload: Any = Body(None),
    project_service: ProjectService = Depends(get_project_service)
) -> ProjectEnvelope:
    """Create a project owned by the requesting user."""
    data = validate_payload(ProjectCreate, payload)
    project = await project_service.create_project(data, identity)
    return ProjectEnvelope(message="Project created successfully", project=project)


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    identity: CurrentIdentity,
    project_service: ProjectService = Depends(get_project_service)
) -> ProjectListResponse:
    """List all projects, newest first."""
    projects, count = await project_service.list_projects()
    return ProjectListResponse(projects=projects, count=count)
