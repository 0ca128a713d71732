"""
Project Routes - CRUD for saved generations.

Auth: Authorization: Bearer {firebase_id_token}. Every route is scoped to
the caller's own projects.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from novluma.api.dependencies import get_current_identity
from novluma.db.session import get_read_db, get_write_db
from novluma.models.api import (
    CreateProjectRequest,
    ProjectListResponse,
    ProjectResponse,
    UpdateProjectRequest,
)
from novluma.models.domain import ProjectData, VerifiedIdentity
from novluma.services.projects import ProjectService

router = APIRouter(prefix="/api/projects")


def _to_response(project: ProjectData) -> ProjectResponse:
    return ProjectResponse(
        project_id=project.project_id,
        user_id=project.user_id,
        title=project.title,
        platform=project.platform,
        tone=project.tone,
        content=project.content,
        status=project.status,
        words=project.words,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    request: CreateProjectRequest,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_write_db),
) -> ProjectResponse:
    """Save a project for the caller."""
    project = await ProjectService(db).create_project(identity.user_id, request)
    return _to_response(project)


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_read_db),
) -> ProjectListResponse:
    """List the caller's projects, newest first."""
    projects, total_count = await ProjectService(db).list_projects(
        identity.user_id, limit=limit, offset=offset
    )
    return ProjectListResponse(
        projects=[_to_response(p) for p in projects],
        total_count=total_count,
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_read_db),
) -> ProjectResponse:
    """Get one of the caller's projects."""
    project = await ProjectService(db).get_project(identity.user_id, project_id)
    return _to_response(project)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    request: UpdateProjectRequest,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_write_db),
) -> ProjectResponse:
    """Update fields of one of the caller's projects."""
    project = await ProjectService(db).update_project(identity.user_id, project_id, request)
    return _to_response(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_write_db),
) -> Response:
    """Delete one of the caller's projects."""
    await ProjectService(db).delete_project(identity.user_id, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
