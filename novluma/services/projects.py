"""
Project Service - saved generations owned by a user.

A project that belongs to another user is reported exactly like a
missing one.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from novluma.db.models import Project
from novluma.exceptions import ProjectNotFoundError, WriteVerificationError
from novluma.models.api import CreateProjectRequest, ProjectStatus, UpdateProjectRequest
from novluma.models.domain import ProjectData
from novluma.services.upstream import count_words

logger = get_logger(__name__)


class ProjectService:
    """CRUD over the projects table, scoped to one owner per call."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize project service with database session."""
        self.session = session

    async def create_project(self, user_id: str, request: CreateProjectRequest) -> ProjectData:
        """Create a project; its word count is derived from the content."""
        project = Project(
            user_id=user_id,
            title=request.title,
            platform=request.platform,
            tone=request.tone,
            content=request.content,
            status=request.status.value,
            words=count_words(request.content),
        )
        self.session.add(project)
        await self.session.flush()

        verified = await self.session.get(Project, project.id)
        if verified is None:
            raise WriteVerificationError(f"Project {project.id} not found after insert")

        await self.session.commit()
        logger.info("project_created", user_id=user_id, project_id=str(project.id))
        return self._project_to_domain(verified)

    async def list_projects(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> tuple[list[ProjectData], int]:
        """Projects for the owner, newest first, with the total count."""
        stmt = (
            select(Project)
            .where(Project.user_id == user_id)
            .order_by(Project.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        projects = [self._project_to_domain(p) for p in result.scalars().all()]

        count_stmt = select(func.count()).select_from(Project).where(Project.user_id == user_id)
        total_count = (await self.session.execute(count_stmt)).scalar_one()

        return projects, total_count

    async def get_project(self, user_id: str, project_id: UUID) -> ProjectData:
        """
        Get one project.

        Raises:
            ProjectNotFoundError: missing or owned by another user
        """
        project = await self._find_owned(user_id, project_id)
        return self._project_to_domain(project)

    async def update_project(
        self, user_id: str, project_id: UUID, request: UpdateProjectRequest
    ) -> ProjectData:
        """Apply the fields set on the request; words follow content."""
        project = await self._find_owned(user_id, project_id)

        if request.title is not None:
            project.title = request.title
        if request.platform is not None:
            project.platform = request.platform
        if request.tone is not None:
            project.tone = request.tone
        if request.status is not None:
            project.status = request.status.value
        if request.content is not None:
            project.content = request.content
            project.words = count_words(request.content)

        await self.session.flush()
        await self.session.commit()
        logger.info("project_updated", user_id=user_id, project_id=str(project_id))
        return self._project_to_domain(project)

    async def delete_project(self, user_id: str, project_id: UUID) -> None:
        """Delete one project."""
        project = await self._find_owned(user_id, project_id)
        await self.session.delete(project)
        await self.session.commit()
        logger.info("project_deleted", user_id=user_id, project_id=str(project_id))

    # ========================================================================
    # Private Helper Methods
    # ========================================================================

    async def _find_owned(self, user_id: str, project_id: UUID) -> Project:
        project = await self.session.get(Project, project_id)
        if project is None or project.user_id != user_id:
            raise ProjectNotFoundError(project_id)
        return project

    def _project_to_domain(self, project: Project) -> ProjectData:
        """Convert ORM project to domain model."""
        return ProjectData(
            project_id=project.id,
            user_id=project.user_id,
            title=project.title,
            platform=project.platform,
            tone=project.tone,
            content=project.content,
            status=ProjectStatus(project.status),
            words=project.words,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )
