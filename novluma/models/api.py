"""
API Models - Pydantic models for request/response validation.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserRole(str, Enum):
    """User role enumeration."""

    ADMIN = "admin"
    USER = "user"


class ProjectStatus(str, Enum):
    """Project status enumeration."""

    DRAFT = "Draft"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


# ============================================================================
# Generation Models
# ============================================================================


class GenerationRequest(BaseModel):
    """POST /api/generate request body.

    Field contents are owned by the upstream API and passed through untouched.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    contents: list[Any]
    model: str | None = None
    version: str | None = None
    generation_config: Any | None = Field(None, alias="generationConfig")
    safety_settings: Any | None = Field(None, alias="safetySettings")

    @field_validator("model", "version")
    @classmethod
    def validate_path_segment(cls, v: str | None) -> str | None:
        """Model and version are interpolated into the upstream URL path."""
        if v is None or v == "":
            return None
        if "/" in v or "?" in v or "#" in v or ".." in v:
            raise ValueError("must be a single path segment")
        return v

    def upstream_body(self) -> dict[str, Any]:
        """Body forwarded to the upstream generateContent endpoint; unset fields are omitted."""
        body: dict[str, Any] = {"contents": self.contents}
        if self.generation_config is not None:
            body["generationConfig"] = self.generation_config
        if self.safety_settings is not None:
            body["safetySettings"] = self.safety_settings
        return body


class ErrorResponse(BaseModel):
    """Error body shared by every endpoint."""

    error: str


# ============================================================================
# Usage Models
# ============================================================================


class UsageResponse(BaseModel):
    """GET /api/usage response."""

    user_id: str
    role: UserRole
    words_used: int
    word_limit: int
    words_remaining: int
    unlimited: bool
    cycle_start: datetime
    cycle_resets_at: datetime


# ============================================================================
# Project Models
# ============================================================================


class CreateProjectRequest(BaseModel):
    """POST /api/projects request body."""

    title: str = Field(..., min_length=1, max_length=255)
    platform: str = Field(..., min_length=1, max_length=100)
    tone: str = Field(..., min_length=1, max_length=100)
    content: str = ""
    status: ProjectStatus = ProjectStatus.COMPLETED


class UpdateProjectRequest(BaseModel):
    """PATCH /api/projects/{project_id} request body - only set fields change."""

    title: str | None = Field(None, min_length=1, max_length=255)
    platform: str | None = Field(None, min_length=1, max_length=100)
    tone: str | None = Field(None, min_length=1, max_length=100)
    content: str | None = None
    status: ProjectStatus | None = None


class ProjectResponse(BaseModel):
    """Single project."""

    project_id: UUID
    user_id: str
    title: str
    platform: str
    tone: str
    content: str
    status: ProjectStatus
    words: int
    created_at: datetime
    updated_at: datetime


class ProjectListResponse(BaseModel):
    """GET /api/projects response."""

    projects: list[ProjectResponse]
    total_count: int


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str
    database: str
    timestamp: str
