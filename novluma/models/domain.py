"""
Domain Models - Internal business logic models using dataclasses.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from novluma.models.api import ProjectStatus, UserRole


@dataclass(frozen=True)
class VerifiedIdentity:
    """Identity extracted from a verified bearer token."""

    user_id: str
    email: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        """Validate identity fields."""
        if not self.user_id:
            raise ValueError("user_id cannot be empty")


@dataclass(frozen=True)
class UsageRecord:
    """Word usage for the current billing cycle."""

    words_used: int
    cycle_start: datetime

    def __post_init__(self) -> None:
        """Validate usage constraints."""
        if self.words_used < 0:
            raise ValueError(f"words_used cannot be negative: {self.words_used}")
        if self.cycle_start.tzinfo is None:
            raise ValueError("cycle_start must be timezone-aware")


@dataclass(frozen=True)
class UserRecord:
    """Immutable user snapshot as read from storage."""

    user_id: str
    email: str | None
    role: UserRole
    usage: UsageRecord

    @property
    def is_admin(self) -> bool:
        """Admins are never metered."""
        return self.role == UserRole.ADMIN


@dataclass(frozen=True)
class AdmissionDecision:
    """
    Outcome of evaluating a usage record against the quota.

    `words_used` is the post-reset value the limit check was made against.
    """

    admitted: bool
    reset_required: bool
    words_used: int
    limit: int


@dataclass(frozen=True)
class UsageSummary:
    """Effective usage for display."""

    user_id: str
    role: UserRole
    words_used: int
    word_limit: int
    cycle_start: datetime
    cycle_resets_at: datetime

    @property
    def unlimited(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def words_remaining(self) -> int:
        return max(self.word_limit - self.words_used, 0)


@dataclass(frozen=True)
class UpstreamResponse:
    """Status and decoded JSON body returned by the upstream API."""

    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class GatewayResponse:
    """What the gateway hands back to the HTTP layer."""

    status_code: int
    body: Any


@dataclass(frozen=True)
class ProjectData:
    """Immutable project snapshot."""

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
