"""
Database Models - SQLAlchemy ORM models with strict typing.

All columns use Mapped[] type annotations.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class User(Base):
    """
    ORM model for users table.

    One row per authenticated user. Holds the role and the word usage
    for the current billing cycle.
    """

    __tablename__ = "users"

    # Identity provider user id (Firebase uid)
    uid: Mapped[str] = mapped_column(String(128), primary_key=True)

    # Contact information
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Authorization
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    plan: Mapped[str] = mapped_column(String(50), nullable=False, default="free")

    # Usage for the current billing cycle
    words_used: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    cycle_start: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("words_used >= 0", name="ck_users_words_used_non_negative"),
        CheckConstraint("role IN ('admin', 'user')", name="ck_users_role_valid"),
        Index("idx_users_email", "email", postgresql_where=(email.isnot(None))),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<User(uid={self.uid}, role={self.role}, words_used={self.words_used}, "
            f"cycle_start={self.cycle_start})>"
        )


class Project(Base):
    """
    ORM model for projects table.

    Generated content saved from the dashboard.
    """

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    # Owner (users.uid) - no FK, projects may be written before first generation
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    platform: Mapped[str] = mapped_column(String(100), nullable=False)
    tone: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Completed")
    words: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("words >= 0", name="ck_projects_words_non_negative"),
        CheckConstraint(
            "status IN ('Draft', 'In Progress', 'Completed')", name="ck_projects_status_valid"
        ),
        Index("idx_projects_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Project(id={self.id}, user_id={self.user_id}, title={self.title!r})>"
