"""
Task model.

A task belongs to exactly one organization for its whole life; access to
the task is access to that organization.
"""
import enum
from datetime import datetime
from sqlalchemy import String, ForeignKey, Text, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskboard.core.database.base import Base, TimestampMixin, generate_ulid
from taskboard.features.organizations.models import Organization
from taskboard.features.users.models import User


class TaskStatus(str, enum.Enum):
    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Sort rank for priority ordering; enum values do not sort meaningfully as text
PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
    TaskPriority.CRITICAL: 4,
}


class TaskCategory(str, enum.Enum):
    WORK = "work"
    PERSONAL = "personal"
    HEALTH = "health"
    SHOPPING = "shopping"
    OTHER = "other"


class Task(Base, TimestampMixin):
    __tablename__ = "tasks"

    # Primary key using ULID
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[TaskStatus] = mapped_column(
        SQLEnum(TaskStatus), default=TaskStatus.BACKLOG, nullable=False, index=True
    )
    priority: Mapped[TaskPriority] = mapped_column(
        SQLEnum(TaskPriority), default=TaskPriority.MEDIUM, nullable=False, index=True
    )
    category: Mapped[TaskCategory] = mapped_column(
        SQLEnum(TaskCategory), default=TaskCategory.OTHER, nullable=False, index=True
    )
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Owning user and organization
    created_by_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    organization_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("organizations.id"),
        nullable=False,
        index=True
    )

    # Relationships
    created_by: Mapped[User] = relationship(User, lazy="selectin")
    organization: Mapped[Organization] = relationship(Organization, lazy="selectin")

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title={self.title!r}, org_id={self.organization_id})>"
