"""
Audit log model.

Entries are append-only. ``user_id`` and ``organization_id`` are weak
references (no foreign keys) so an entry outlives whatever it points at.
"""
import enum
from typing import Any, Dict
from sqlalchemy import String, JSON, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.core.database.base import Base, TimestampMixin, generate_ulid


class AuditAction(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    ACCESS_DENIED = "access_denied"


class AuditResource(str, enum.Enum):
    TASK = "task"
    USER = "user"
    ORGANIZATION = "organization"
    AUTH = "auth"


class AuditLog(Base, TimestampMixin):
    """
    Audit log entry: who did what to which resource, when and from where.
    """
    __tablename__ = "audit_logs"

    # Primary key using ULID
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    # Action details
    action: Mapped[AuditAction] = mapped_column(SQLEnum(AuditAction), nullable=False, index=True)
    resource: Mapped[AuditResource] = mapped_column(SQLEnum(AuditResource), nullable=False, index=True)
    resource_id: Mapped[str | None] = mapped_column(String(26), nullable=True, index=True)

    # Actor and context; null user_id means a system action
    user_id: Mapped[str | None] = mapped_column(String(26), nullable=True, index=True)
    organization_id: Mapped[str | None] = mapped_column(String(26), nullable=True, index=True)

    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    meta: Mapped[Dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    ip_address: Mapped[str] = mapped_column(String(45), nullable=False, default="unknown")
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, user_id={self.user_id}, action={self.action.value}, resource={self.resource.value})>"
