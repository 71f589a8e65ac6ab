"""
User model with ULID primary keys.
"""
from sqlalchemy import String, Boolean, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskboard.core.database.base import Base, TimestampMixin, generate_ulid
from taskboard.features.access.roles import Role
from taskboard.features.organizations.models import Organization


class User(Base, TimestampMixin):
    """
    User belonging to at most one home organization.

    Role and home organization are fixed once the user exists. A user without
    an organization has access to nothing.
    """
    __tablename__ = "users"

    # Primary key using ULID (Universally Unique Lexicographically Sortable Identifier)
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    # User information
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    role: Mapped[Role] = mapped_column(
        SQLEnum(Role),
        default=Role.VIEWER,
        nullable=False,
        index=True
    )

    # Status flags
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Home organization
    organization_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Relationships
    organization: Mapped[Organization | None] = relationship(
        Organization,
        foreign_keys=[organization_id],
        lazy="selectin"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r}, role={self.role.value})>"
