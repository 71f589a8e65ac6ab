"""
Organization model.

Organizations form a two-level hierarchy: root organizations (no parent)
and their direct children. A child never has children of its own.
"""
from sqlalchemy import String, ForeignKey, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.core.database.base import Base, TimestampMixin, generate_ulid


class Organization(Base, TimestampMixin):
    """
    Organization owning users and tasks.

    ``parent_id`` is null for root organizations.
    """
    __tablename__ = "organizations"

    # Primary key using ULID
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Parent organization (two-level hierarchy)
    parent_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("organizations.id"),
        nullable=True,
        index=True
    )

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name!r}, parent_id={self.parent_id})>"
