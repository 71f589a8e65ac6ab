"""
SQLAlchemy-backed organization store.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.features.organizations.models import Organization


class SqlOrganizationStore:
    """Organization lookups for the scope resolver and organization routes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, organization_id: str) -> Organization | None:
        return await self.db.scalar(
            select(Organization).where(Organization.id == organization_id)
        )

    async def find_by_parent_id(self, parent_id: str) -> list[Organization]:
        result = await self.db.execute(
            select(Organization)
            .where(Organization.parent_id == parent_id)
            .order_by(Organization.name)
        )
        return list(result.scalars().all())

    async def find_all(self) -> list[Organization]:
        result = await self.db.execute(select(Organization).order_by(Organization.name))
        return list(result.scalars().all())

    async def insert(self, organization: Organization) -> Organization:
        self.db.add(organization)
        await self.db.commit()
        await self.db.refresh(organization)
        return organization
