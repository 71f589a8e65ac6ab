"""
SQLAlchemy-backed audit store. Insert and read only.
"""
from collections.abc import Collection
from sqlalchemy import Select, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.features.audit.models import AuditLog
from taskboard.features.audit.schemas import AuditFilters


def _apply_filters(
    stmt: Select,
    organization_ids: Collection[str] | None,
    filters: AuditFilters | None,
) -> Select:
    if organization_ids is not None:
        stmt = stmt.where(AuditLog.organization_id.in_(list(organization_ids)))
    if filters is None:
        return stmt
    if filters.action:
        stmt = stmt.where(AuditLog.action == filters.action)
    if filters.resource:
        stmt = stmt.where(AuditLog.resource == filters.resource)
    if filters.user_id:
        stmt = stmt.where(AuditLog.user_id == filters.user_id)
    if filters.start_date:
        stmt = stmt.where(AuditLog.created_at >= filters.start_date)
    if filters.end_date:
        stmt = stmt.where(AuditLog.created_at <= filters.end_date)
    return stmt


class SqlAuditStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(self, entry: AuditLog) -> AuditLog:
        self.db.add(entry)
        await self.db.commit()
        await self.db.refresh(entry)
        return entry

    async def find(
        self,
        organization_ids: Collection[str] | None,
        filters: AuditFilters | None,
        offset: int,
        limit: int,
    ) -> tuple[list[AuditLog], int]:
        stmt = _apply_filters(select(AuditLog), organization_ids, filters)

        # Get total count
        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

        # Newest first; id breaks ties between entries written in the same instant
        stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(offset).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def count(
        self,
        organization_ids: Collection[str],
        filters: AuditFilters | None = None,
    ) -> int:
        stmt = _apply_filters(select(func.count(AuditLog.id)), organization_ids, filters)
        return await self.db.scalar(stmt) or 0
