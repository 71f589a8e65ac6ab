"""
SQLAlchemy-backed task store.
"""
from collections.abc import Collection
from sqlalchemy import Select, case, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.features.access.query import SortOrder
from taskboard.features.tasks.models import Task, PRIORITY_RANK
from taskboard.features.tasks.schemas import TaskFilters, TaskSort, TaskSortField


_priority_rank = case(
    *((Task.priority == priority, rank) for priority, rank in PRIORITY_RANK.items()),
    else_=0,
)


def _order_by(stmt: Select, sort: TaskSort) -> Select:
    descending = sort.effective_order == SortOrder.DESC

    if sort.field == TaskSortField.TITLE:
        key = Task.title
    elif sort.field == TaskSortField.PRIORITY:
        key = _priority_rank
    elif sort.field == TaskSortField.DUE_DATE:
        # Nulls last regardless of direction
        key = Task.due_date
        stmt = stmt.order_by(Task.due_date.is_(None))
    else:
        key = Task.created_at

    stmt = stmt.order_by(key.desc() if descending else key.asc())
    # Stable tie-break so pagination does not repeat or skip rows
    return stmt.order_by(Task.id.desc() if descending else Task.id.asc())


class SqlTaskStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find(
        self,
        organization_ids: Collection[str],
        filters: TaskFilters,
        sort: TaskSort,
        offset: int,
        limit: int,
    ) -> tuple[list[Task], int]:
        stmt = select(Task).where(Task.organization_id.in_(list(organization_ids)))

        if filters.status:
            stmt = stmt.where(Task.status == filters.status)
        if filters.priority:
            stmt = stmt.where(Task.priority == filters.priority)
        if filters.category:
            stmt = stmt.where(Task.category == filters.category)
        if filters.created_by_id:
            stmt = stmt.where(Task.created_by_id == filters.created_by_id)
        if filters.organization_id:
            stmt = stmt.where(Task.organization_id == filters.organization_id)

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

        stmt = _order_by(stmt, sort).offset(offset).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def get(self, task_id: str) -> Task | None:
        return await self.db.scalar(select(Task).where(Task.id == task_id))

    async def _reload(self, task: Task) -> Task:
        # Re-select so creator and organization are eagerly loaded again
        return await self.db.scalar(
            select(Task).where(Task.id == task.id).execution_options(populate_existing=True)
        )

    async def insert(self, task: Task) -> Task:
        self.db.add(task)
        await self.db.commit()
        return await self._reload(task)

    async def update(self, task: Task) -> Task:
        await self.db.commit()
        return await self._reload(task)

    async def delete(self, task: Task) -> None:
        await self.db.delete(task)
        await self.db.commit()
