"""
Pydantic schemas for task requests, filters and responses.
"""
import enum
from datetime import datetime
from pydantic import BaseModel, Field

from taskboard.features.access.query import SortOrder
from taskboard.features.tasks.models import TaskStatus, TaskPriority, TaskCategory


class TaskCreate(BaseModel):
    """Schema for creating a new task."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    category: TaskCategory = TaskCategory.OTHER
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.BACKLOG
    due_date: datetime | None = None
    organization_id: str = Field(..., description="Organization that will own the task")


class TaskUpdate(BaseModel):
    """Schema for updating a task. Only provided fields are applied."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    category: TaskCategory | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None

    model_config = {"extra": "forbid"}


class TaskFilters(BaseModel):
    """Conjunctive equality filters for task listing."""
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: TaskCategory | None = None
    created_by_id: str | None = None
    organization_id: str | None = None


class TaskSortField(str, enum.Enum):
    CREATED_AT = "created_at"
    TITLE = "title"
    PRIORITY = "priority"
    DUE_DATE = "due_date"


class TaskSort(BaseModel):
    """
    Requested ordering. ``order`` defaults to descending for created_at and
    ascending for everything else.
    """
    field: TaskSortField = TaskSortField.CREATED_AT
    order: SortOrder | None = None

    @property
    def effective_order(self) -> SortOrder:
        if self.order is not None:
            return self.order
        return SortOrder.DESC if self.field == TaskSortField.CREATED_AT else SortOrder.ASC


class OrganizationSummary(BaseModel):
    id: str
    name: str
    parent_id: str | None = None

    model_config = {"from_attributes": True}


class CreatorSummary(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str

    model_config = {"from_attributes": True}


class TaskResponse(BaseModel):
    """Schema for task responses."""
    id: str
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    category: TaskCategory
    due_date: datetime | None = None
    created_by_id: str
    organization_id: str
    created_at: datetime
    updated_at: datetime
    created_by: CreatorSummary | None = None
    organization: OrganizationSummary | None = None

    model_config = {"from_attributes": True}


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]
    total: int
    page: int
    limit: int
    total_pages: int
