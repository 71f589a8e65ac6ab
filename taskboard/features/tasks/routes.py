"""
Task feature routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, status

from taskboard.features.access.query import Pagination, SortOrder
from taskboard.features.access.snapshots import UserSnapshot
from taskboard.features.audit.dependencies import get_request_context
from taskboard.features.audit.schemas import RequestContext
from taskboard.features.tasks.dependencies import get_task_service
from taskboard.features.tasks.models import TaskStatus, TaskPriority, TaskCategory
from taskboard.features.tasks.schemas import (
    TaskCreate,
    TaskUpdate,
    TaskFilters,
    TaskSort,
    TaskSortField,
    TaskResponse,
    TaskListResponse,
)
from taskboard.features.tasks.service import TaskService
from taskboard.features.users.dependencies import get_current_snapshot


router = APIRouter(tags=["tasks"])


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    user: Annotated[UserSnapshot, Depends(get_current_snapshot)],
    service: Annotated[TaskService, Depends(get_task_service)],
    context: Annotated[RequestContext, Depends(get_request_context)],
):
    """
    Create a new task in an accessible organization (owner/admin only).

    Refusals are decided and audited by the task service.
    """
    return await service.create_task(task_data, user, context)


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    user: Annotated[UserSnapshot, Depends(get_current_snapshot)],
    service: Annotated[TaskService, Depends(get_task_service)],
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    category: TaskCategory | None = None,
    created_by_id: str | None = None,
    organization_id: str | None = None,
    sort_by: TaskSortField = TaskSortField.CREATED_AT,
    sort_order: SortOrder | None = None,
    page: int = 1,
    limit: int | None = None,
):
    """
    List tasks across every organization the caller can access.

    - status, priority, category, created_by_id, organization_id: equality filters
    - sort_by: created_at (default, newest first), title, priority, due_date
    - page / limit: 1-based page, default page size 10
    """
    pagination = Pagination(
        page=page, limit=limit if limit is not None else service.settings.default_page_size
    )
    tasks, total = await service.scoped_tasks(
        user,
        TaskFilters(
            status=status,
            priority=priority,
            category=category,
            created_by_id=created_by_id,
            organization_id=organization_id,
        ),
        pagination,
        TaskSort(field=sort_by, order=sort_order),
    )
    return TaskListResponse(
        tasks=[TaskResponse.model_validate(task) for task in tasks],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        total_pages=(total + pagination.limit - 1) // pagination.limit,
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    user: Annotated[UserSnapshot, Depends(get_current_snapshot)],
    service: Annotated[TaskService, Depends(get_task_service)],
    context: Annotated[RequestContext, Depends(get_request_context)],
):
    """Get a task by ID. Tasks outside the caller's organizations are reported as missing."""
    return await service.get_task(task_id, user, context)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    update_data: TaskUpdate,
    user: Annotated[UserSnapshot, Depends(get_current_snapshot)],
    service: Annotated[TaskService, Depends(get_task_service)],
    context: Annotated[RequestContext, Depends(get_request_context)],
):
    """Update a task (any role with access to the task's organization)."""
    return await service.update_task(task_id, update_data, user, context)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    user: Annotated[UserSnapshot, Depends(get_current_snapshot)],
    service: Annotated[TaskService, Depends(get_task_service)],
    context: Annotated[RequestContext, Depends(get_request_context)],
):
    """Delete a task (owner/admin only)."""
    await service.delete_task(task_id, user, context)
    return {"message": "Task deleted successfully"}
