"""
Task query scoper and mutation path.

Every read is restricted to the organizations the scope resolver grants
before the store is touched; every mutation is authorized by the access
policy and leaves exactly one audit entry behind.
"""
from typing import Any

from taskboard.core.config import AccessSettings
from taskboard.core.errors import (
    DenialReason,
    ForbiddenError,
    NotFoundError,
    ValidationFailure,
)
from taskboard.features.access.policy import TaskAction, editable_task_fields, task_denial
from taskboard.features.access.query import Pagination, validate_pagination
from taskboard.features.access.scope import OrganizationScopeResolver
from taskboard.features.access.snapshots import UserSnapshot
from taskboard.features.access.stores import OrganizationStore, TaskStore
from taskboard.features.audit.models import AuditAction, AuditResource
from taskboard.features.audit.schemas import AuditEntryCreate, RequestContext
from taskboard.features.audit.service import AuditTrailRecorder
from taskboard.features.tasks.models import Task
from taskboard.features.tasks.schemas import TaskCreate, TaskFilters, TaskSort, TaskUpdate
from taskboard.utils import get_logger


log = get_logger(__name__)

REQUIRED_TASK_FIELDS = ("title", "status", "priority", "category")


def _plain(value: Any) -> Any:
    """JSON-friendly form of a task field value for audit metadata."""
    if hasattr(value, "value"):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def get_changes(task: Task, updates: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Fields in ``updates`` whose value differs from the task, as {field: {from, to}}."""
    changes = {}
    for field, new_value in updates.items():
        old_value = getattr(task, field)
        if old_value != new_value:
            changes[field] = {"from": _plain(old_value), "to": _plain(new_value)}
    return changes


class TaskService:
    """
    Scoped task reads and audited task mutations for one request.
    """

    def __init__(
        self,
        tasks: TaskStore,
        organizations: OrganizationStore,
        resolver: OrganizationScopeResolver,
        audit: AuditTrailRecorder,
        settings: AccessSettings,
    ):
        self.tasks = tasks
        self.organizations = organizations
        self.resolver = resolver
        self.audit = audit
        self.settings = settings

    async def _strict_ids(self, user: UserSnapshot) -> frozenset[str] | None:
        """Accessible set when strict scope checks are on, otherwise None."""
        if not self.settings.strict_organization_scope:
            return None
        return await self.resolver.accessible_organization_ids(user)

    async def _deny(
        self,
        user: UserSnapshot,
        reason: DenialReason,
        action: TaskAction,
        context: RequestContext,
        task_id: str | None,
        organization_id: str | None,
    ) -> None:
        await self.audit.record(AuditEntryCreate(
            action=AuditAction.ACCESS_DENIED,
            resource=AuditResource.TASK,
            resource_id=task_id,
            user_id=user.id,
            organization_id=organization_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details=f"Task {action.value} denied: {reason.value}",
            meta={"attempted_action": action.value, "reason": reason.value},
        ))

    async def scoped_tasks(
        self,
        user: UserSnapshot,
        filters: TaskFilters | None = None,
        pagination: Pagination | None = None,
        sort: TaskSort | None = None,
    ) -> tuple[list[Task], int]:
        """
        Tasks visible to ``user``, filtered, sorted and paginated.

        Returns ([], 0) without touching any store when the user has no
        accessible organization.

        Raises:
            ValidationFailure: malformed pagination
        """
        filters = filters or TaskFilters()
        pagination = validate_pagination(
            pagination or Pagination(limit=self.settings.default_page_size),
            self.settings.max_page_size,
        )
        sort = sort or TaskSort()

        accessible_ids = await self.resolver.accessible_organization_ids(user)
        if not accessible_ids:
            return [], 0

        tasks, total = await self.tasks.find(
            accessible_ids, filters, sort, pagination.offset, pagination.limit
        )

        visible = [task for task in tasks if task.organization_id in accessible_ids]
        if len(visible) != len(tasks):
            log.error(
                "Task store returned %d rows outside accessible organizations for user %s",
                len(tasks) - len(visible), user.id
            )
        return visible, total

    async def get_task(
        self,
        task_id: str,
        user: UserSnapshot,
        context: RequestContext,
        action: TaskAction = TaskAction.VIEW,
    ) -> Task:
        """
        Load a task the user can see.

        Raises:
            NotFoundError: task missing or outside the user's organizations
        """
        task = await self.tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        reason = task_denial(user, task, TaskAction.VIEW, await self._strict_ids(user))
        if reason is not None:
            await self._deny(user, reason, action, context, task.id, task.organization_id)
            # Indistinguishable from a missing task
            raise NotFoundError("Task not found")
        return task

    async def create_task(self, data: TaskCreate, user: UserSnapshot, context: RequestContext) -> Task:
        """
        Raises:
            ForbiddenError: caller is a Viewer or lacks access to the organization
            NotFoundError: organization does not exist
            AuditWriteFailure: the task was created but its audit entry was not
        """
        draft = Task(**data.model_dump(), created_by_id=user.id)
        reason = task_denial(user, draft, TaskAction.CREATE, await self._strict_ids(user))
        if reason is not None:
            await self._deny(user, reason, TaskAction.CREATE, context, None, data.organization_id)
            detail = ("Insufficient role to create tasks" if reason == DenialReason.INSUFFICIENT_ROLE
                      else "No access to this organization")
            raise ForbiddenError(detail, reason)

        organization = await self.organizations.find_by_id(data.organization_id)
        if organization is None:
            raise NotFoundError("Organization not found")

        task = await self.tasks.insert(draft)

        await self.audit.record(AuditEntryCreate(
            action=AuditAction.CREATE,
            resource=AuditResource.TASK,
            resource_id=task.id,
            user_id=user.id,
            organization_id=task.organization_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details=f'Task "{task.title}" created',
            meta={"task_id": task.id, "title": task.title, "priority": task.priority.value},
        ))
        return task

    async def update_task(
        self,
        task_id: str,
        data: TaskUpdate,
        user: UserSnapshot,
        context: RequestContext,
    ) -> Task:
        """
        Apply the provided fields to a task the user may edit.

        Raises:
            NotFoundError: task missing or outside the user's organizations
            ValidationFailure: a field outside ``editable_task_fields`` was sent
            AuditWriteFailure: the update was saved but its audit entry was not
        """
        task = await self.get_task(task_id, user, context, TaskAction.EDIT)

        reason = task_denial(user, task, TaskAction.EDIT, await self._strict_ids(user))
        if reason is not None:
            await self._deny(user, reason, TaskAction.EDIT, context, task.id, task.organization_id)
            raise ForbiddenError("No permission to edit this task", reason)

        updates = data.model_dump(exclude_unset=True)
        disallowed = set(updates) - editable_task_fields(user)
        if disallowed:
            raise ValidationFailure(f"Fields cannot be updated: {', '.join(sorted(disallowed))}")
        nulled = sorted(f for f in REQUIRED_TASK_FIELDS if f in updates and updates[f] is None)
        if nulled:
            raise ValidationFailure(f"Fields cannot be null: {', '.join(nulled)}")

        changes = get_changes(task, updates)
        for field, value in updates.items():
            setattr(task, field, value)
        task = await self.tasks.update(task)

        await self.audit.record(AuditEntryCreate(
            action=AuditAction.UPDATE,
            resource=AuditResource.TASK,
            resource_id=task.id,
            user_id=user.id,
            organization_id=task.organization_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details=f'Task "{task.title}" updated',
            meta={"task_id": task.id, "changes": changes},
        ))
        return task

    async def delete_task(self, task_id: str, user: UserSnapshot, context: RequestContext) -> None:
        """
        Raises:
            NotFoundError: task missing or outside the user's organizations
            ForbiddenError: caller is a Viewer
            AuditWriteFailure: the task was deleted but its audit entry was not
        """
        task = await self.get_task(task_id, user, context, TaskAction.DELETE)

        reason = task_denial(user, task, TaskAction.DELETE, await self._strict_ids(user))
        if reason is not None:
            await self._deny(user, reason, TaskAction.DELETE, context, task.id, task.organization_id)
            raise ForbiddenError("No permission to delete this task", reason)

        task_id, title, organization_id = task.id, task.title, task.organization_id
        await self.tasks.delete(task)

        await self.audit.record(AuditEntryCreate(
            action=AuditAction.DELETE,
            resource=AuditResource.TASK,
            resource_id=task_id,
            user_id=user.id,
            organization_id=organization_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details=f'Task "{title}" deleted',
            meta={"task_id": task_id, "title": title},
        ))
