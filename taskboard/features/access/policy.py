"""
Access policy engine.

Pure predicates over (user snapshot, resource) pairs. They return booleans
and never raise; services turn a negative answer into ``ForbiddenError`` or
``NotFoundError``.

Hierarchy-aware predicates accept an optional ``accessible_ids`` set. When it
is None, the historical broad grant applies: an Owner/Admin at a root
organization reaches any organization id. When it is given (strict mode),
the target must actually be in the resolver's accessible set.
"""
import enum
from collections.abc import Collection

from taskboard.core.errors import DenialReason
from taskboard.features.access.roles import Role, is_admin
from taskboard.features.access.scope import expands_hierarchy
from taskboard.features.access.snapshots import OrganizationScoped, UserSnapshot


class TaskAction(str, enum.Enum):
    CREATE = "create"
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"


# Fields any role with organization access may change on an existing task.
# organization_id and created_by_id are fixed at creation.
EDITABLE_TASK_FIELDS: frozenset[str] = frozenset({
    "title",
    "description",
    "status",
    "priority",
    "category",
    "due_date",
})


def has_access_to_organization(
    user: UserSnapshot,
    target_organization_id: str | None,
    accessible_ids: Collection[str] | None = None,
) -> bool:
    if not user.has_organization or target_organization_id is None:
        return False
    if target_organization_id == user.organization_id:
        return True
    if expands_hierarchy(user):
        if accessible_ids is None:
            return True
        return target_organization_id in accessible_ids
    return False


def can_view_task(
    user: UserSnapshot,
    task: OrganizationScoped,
    accessible_ids: Collection[str] | None = None,
) -> bool:
    return has_access_to_organization(user, task.organization_id, accessible_ids)


def can_edit_task(
    user: UserSnapshot,
    task: OrganizationScoped,
    accessible_ids: Collection[str] | None = None,
) -> bool:
    # Viewers included: organization access is the only requirement
    return has_access_to_organization(user, task.organization_id, accessible_ids)


def can_delete_task(
    user: UserSnapshot,
    task: OrganizationScoped,
    accessible_ids: Collection[str] | None = None,
) -> bool:
    if user.role not in (Role.OWNER, Role.ADMIN):
        return False
    return has_access_to_organization(user, task.organization_id, accessible_ids)


def can_create_task(
    user: UserSnapshot,
    organization_id: str,
    accessible_ids: Collection[str] | None = None,
) -> bool:
    """Owners and Admins may create tasks in organizations they can access."""
    return is_admin(user.role) and has_access_to_organization(user, organization_id, accessible_ids)


def can_manage_user(
    acting: UserSnapshot,
    target: UserSnapshot,
    accessible_ids: Collection[str] | None = None,
) -> bool:
    """
    Owner: any user in an organization the owner can access.
    Admin: Viewers in the admin's own organization only.
    Viewer: nobody.
    """
    if not acting.has_organization or not target.has_organization:
        return False
    if acting.role == Role.OWNER:
        return has_access_to_organization(acting, target.organization_id, accessible_ids)
    if acting.role == Role.ADMIN:
        return acting.organization_id == target.organization_id and target.role == Role.VIEWER
    return False


def can_view_audit_log(user: UserSnapshot) -> bool:
    return is_admin(user.role)


def editable_task_fields(user: UserSnapshot) -> frozenset[str]:
    """
    Fields ``user`` may change on a task they are allowed to edit.

    The same for every role: Viewers are not narrowed to status/description.
    """
    return EDITABLE_TASK_FIELDS


def task_denial(
    user: UserSnapshot,
    task: OrganizationScoped | None,
    action: TaskAction,
    accessible_ids: Collection[str] | None = None,
) -> DenialReason | None:
    """
    Typed outcome of a task authorization decision; None means allowed.

    Visibility is checked before role so a task outside the user's
    organizations reports NO_ORGANIZATION_ACCESS even for a Viewer deleting.
    Editing needs nothing beyond visibility (see ``can_edit_task``).
    """
    if task is None:
        return DenialReason.NOT_FOUND
    if action == TaskAction.CREATE:
        if not is_admin(user.role):
            return DenialReason.INSUFFICIENT_ROLE
        if not can_create_task(user, task.organization_id, accessible_ids):
            return DenialReason.NO_ORGANIZATION_ACCESS
        return None
    if not can_view_task(user, task, accessible_ids):
        return DenialReason.NO_ORGANIZATION_ACCESS
    if action == TaskAction.DELETE and not can_delete_task(user, task, accessible_ids):
        return DenialReason.INSUFFICIENT_ROLE
    return None
