"""
User feature routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.database.engine import get_db
from taskboard.core.errors import DenialReason, ForbiddenError, NotFoundError, ValidationFailure
from taskboard.core.config import AccessSettings
from taskboard.features.access.dependencies import (
    get_access_settings,
    get_scope_resolver,
    policy_scope,
    require_roles,
)
from taskboard.features.access.policy import can_manage_user, has_access_to_organization
from taskboard.features.access.roles import Role, can_assign_role, viewable_roles
from taskboard.features.access.scope import OrganizationScopeResolver
from taskboard.features.access.snapshots import UserSnapshot
from taskboard.features.audit.dependencies import get_audit_recorder, get_request_context
from taskboard.features.audit.models import AuditAction, AuditResource
from taskboard.features.audit.schemas import AuditEntryCreate, RequestContext
from taskboard.features.audit.service import AuditTrailRecorder
from taskboard.features.organizations.models import Organization
from taskboard.features.users.models import User
from taskboard.features.users.schemas import UserCreate, UserResponse
from taskboard.features.users.dependencies import get_current_user, get_current_snapshot


router = APIRouter(tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    user: Annotated[User, Depends(get_current_user)]
):
    """Get current authenticated user's profile."""
    return user


@router.get("", response_model=list[UserResponse])
async def list_users(
    user: Annotated[UserSnapshot, Depends(require_roles(Role.OWNER, Role.ADMIN))],
    resolver: Annotated[OrganizationScopeResolver, Depends(get_scope_resolver)],
    db: Annotated[AsyncSession, Depends(get_db)],
    skip: int = 0,
    limit: int = 50
):
    """
    List users the caller can see (owner/admin only).

    Users are restricted to the caller's accessible organizations and to the
    roles at or below the caller's own.
    """
    accessible_ids = await resolver.accessible_organization_ids(user)
    if not accessible_ids:
        return []

    result = await db.execute(
        select(User)
        .where(
            User.organization_id.in_(list(accessible_ids)),
            User.role.in_(list(viewable_roles(user.role))),
        )
        .order_by(User.email)
        .offset(skip)
        .limit(limit)
    )
    return result.scalars().all()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    acting: Annotated[UserSnapshot, Depends(require_roles(Role.OWNER, Role.ADMIN))],
    resolver: Annotated[OrganizationScopeResolver, Depends(get_scope_resolver)],
    audit: Annotated[AuditTrailRecorder, Depends(get_audit_recorder)],
    settings: Annotated[AccessSettings, Depends(get_access_settings)],
    context: Annotated[RequestContext, Depends(get_request_context)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Create a user in an organization the caller can access.

    Owners may create any role; Admins only Viewers.
    """
    if not can_assign_role(acting.role, user_data.role):
        raise ForbiddenError(
            f"Cannot assign role {user_data.role.value}", DenialReason.INSUFFICIENT_ROLE
        )

    scope_ids = await policy_scope(acting, resolver, settings)
    if not has_access_to_organization(acting, user_data.organization_id, scope_ids):
        raise ForbiddenError("No access to this organization", DenialReason.NO_ORGANIZATION_ACCESS)

    if await db.scalar(select(Organization).where(Organization.id == user_data.organization_id)) is None:
        raise NotFoundError("Organization not found")

    if await db.scalar(select(User).where(User.email == user_data.email)) is not None:
        raise ValidationFailure("User with this email already exists")

    new_user = User(**user_data.model_dump())
    db.add(new_user)
    await db.commit()
    new_user = await db.scalar(
        select(User).where(User.id == new_user.id).execution_options(populate_existing=True)
    )

    await audit.record(AuditEntryCreate(
        action=AuditAction.CREATE,
        resource=AuditResource.USER,
        resource_id=new_user.id,
        user_id=acting.id,
        organization_id=new_user.organization_id,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
        details=f"User {new_user.email} created with role {new_user.role.value}",
        meta={"email": new_user.email, "role": new_user.role.value},
    ))
    return new_user


@router.delete("/{user_id}")
async def deactivate_user(
    user_id: str,
    acting: Annotated[UserSnapshot, Depends(get_current_snapshot)],
    resolver: Annotated[OrganizationScopeResolver, Depends(get_scope_resolver)],
    audit: Annotated[AuditTrailRecorder, Depends(get_audit_recorder)],
    settings: Annotated[AccessSettings, Depends(get_access_settings)],
    context: Annotated[RequestContext, Depends(get_request_context)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Deactivate a user account the caller is allowed to manage."""
    user = await db.scalar(select(User).where(User.id == user_id))

    if user is None:
        raise NotFoundError("User not found")

    # Prevent self-deactivation
    if user.id == acting.id:
        raise ValidationFailure("Cannot deactivate your own account")

    scope_ids = await policy_scope(acting, resolver, settings)
    if not can_manage_user(acting, UserSnapshot.from_user(user), scope_ids):
        raise ForbiddenError("No permission to manage this user", DenialReason.INSUFFICIENT_ROLE)

    user.is_active = False
    await db.commit()

    await audit.record(AuditEntryCreate(
        action=AuditAction.UPDATE,
        resource=AuditResource.USER,
        resource_id=user_id,
        user_id=acting.id,
        organization_id=user.organization_id,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
        details=f"User {user.email} deactivated",
        meta={"changes": {"is_active": {"from": True, "to": False}}},
    ))

    return {"message": "User deactivated successfully"}
