"""
Organization feature routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, status

from taskboard.core.errors import DenialReason, ForbiddenError, NotFoundError, ValidationFailure
from taskboard.core.config import AccessSettings
from taskboard.features.access.dependencies import (
    get_access_settings,
    get_scope_resolver,
    policy_scope,
    require_roles,
)
from taskboard.features.access.policy import has_access_to_organization
from taskboard.features.access.roles import Role
from taskboard.features.access.scope import OrganizationScopeResolver
from taskboard.features.access.snapshots import UserSnapshot
from taskboard.features.audit.dependencies import get_audit_recorder, get_request_context
from taskboard.features.audit.models import AuditAction, AuditResource
from taskboard.features.audit.schemas import AuditEntryCreate, RequestContext
from taskboard.features.audit.service import AuditTrailRecorder
from taskboard.features.organizations.dependencies import get_organization_by_id, get_organization_store
from taskboard.features.organizations.models import Organization
from taskboard.features.organizations.repository import SqlOrganizationStore
from taskboard.features.organizations.schemas import OrganizationCreate, OrganizationResponse
from taskboard.features.users.dependencies import get_current_snapshot


router = APIRouter(tags=["organizations"])


@router.get("/accessible", response_model=list[OrganizationResponse])
async def list_accessible_organizations(
    user: Annotated[UserSnapshot, Depends(get_current_snapshot)],
    resolver: Annotated[OrganizationScopeResolver, Depends(get_scope_resolver)],
):
    """Organizations the current user can act within, home organization first."""
    return await resolver.accessible_organizations(user)


@router.get("", response_model=list[OrganizationResponse])
async def list_organizations(
    user: Annotated[UserSnapshot, Depends(get_current_snapshot)],
    resolver: Annotated[OrganizationScopeResolver, Depends(get_scope_resolver)],
    organizations: Annotated[SqlOrganizationStore, Depends(get_organization_store)],
):
    """List organizations. Owners see every organization, everyone else their accessible ones."""
    if user.role == Role.OWNER:
        return await organizations.find_all()
    return await resolver.accessible_organizations(user)


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization: Annotated[Organization, Depends(get_organization_by_id)],
    user: Annotated[UserSnapshot, Depends(get_current_snapshot)],
    resolver: Annotated[OrganizationScopeResolver, Depends(get_scope_resolver)],
):
    """Get an organization the current user can access."""
    accessible_ids = await resolver.accessible_organization_ids(user)
    if organization.id not in accessible_ids:
        raise NotFoundError("Organization not found")
    return organization


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    org_data: OrganizationCreate,
    owner: Annotated[UserSnapshot, Depends(require_roles(Role.OWNER))],
    resolver: Annotated[OrganizationScopeResolver, Depends(get_scope_resolver)],
    settings: Annotated[AccessSettings, Depends(get_access_settings)],
    organizations: Annotated[SqlOrganizationStore, Depends(get_organization_store)],
    audit: Annotated[AuditTrailRecorder, Depends(get_audit_recorder)],
    context: Annotated[RequestContext, Depends(get_request_context)],
):
    """
    Create a root organization, or a child of a root organization (owner only).

    The hierarchy is two levels deep: a child organization cannot be a parent.
    """
    if org_data.parent_id is not None:
        parent = await organizations.find_by_id(org_data.parent_id)
        if parent is None:
            raise NotFoundError("Parent organization not found")
        if not parent.is_root:
            raise ValidationFailure("Parent organization must be a root organization")
        if not has_access_to_organization(owner, parent.id, await policy_scope(owner, resolver, settings)):
            raise ForbiddenError("No access to the parent organization", DenialReason.NO_ORGANIZATION_ACCESS)

    organization = await organizations.insert(Organization(**org_data.model_dump()))

    await audit.record(AuditEntryCreate(
        action=AuditAction.CREATE,
        resource=AuditResource.ORGANIZATION,
        resource_id=organization.id,
        user_id=owner.id,
        organization_id=organization.id,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
        details=f'Organization "{organization.name}" created',
        meta={"parent_id": organization.parent_id},
    ))
    return organization
