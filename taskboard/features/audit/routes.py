"""
Audit log routes (owner/admin only).
"""
from datetime import datetime
from typing import Annotated, Optional
from fastapi import APIRouter, Depends

from taskboard.core.config import AccessSettings
from taskboard.core.errors import DenialReason, ForbiddenError
from taskboard.features.access.dependencies import (
    get_access_settings,
    get_scope_resolver,
    policy_scope,
    require_roles,
)
from taskboard.features.access.policy import has_access_to_organization
from taskboard.features.access.query import Pagination, validate_pagination
from taskboard.features.access.roles import Role
from taskboard.features.access.scope import OrganizationScopeResolver
from taskboard.features.access.snapshots import UserSnapshot
from taskboard.features.audit.dependencies import get_audit_recorder
from taskboard.features.audit.models import AuditAction, AuditResource
from taskboard.features.audit.schemas import (
    AuditFilters,
    AuditLogResponse,
    AuditLogListResponse,
    AuditSummaryResponse,
)
from taskboard.features.audit.service import AuditTrailRecorder


router = APIRouter(tags=["audit"])

audit_viewer = require_roles(Role.OWNER, Role.ADMIN)


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    user: Annotated[UserSnapshot, Depends(audit_viewer)],
    resolver: Annotated[OrganizationScopeResolver, Depends(get_scope_resolver)],
    audit: Annotated[AuditTrailRecorder, Depends(get_audit_recorder)],
    settings: Annotated[AccessSettings, Depends(get_access_settings)],
    organization_id: Optional[str] = None,
    action: Optional[AuditAction] = None,
    resource: Optional[AuditResource] = None,
    user_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: Optional[int] = None,
):
    """
    Audit entries for the caller's accessible organizations, newest first.

    Pass organization_id to narrow the listing to a single organization; the
    caller must have access to it.
    """
    pagination = validate_pagination(
        Pagination(page=page, limit=limit if limit is not None else settings.audit_page_size),
        settings.max_audit_page_size,
    )
    filters = AuditFilters(
        action=action,
        resource=resource,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
    )

    accessible_ids = await resolver.accessible_organization_ids(user)
    if organization_id is not None:
        if not has_access_to_organization(user, organization_id, await policy_scope(user, resolver, settings)):
            raise ForbiddenError(
                "No access to this organization's audit log", DenialReason.NO_ORGANIZATION_ACCESS
            )
        entries, total = await audit.query(organization_id, filters, pagination)
    else:
        entries, total = await audit.query_by_organizations(accessible_ids, filters, pagination)

    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(entry) for entry in entries],
        total=total,
        page=pagination.page,
        page_size=pagination.limit,
        pages=(total + pagination.limit - 1) // pagination.limit,
    )


@router.get("/summary", response_model=AuditSummaryResponse)
async def get_audit_summary(
    user: Annotated[UserSnapshot, Depends(audit_viewer)],
    resolver: Annotated[OrganizationScopeResolver, Depends(get_scope_resolver)],
    audit: Annotated[AuditTrailRecorder, Depends(get_audit_recorder)],
):
    """Entry count and the last 24 hours of activity across accessible organizations."""
    accessible_ids = await resolver.accessible_organization_ids(user)
    summary = await audit.summarize(accessible_ids)
    return AuditSummaryResponse(
        total_logs=summary["total_logs"],
        recent_activity=[AuditLogResponse.model_validate(entry) for entry in summary["recent_activity"]],
        accessible_organizations=summary["accessible_organizations"],
    )
