"""
Session routes. Tokens are issued elsewhere; logout only leaves a trail.
"""
from typing import Annotated
from fastapi import APIRouter, Depends

from taskboard.features.access.snapshots import UserSnapshot
from taskboard.features.audit.dependencies import get_audit_recorder, get_request_context
from taskboard.features.audit.models import AuditAction, AuditResource
from taskboard.features.audit.schemas import AuditEntryCreate, RequestContext
from taskboard.features.audit.service import AuditTrailRecorder
from taskboard.features.users.dependencies import get_current_snapshot


router = APIRouter(tags=["auth"])


@router.post("/logout")
async def logout(
    user: Annotated[UserSnapshot, Depends(get_current_snapshot)],
    audit: Annotated[AuditTrailRecorder, Depends(get_audit_recorder)],
    context: Annotated[RequestContext, Depends(get_request_context)],
):
    await audit.record(AuditEntryCreate(
        action=AuditAction.LOGOUT,
        resource=AuditResource.AUTH,
        user_id=user.id,
        organization_id=user.organization_id,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
        details="User logged out",
    ))
    return {"message": "Logged out successfully"}
