"""
Audit-related dependency injection functions.
"""
from typing import Annotated
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.database.engine import get_db
from taskboard.features.audit.repository import SqlAuditStore
from taskboard.features.audit.schemas import RequestContext
from taskboard.features.audit.service import AuditTrailRecorder
from taskboard.utils import get_client_ip, get_user_agent


async def get_audit_recorder(
    db: Annotated[AsyncSession, Depends(get_db)]
) -> AuditTrailRecorder:
    return AuditTrailRecorder(SqlAuditStore(db))


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(ip_address=get_client_ip(request), user_agent=get_user_agent(request))
