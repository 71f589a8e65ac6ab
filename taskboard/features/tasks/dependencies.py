"""
Task-related dependency injection functions.
"""
from typing import Annotated
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.config import AccessSettings
from taskboard.core.database.engine import get_db
from taskboard.features.access.dependencies import get_access_settings, get_scope_resolver
from taskboard.features.access.scope import OrganizationScopeResolver
from taskboard.features.audit.dependencies import get_audit_recorder
from taskboard.features.audit.service import AuditTrailRecorder
from taskboard.features.organizations.repository import SqlOrganizationStore
from taskboard.features.tasks.repository import SqlTaskStore
from taskboard.features.tasks.service import TaskService


async def get_task_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    resolver: Annotated[OrganizationScopeResolver, Depends(get_scope_resolver)],
    audit: Annotated[AuditTrailRecorder, Depends(get_audit_recorder)],
    settings: Annotated[AccessSettings, Depends(get_access_settings)],
) -> TaskService:
    return TaskService(
        tasks=SqlTaskStore(db),
        organizations=SqlOrganizationStore(db),
        resolver=resolver,
        audit=audit,
        settings=settings,
    )
