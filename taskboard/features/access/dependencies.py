"""
FastAPI dependencies wiring the authorization core into routes.
"""
from typing import Annotated
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core import config
from taskboard.core.config import AccessSettings
from taskboard.core.database.engine import get_db
from taskboard.core.errors import DenialReason, ForbiddenError
from taskboard.features.access.roles import Role
from taskboard.features.access.scope import OrganizationScopeResolver
from taskboard.features.access.snapshots import UserSnapshot
from taskboard.features.organizations.repository import SqlOrganizationStore
from taskboard.features.users.dependencies import get_current_snapshot
from taskboard.utils import get_logger


log = get_logger(__name__)


def get_access_settings() -> AccessSettings:
    return config.ACCESS_SETTINGS


async def get_scope_resolver(
    db: Annotated[AsyncSession, Depends(get_db)]
) -> OrganizationScopeResolver:
    """
    One resolver per request.

    FastAPI caches dependency results within a request, so every route
    dependency asking for the resolver shares this instance and its memo.
    """
    return OrganizationScopeResolver(SqlOrganizationStore(db))


def require_roles(*roles: Role):
    """
    FastAPI dependency to require one of the given roles.

    Usage:
        @router.get("/audit-log")
        async def list_audit_log(
            user: Annotated[UserSnapshot, Depends(require_roles(Role.OWNER, Role.ADMIN))]
        ):
            pass

    Raises:
        ForbiddenError: the current user holds none of ``roles``
    """
    allowed = frozenset(roles)

    async def role_dependency(
        user: Annotated[UserSnapshot, Depends(get_current_snapshot)]
    ) -> UserSnapshot:
        if user.role not in allowed:
            log.debug("User %s with role %s denied; requires %s", user.id, user.role.value,
                      sorted(r.value for r in allowed))
            raise ForbiddenError(
                f"Requires one of roles: {', '.join(sorted(r.value for r in allowed))}",
                DenialReason.INSUFFICIENT_ROLE,
            )
        return user

    return role_dependency


async def policy_scope(
    user: UserSnapshot,
    resolver: OrganizationScopeResolver,
    settings: AccessSettings,
) -> frozenset[str] | None:
    """
    Accessible set to hand to hierarchy-aware predicates.

    None keeps the broad grant for root Owners/Admins; strict mode returns
    the resolver's set so targets outside it are refused.
    """
    if not settings.strict_organization_scope:
        return None
    return await resolver.accessible_organization_ids(user)
