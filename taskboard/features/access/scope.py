"""
Organization scope resolver.

Single source of truth for "which organizations can this user act within".
Every caller that needs hierarchy expansion goes through
``OrganizationScopeResolver``; nobody else branches on root/child.
"""
from collections.abc import Sequence

from taskboard.features.access.roles import Role, dominates
from taskboard.features.access.snapshots import UserSnapshot
from taskboard.features.access.stores import OrganizationRecord, OrganizationStore
from taskboard.utils import get_logger


log = get_logger(__name__)


def expands_hierarchy(user: UserSnapshot) -> bool:
    """Only Owners and Admins whose home organization is a root expand downward."""
    return (
        user.has_organization
        and user.organization.is_root
        and dominates(user.role, Role.ADMIN)
    )


class OrganizationScopeResolver:
    """
    Computes the accessible organization set for a user snapshot.

    Create one per request. The child lookup for a given snapshot is issued
    at most once; later calls for the same snapshot are served from memory.
    """

    def __init__(self, organizations: OrganizationStore):
        self._organizations = organizations
        self._ids: dict[UserSnapshot, frozenset[str]] = {}
        self._children: dict[str, Sequence[OrganizationRecord]] = {}

    async def _child_organizations(self, parent_id: str) -> Sequence[OrganizationRecord]:
        if parent_id not in self._children:
            self._children[parent_id] = await self._organizations.find_by_parent_id(parent_id)
        return self._children[parent_id]

    async def accessible_organization_ids(self, user: UserSnapshot) -> frozenset[str]:
        """
        Closed set of organization ids the user may act within.

        - no home organization: empty set
        - Owner/Admin at a root organization: the root plus its direct children
        - anyone else: the home organization only
        """
        if user in self._ids:
            return self._ids[user]

        if not user.has_organization:
            ids: frozenset[str] = frozenset()
        elif expands_hierarchy(user):
            children = await self._child_organizations(user.organization_id)
            ids = frozenset({user.organization_id, *(org.id for org in children)})
        else:
            ids = frozenset({user.organization_id})

        log.debug("User %s resolved to %d accessible organizations", user.id, len(ids))
        self._ids[user] = ids
        return ids

    async def accessible_organizations(self, user: UserSnapshot) -> list[OrganizationRecord]:
        """Organization records for the accessible set, home organization first."""
        if not user.has_organization:
            return []
        home = await self._organizations.find_by_id(user.organization_id)
        if home is None:
            return []
        if not expands_hierarchy(user):
            return [home]
        children = await self._child_organizations(user.organization_id)
        return [home, *children]
