"""
Plain-data snapshots the access policy operates on.

The policy never sees ORM objects. The users feature builds a
``UserSnapshot`` from a verified identity once per request and passes it
down; everything else is decided from these values.
"""
from typing import Protocol, Union
from pydantic import BaseModel

from taskboard.features.access.roles import Role


class RootOrganization(BaseModel):
    """Organization without a parent; eligible for hierarchy expansion."""
    id: str

    model_config = {"frozen": True}

    @property
    def parent_id(self) -> None:
        return None

    @property
    def is_root(self) -> bool:
        return True


class ChildOrganization(BaseModel):
    """Organization directly below a root organization."""
    id: str
    parent_id: str

    model_config = {"frozen": True}

    @property
    def is_root(self) -> bool:
        return False


OrganizationRef = Union[RootOrganization, ChildOrganization]


def organization_ref(organization_id: str, parent_id: str | None) -> OrganizationRef:
    if parent_id is None:
        return RootOrganization(id=organization_id)
    return ChildOrganization(id=organization_id, parent_id=parent_id)


class UserSnapshot(BaseModel):
    """
    Identity of the acting (or target) user for a single request.

    ``organization`` is None when the user has no home organization, in which
    case they have access to nothing.
    """
    id: str
    role: Role
    organization_id: str | None = None
    organization: OrganizationRef | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_user(cls, user) -> "UserSnapshot":
        """Build a snapshot from anything shaped like the User model."""
        org = getattr(user, "organization", None)
        return cls(
            id=user.id,
            role=Role(user.role),
            organization_id=user.organization_id,
            organization=organization_ref(org.id, org.parent_id) if org is not None else None,
        )

    @property
    def has_organization(self) -> bool:
        return self.organization_id is not None and self.organization is not None


class OrganizationScoped(Protocol):
    """Any resource owned by exactly one organization (tasks, audit entries)."""
    organization_id: str
