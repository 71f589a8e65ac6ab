"""
Organization-related dependency injection functions.
"""
from typing import Annotated
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.database.engine import get_db
from taskboard.core.errors import NotFoundError
from taskboard.features.organizations.models import Organization
from taskboard.features.organizations.repository import SqlOrganizationStore


async def get_organization_store(
    db: Annotated[AsyncSession, Depends(get_db)]
) -> SqlOrganizationStore:
    return SqlOrganizationStore(db)


async def get_organization_by_id(
    organization_id: str,
    organizations: Annotated[SqlOrganizationStore, Depends(get_organization_store)]
) -> Organization:
    """
    Get organization by ID or raise 404.

    Args:
        organization_id: Organization ULID
        organizations: Organization store

    Returns:
        Organization model

    Raises:
        NotFoundError: organization does not exist
    """
    organization = await organizations.find_by_id(organization_id)

    if organization is None:
        raise NotFoundError("Organization not found")

    return organization
