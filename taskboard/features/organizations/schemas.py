"""
Pydantic schemas for organization-related requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, Field


class OrganizationCreate(BaseModel):
    """Schema for creating a new organization."""
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    parent_id: str | None = Field(None, description="Root organization to nest under; omit for a new root")


class OrganizationResponse(BaseModel):
    """Schema for organization responses."""
    id: str
    name: str
    description: str | None = None
    parent_id: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
