"""
Pydantic schemas for user-related requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from taskboard.features.access.roles import Role


class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class UserCreate(UserBase):
    """Schema for creating a new user in an accessible organization."""
    role: Role = Role.VIEWER
    organization_id: str


class UserOrganization(BaseModel):
    id: str
    name: str
    parent_id: str | None = None

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    """Schema for user responses."""
    id: str
    email: str
    first_name: str
    last_name: str
    role: Role
    is_active: bool
    organization_id: str | None = None
    organization: UserOrganization | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
