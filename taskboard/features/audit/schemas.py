"""
Pydantic schemas for audit log records, filters and responses.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from taskboard.features.audit.models import AuditAction, AuditResource


class AuditEntryCreate(BaseModel):
    """Data for a new audit entry. ``ip_address`` falls back to "unknown"."""
    action: AuditAction
    resource: AuditResource
    resource_id: Optional[str] = None
    user_id: Optional[str] = None
    organization_id: Optional[str] = None
    details: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    ip_address: str = "unknown"
    user_agent: Optional[str] = None


class AuditFilters(BaseModel):
    """Conjunctive equality/range filters for audit queries."""
    action: Optional[AuditAction] = None
    resource: Optional[AuditResource] = None
    user_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class AuditLogResponse(BaseModel):
    """Schema for audit log response."""
    id: str
    action: AuditAction
    resource: AuditResource
    resource_id: Optional[str]
    user_id: Optional[str]
    organization_id: Optional[str]
    details: Optional[str]
    meta: Optional[Dict[str, Any]]
    ip_address: str
    user_agent: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogListResponse(BaseModel):
    """Schema for paginated audit log list."""
    items: List[AuditLogResponse]
    total: int
    page: int
    page_size: int
    pages: int


class AuditSummaryResponse(BaseModel):
    """Totals plus the newest entries from the last 24 hours."""
    total_logs: int
    recent_activity: List[AuditLogResponse] = Field(default_factory=list)
    accessible_organizations: int


class RequestContext(BaseModel):
    """Where a request came from, copied onto every audit entry it produces."""
    ip_address: str = "unknown"
    user_agent: Optional[str] = None

    model_config = ConfigDict(frozen=True)
