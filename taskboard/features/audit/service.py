"""
Audit trail recorder.

Appends immutable audit entries and reads them back scoped to a set of
organization ids produced by the organization scope resolver.
"""
import json
from collections.abc import Collection
from datetime import timedelta

from taskboard.core.database.base import utcnow
from taskboard.core.errors import AuditWriteFailure
from taskboard.features.access.query import Pagination
from taskboard.features.access.stores import AuditStore
from taskboard.features.audit.models import AuditLog
from taskboard.features.audit.schemas import AuditEntryCreate, AuditFilters
from taskboard.utils import get_logger


log = get_logger(__name__)

RECENT_ACTIVITY_WINDOW = timedelta(hours=24)
RECENT_ACTIVITY_LIMIT = 10


class AuditTrailRecorder:
    """Append-only writer and scoped reader for the audit trail."""

    def __init__(self, store: AuditStore):
        self.store = store

    async def record(self, entry: AuditEntryCreate) -> AuditLog:
        """
        Persist an audit entry.

        A failed write is logged together with the entry payload so operators
        can reconstruct it, then re-raised. The operation that triggered the
        entry has usually been committed already and is not rolled back.

        Raises:
            AuditWriteFailure: the store rejected the write
        """
        try:
            saved = await self.store.insert(AuditLog(**entry.model_dump()))
        except Exception as e:
            log.error("Failed to save audit log: %s", e, exc_info=True)
            log.error("Audit log data: %s", json.dumps(entry.model_dump(mode="json"), indent=2))
            raise AuditWriteFailure("Failed to write audit log entry") from e

        log.info(
            "Audit: user=%s action=%s resource=%s:%s org=%s",
            entry.user_id, entry.action.value, entry.resource.value, entry.resource_id, entry.organization_id
        )
        return saved

    async def query_by_organizations(
        self,
        organization_ids: Collection[str],
        filters: AuditFilters | None,
        pagination: Pagination,
    ) -> tuple[list[AuditLog], int]:
        """Entries belonging to any of ``organization_ids``, newest first."""
        if not organization_ids:
            return [], 0
        return await self.store.find(organization_ids, filters, pagination.offset, pagination.limit)

    async def query(
        self,
        organization_id: str,
        filters: AuditFilters | None,
        pagination: Pagination,
    ) -> tuple[list[AuditLog], int]:
        """Entries for one organization the caller has already been authorized for."""
        return await self.store.find([organization_id], filters, pagination.offset, pagination.limit)

    async def summarize(self, organization_ids: Collection[str]) -> dict:
        """
        Total entry count plus up to ten entries from the last 24 hours.
        """
        if not organization_ids:
            return {"total_logs": 0, "recent_activity": [], "accessible_organizations": 0}

        total = await self.store.count(organization_ids)
        recent, _ = await self.store.find(
            organization_ids,
            AuditFilters(start_date=utcnow() - RECENT_ACTIVITY_WINDOW),
            0,
            RECENT_ACTIVITY_LIMIT,
        )
        return {
            "total_logs": total,
            "recent_activity": recent,
            "accessible_organizations": len(organization_ids),
        }
