"""
Store interfaces consumed by the authorization core.

SQLAlchemy implementations live in each feature's ``repository`` module;
tests substitute in-memory fakes.
"""
from collections.abc import Collection, Sequence
from typing import Any, Protocol


class OrganizationRecord(Protocol):
    id: str
    name: str
    parent_id: str | None


class OrganizationStore(Protocol):
    async def find_by_id(self, organization_id: str) -> OrganizationRecord | None: ...

    async def find_by_parent_id(self, parent_id: str) -> Sequence[OrganizationRecord]: ...

    async def find_all(self) -> Sequence[OrganizationRecord]: ...

    async def insert(self, organization: Any) -> OrganizationRecord: ...


class TaskStore(Protocol):
    async def find(
        self,
        organization_ids: Collection[str],
        filters: Any,
        sort: Any,
        offset: int,
        limit: int,
    ) -> tuple[list[Any], int]: ...

    async def get(self, task_id: str) -> Any | None: ...

    async def insert(self, task: Any) -> Any: ...

    async def update(self, task: Any) -> Any: ...

    async def delete(self, task: Any) -> None: ...


class AuditStore(Protocol):
    async def insert(self, entry: Any) -> Any: ...

    async def find(
        self,
        organization_ids: Collection[str] | None,
        filters: Any,
        offset: int,
        limit: int,
    ) -> tuple[list[Any], int]: ...

    async def count(self, organization_ids: Collection[str], filters: Any = None) -> int: ...
