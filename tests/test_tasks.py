# tests/test_tasks.py - Task query scoping, mutations and their audit trail
from datetime import timedelta
from types import SimpleNamespace

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from taskboard.core.config import AccessSettings
from taskboard.core.database.base import utcnow
from taskboard.core.errors import AuditWriteFailure, ForbiddenError, NotFoundError, ValidationFailure
from taskboard.features.access.query import Pagination
from taskboard.features.access.roles import Role
from taskboard.features.access.scope import OrganizationScopeResolver
from taskboard.features.audit.models import AuditAction, AuditLog, AuditResource
from taskboard.features.audit.schemas import RequestContext
from taskboard.features.audit.service import AuditTrailRecorder
from taskboard.features.tasks.models import Task, TaskPriority, TaskStatus
from taskboard.features.tasks.schemas import TaskFilters, TaskUpdate
from taskboard.features.tasks.service import TaskService, get_changes
from tests.conftest import get_auth_headers, make_task
from tests.fakes import FakeAuditStore, FakeOrganizationStore, FakeTaskStore, LeakyTaskStore, org, snapshot


HQ = org("hq")
DOWNTOWN = org("downtown", "hq")
UPTOWN = org("uptown", "hq")
CONTEXT = RequestContext(ip_address="10.0.0.1", user_agent="pytest")


def fake_task(id: str, organization_id: str, **fields) -> SimpleNamespace:
    values = dict(title=id, description=None, status=TaskStatus.TODO, priority=TaskPriority.MEDIUM)
    values.update(fields)
    return SimpleNamespace(id=id, organization_id=organization_id, **values)


def make_service(*tasks, strict: bool = False, audit_fails: bool = False, task_store=None):
    organizations = FakeOrganizationStore(HQ, DOWNTOWN, UPTOWN)
    task_store = task_store or FakeTaskStore(*tasks)
    audit_store = FakeAuditStore(fail=audit_fails)
    service = TaskService(
        tasks=task_store,
        organizations=organizations,
        resolver=OrganizationScopeResolver(organizations),
        audit=AuditTrailRecorder(audit_store),
        settings=AccessSettings(strict_organization_scope=strict),
    )
    return service, task_store, audit_store


@pytest.mark.asyncio
class TestScopedTasks:
    async def test_user_without_organization_short_circuits(self):
        service, task_store, _ = make_service(fake_task("t1", "hq"))
        tasks, total = await service.scoped_tasks(snapshot("u1", Role.OWNER, None))
        assert (tasks, total) == ([], 0)
        assert sum(task_store.calls.values()) == 0

    async def test_owner_query_spans_hierarchy(self):
        service, task_store, _ = make_service(
            fake_task("t1", "hq"), fake_task("t2", "downtown"), fake_task("t3", "uptown")
        )
        tasks, total = await service.scoped_tasks(snapshot("u1", Role.OWNER, HQ))
        assert total == 3
        assert task_store.requested_ids == [frozenset({"hq", "downtown", "uptown"})]

    async def test_results_stay_inside_accessible_set(self):
        service, task_store, _ = make_service(
            fake_task("t1", "hq"), fake_task("t2", "downtown"), fake_task("t3", "uptown")
        )
        tasks, _ = await service.scoped_tasks(snapshot("u1", Role.VIEWER, UPTOWN))
        assert {t.organization_id for t in tasks} <= {"uptown"}
        assert [t.id for t in tasks] == ["t3"]

    async def test_rows_leaked_by_store_are_dropped(self):
        leaky = LeakyTaskStore(
            fake_task("t1", "hq"), fake_task("t2", "downtown"), fake_task("t3", "uptown"), fake_task("t4", "elsewhere")
        )
        service, _, _ = make_service(task_store=leaky)
        tasks, _ = await service.scoped_tasks(snapshot("u1", Role.ADMIN, DOWNTOWN))
        assert [t.id for t in tasks] == ["t2"]

    @pytest.mark.parametrize("pagination", [
        Pagination(page=0, limit=10),
        Pagination(page=1, limit=0),
        Pagination(page=1, limit=101),
    ])
    async def test_malformed_pagination_rejected_before_query(self, pagination):
        service, task_store, _ = make_service(fake_task("t1", "hq"))
        with pytest.raises(ValidationFailure):
            await service.scoped_tasks(snapshot("u1", Role.OWNER, HQ), TaskFilters(), pagination)
        assert sum(task_store.calls.values()) == 0


@pytest.mark.asyncio
class TestTaskMutations:
    async def test_get_outside_scope_is_not_found_and_audited(self):
        service, _, audit_store = make_service(fake_task("t1", "downtown"))
        with pytest.raises(NotFoundError):
            await service.get_task("t1", snapshot("u1", Role.VIEWER, UPTOWN), CONTEXT)
        assert [e.action for e in audit_store.entries] == [AuditAction.ACCESS_DENIED]
        assert audit_store.entries[0].meta["reason"] == "no_organization_access"

    async def test_missing_task_is_not_audited(self):
        service, _, audit_store = make_service()
        with pytest.raises(NotFoundError):
            await service.get_task("missing", snapshot("u1", Role.OWNER, HQ), CONTEXT)
        assert audit_store.entries == []

    async def test_viewer_cannot_delete(self):
        service, task_store, audit_store = make_service(fake_task("t1", "downtown"))
        with pytest.raises(ForbiddenError) as exc_info:
            await service.delete_task("t1", snapshot("u1", Role.VIEWER, DOWNTOWN), CONTEXT)
        assert exc_info.value.reason.value == "insufficient_role"
        assert "t1" in task_store.tasks
        assert [e.action for e in audit_store.entries] == [AuditAction.ACCESS_DENIED]

    async def test_admin_delete_writes_exactly_one_entry(self):
        service, task_store, audit_store = make_service(fake_task("t1", "downtown"))
        await service.delete_task("t1", snapshot("u1", Role.ADMIN, DOWNTOWN), CONTEXT)
        assert "t1" not in task_store.tasks
        assert len(audit_store.entries) == 1
        entry = audit_store.entries[0]
        assert (entry.action, entry.resource, entry.resource_id) == (AuditAction.DELETE, AuditResource.TASK, "t1")
        assert entry.ip_address == "10.0.0.1"

    async def test_audit_failure_surfaces_after_delete(self):
        service, task_store, audit_store = make_service(fake_task("t1", "downtown"), audit_fails=True)
        with pytest.raises(AuditWriteFailure):
            await service.delete_task("t1", snapshot("u1", Role.ADMIN, DOWNTOWN), CONTEXT)
        assert "t1" not in task_store.tasks
        assert audit_store.entries == []

    async def test_audit_failure_surfaces_after_update(self):
        service, task_store, _ = make_service(fake_task("t1", "downtown"), audit_fails=True)
        with pytest.raises(AuditWriteFailure):
            await service.update_task(
                "t1", TaskUpdate(title="Renamed"), snapshot("u1", Role.VIEWER, DOWNTOWN), CONTEXT
            )
        assert task_store.tasks["t1"].title == "Renamed"

    async def test_viewer_updates_any_editable_field(self):
        service, _, audit_store = make_service(fake_task("t1", "downtown"))
        task = await service.update_task(
            "t1",
            TaskUpdate(title="Renamed", priority=TaskPriority.HIGH),
            snapshot("u1", Role.VIEWER, DOWNTOWN),
            CONTEXT,
        )
        assert task.title == "Renamed"
        assert audit_store.entries[0].meta["changes"] == {
            "title": {"from": "t1", "to": "Renamed"},
            "priority": {"from": "medium", "to": "high"},
        }

    async def test_required_field_cannot_be_nulled(self):
        service, _, _ = make_service(fake_task("t1", "downtown"))
        with pytest.raises(ValidationFailure):
            await service.update_task(
                "t1", TaskUpdate(status=None), snapshot("u1", Role.ADMIN, DOWNTOWN), CONTEXT
            )

    async def test_strict_scope_hides_unrelated_organizations(self):
        task = fake_task("t1", "unrelated")
        broad, _, _ = make_service(task)
        strict, _, _ = make_service(task, strict=True)
        owner = snapshot("u1", Role.OWNER, HQ)
        assert (await broad.get_task("t1", owner, CONTEXT)).id == "t1"
        with pytest.raises(NotFoundError):
            await strict.get_task("t1", owner, CONTEXT)


def test_get_changes_ignores_unchanged_fields():
    task = fake_task("t1", "hq", status=TaskStatus.TODO)
    assert get_changes(task, {"status": TaskStatus.TODO, "title": "t1"}) == {}
    assert get_changes(task, {"status": TaskStatus.DONE}) == {"status": {"from": "todo", "to": "done"}}


@pytest.mark.asyncio
class TestTaskRoutes:
    async def test_scenario_hierarchy_visibility(
        self, client: AsyncClient, db_session, owner, downtown, downtown_viewer, uptown_viewer
    ):
        task = await make_task(db_session, "Fire drill", downtown, downtown_viewer)

        res = await client.get("/api/tasks", headers=get_auth_headers(owner))
        assert res.status_code == 200
        assert task.id in [t["id"] for t in res.json()["tasks"]]

        res = await client.get("/api/tasks", headers=get_auth_headers(uptown_viewer))
        assert res.status_code == 200
        assert res.json()["tasks"] == []
        assert res.json()["total"] == 0

        res = await client.get(f"/api/tasks/{task.id}", headers=get_auth_headers(uptown_viewer))
        assert res.status_code == 404

    async def test_admin_delete_in_own_organization(
        self, client: AsyncClient, db_session, downtown, downtown_admin, downtown_viewer
    ):
        task = await make_task(db_session, "Restock", downtown, downtown_viewer)

        res = await client.delete(f"/api/tasks/{task.id}", headers=get_auth_headers(downtown_admin))
        assert res.status_code == 200

        entries = (await db_session.execute(
            select(AuditLog).where(AuditLog.resource_id == task.id)
        )).scalars().all()
        assert len(entries) == 1
        assert entries[0].action == AuditAction.DELETE
        assert entries[0].resource == AuditResource.TASK
        assert await db_session.scalar(select(Task).where(Task.id == task.id)) is None

    async def test_viewer_delete_forbidden(self, client: AsyncClient, db_session, downtown, downtown_viewer):
        task = await make_task(db_session, "Restock", downtown, downtown_viewer)
        res = await client.delete(f"/api/tasks/{task.id}", headers=get_auth_headers(downtown_viewer))
        assert res.status_code == 403
        assert res.json()["reason"] == "insufficient_role"

    async def test_create_and_update(self, client: AsyncClient, downtown, downtown_admin):
        headers = get_auth_headers(downtown_admin)
        res = await client.post("/api/tasks", headers=headers, json={
            "title": "Quarterly planning",
            "priority": "high",
            "organization_id": downtown.id,
        })
        assert res.status_code == 201
        created = res.json()
        assert created["status"] == "backlog"
        assert created["created_by"]["id"] == downtown_admin.id
        assert created["organization"]["id"] == downtown.id

        res = await client.put(f"/api/tasks/{created['id']}", headers=headers, json={"status": "done"})
        assert res.status_code == 200
        assert res.json()["status"] == "done"

    async def test_update_rejects_immutable_fields(self, client: AsyncClient, db_session, downtown, uptown, downtown_viewer):
        task = await make_task(db_session, "Fire drill", downtown, downtown_viewer)
        res = await client.put(
            f"/api/tasks/{task.id}",
            headers=get_auth_headers(downtown_viewer),
            json={"organization_id": uptown.id},
        )
        assert res.status_code == 400

    async def test_viewer_cannot_create(self, client: AsyncClient, db_session, downtown, downtown_viewer):
        res = await client.post("/api/tasks", headers=get_auth_headers(downtown_viewer), json={
            "title": "Not allowed",
            "organization_id": downtown.id,
        })
        assert res.status_code == 403
        assert res.json()["reason"] == "insufficient_role"

        denied = (await db_session.execute(
            select(AuditLog).where(AuditLog.action == AuditAction.ACCESS_DENIED)
        )).scalars().all()
        assert len(denied) == 1
        assert (denied[0].user_id, denied[0].organization_id) == (downtown_viewer.id, downtown.id)
        assert await db_session.scalar(select(Task).where(Task.title == "Not allowed")) is None

    async def test_admin_cannot_create_in_sibling(self, client: AsyncClient, uptown, downtown_admin):
        res = await client.post("/api/tasks", headers=get_auth_headers(downtown_admin), json={
            "title": "Not allowed",
            "organization_id": uptown.id,
        })
        assert res.status_code == 403
        assert res.json()["reason"] == "no_organization_access"

    async def test_sort_filter_and_paginate(self, client: AsyncClient, db_session, hq, owner):
        await make_task(db_session, "b", hq, owner, priority=TaskPriority.LOW)
        await make_task(db_session, "a", hq, owner, priority=TaskPriority.CRITICAL)
        await make_task(db_session, "c", hq, owner, priority=TaskPriority.HIGH, status=TaskStatus.DONE)
        headers = get_auth_headers(owner)

        res = await client.get("/api/tasks", headers=headers, params={"sort_by": "title"})
        assert [t["title"] for t in res.json()["tasks"]] == ["a", "b", "c"]

        res = await client.get("/api/tasks", headers=headers, params={"sort_by": "priority", "sort_order": "desc"})
        assert [t["title"] for t in res.json()["tasks"]] == ["a", "c", "b"]

        res = await client.get("/api/tasks", headers=headers, params={"status": "done"})
        assert [t["title"] for t in res.json()["tasks"]] == ["c"]

        res = await client.get("/api/tasks", headers=headers, params={"sort_by": "title", "page": 2, "limit": 2})
        body = res.json()
        assert [t["title"] for t in body["tasks"]] == ["c"]
        assert (body["total"], body["total_pages"]) == (3, 2)

    async def test_invalid_pagination(self, client: AsyncClient, owner):
        res = await client.get("/api/tasks", headers=get_auth_headers(owner), params={"limit": 500})
        assert res.status_code == 400

    async def test_requires_authentication(self, client: AsyncClient):
        res = await client.get("/api/tasks")
        assert res.status_code == 401

    async def test_default_order_is_newest_first(self, client: AsyncClient, db_session, hq, owner):
        now = utcnow()
        await make_task(db_session, "old", hq, owner, created_at=now - timedelta(days=2))
        await make_task(db_session, "new", hq, owner, created_at=now)
        await make_task(db_session, "mid", hq, owner, created_at=now - timedelta(days=1))

        res = await client.get("/api/tasks", headers=get_auth_headers(owner))
        assert [t["title"] for t in res.json()["tasks"]] == ["new", "mid", "old"]

    async def test_due_date_sort_puts_undated_last(self, client: AsyncClient, db_session, hq, owner):
        now = utcnow()
        await make_task(db_session, "undated", hq, owner)
        await make_task(db_session, "later", hq, owner, due_date=now + timedelta(days=7))
        await make_task(db_session, "sooner", hq, owner, due_date=now + timedelta(days=1))
        headers = get_auth_headers(owner)

        res = await client.get("/api/tasks", headers=headers, params={"sort_by": "due_date"})
        assert [t["title"] for t in res.json()["tasks"]] == ["sooner", "later", "undated"]

        res = await client.get("/api/tasks", headers=headers, params={"sort_by": "due_date", "sort_order": "desc"})
        assert [t["title"] for t in res.json()["tasks"]] == ["later", "sooner", "undated"]
