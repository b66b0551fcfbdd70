"""Unit tests for bulk role operations.

Every target is evaluated and applied on its own; partial success is the
normal outcome and nothing aborts the batch.
"""

import pytest
from sqlalchemy.exc import OperationalError

from engagetrack.domain.entities.audit_entry import AuditAction
from engagetrack.domain.entities.role import Role
from engagetrack.domain.entities.role_change import BulkItemStatus
from engagetrack.domain.entities.user import UserAccount
from engagetrack.domain.services.role_policy import PROTECTED_ROLE_IMMUTABLE


@pytest.fixture
def second_viewer(directory) -> UserAccount:
    user = UserAccount(id="viewer2", email="viewer2@example.com", roles=frozenset({Role.VIEWER}))
    directory.users[user.id] = user
    return user


@pytest.mark.asyncio
async def test_bulk_add_mixed_outcomes(service, directory, audit_recorder, notifier, second_viewer):
    """Five targets: two already hold the role, one is denied, two succeed."""
    result = await service.bulk_add_role(
        "admin", ["viewer", "viewer2", "admin2", "host", "participant"], Role.VIEWER
    )

    assert result.counts() == {"success": 2, "skipped": 2, "failed": 1}
    statuses = {item.user_id: item.status for item in result.results}
    assert statuses == {
        "viewer": BulkItemStatus.SKIPPED,
        "viewer2": BulkItemStatus.SKIPPED,
        "admin2": BulkItemStatus.FAILED,
        "host": BulkItemStatus.SUCCESS,
        "participant": BulkItemStatus.SUCCESS,
    }

    failed = next(item for item in result.results if item.user_id == "admin2")
    assert failed.error == "permission_denied"
    assert failed.message == PROTECTED_ROLE_IMMUTABLE

    assert directory.users["host"].roles == {Role.HOST, Role.VIEWER}
    assert directory.users["admin2"].roles == {Role.ADMIN}
    assert [e.target_id for e in audit_recorder.entries] == ["host", "participant"]
    assert [n[0] for n in notifier.sent] == ["host", "participant"]


@pytest.mark.asyncio
async def test_bulk_processes_duplicates_once(service, audit_recorder):
    result = await service.bulk_add_role("admin", ["host", "host", "participant"], "viewer")

    assert [item.user_id for item in result.results] == ["host", "participant"]
    assert result.success == 2
    assert len(audit_recorder.entries) == 2


@pytest.mark.asyncio
async def test_bulk_remove(service, directory):
    result = await service.bulk_remove_role("admin", ["host", "viewer", "participant"], Role.HOST)

    assert result.action is AuditAction.REMOVE
    assert result.counts() == {"success": 1, "skipped": 2, "failed": 0}
    assert directory.users["host"].roles == {Role.PARTICIPANT}


@pytest.mark.asyncio
async def test_bulk_change_reports_unknown_users(service, directory):
    result = await service.bulk_change_role("owner", ["viewer", "ghost"], Role.HOST)

    assert result.counts() == {"success": 1, "skipped": 0, "failed": 1}
    assert result.results[1].error == "not_found"
    assert directory.users["viewer"].roles == {Role.HOST}


@pytest.mark.asyncio
async def test_bulk_by_unauthorized_actor_fails_every_item(service, directory):
    result = await service.bulk_change_role("host", ["viewer", "participant"], Role.HOST)

    assert result.counts() == {"success": 0, "skipped": 0, "failed": 2}
    assert directory.users["viewer"].roles == {Role.VIEWER}


@pytest.mark.asyncio
async def test_bulk_never_removes_last_super_admin(service, directory):
    """A bulk change including the acting owner still keeps one SUPER_ADMIN."""
    result = await service.bulk_change_role("owner", ["host", "owner"], Role.ADMIN)

    assert result.counts() == {"success": 1, "skipped": 0, "failed": 1}
    assert result.results[1].error == "invariant_violation"
    assert directory.super_admin_ids() == {"owner"}


@pytest.mark.asyncio
async def test_bulk_continues_after_backend_failure(service, directory):
    directory.commit_error = OperationalError("COMMIT", {}, Exception("database is locked"))

    result = await service.bulk_add_role("admin", ["host", "participant"], Role.VIEWER)

    assert result.failed == 2
    assert {item.error for item in result.results} == {"transient_backend_failure"}
