"""API tests for bulk role operations."""

import pytest

from engagetrack.domain.entities.role import Role

BULK = "/api/v1/roles/bulk"


@pytest.mark.asyncio
async def test_bulk_add_reports_each_bucket(client, auth_headers, seeded_factory, seed):
    await seed(seeded_factory, [("viewer2", "viewer2@example.com", None, (Role.VIEWER,), False)])

    response = await client.post(
        f"{BULK}/add",
        json={
            "user_ids": ["viewer", "viewer2", "admin2", "host", "participant", "host"],
            "role": "viewer",
        },
        headers=auth_headers("admin"),
    )

    assert response.status_code == 200
    body = response.json()
    assert (body["success"], body["skipped"], body["failed"]) == (2, 2, 1)
    assert len(body["results"]) == 5
    failed = [item for item in body["results"] if item["status"] == "failed"]
    assert failed[0]["user_id"] == "admin2"
    assert failed[0]["error"] == "permission_denied"


@pytest.mark.asyncio
async def test_bulk_remove(client, auth_headers):
    response = await client.post(
        f"{BULK}/remove",
        json={"user_ids": ["host", "viewer"], "role": "host"},
        headers=auth_headers("owner"),
    )

    body = response.json()
    assert body["action"] == "remove"
    assert (body["success"], body["skipped"], body["failed"]) == (1, 1, 0)


@pytest.mark.asyncio
async def test_bulk_change_by_super_admin(client, auth_headers):
    response = await client.post(
        f"{BULK}/change",
        json={"user_ids": ["viewer", "participant", "ghost"], "role": "host"},
        headers=auth_headers("owner"),
    )

    body = response.json()
    assert (body["success"], body["skipped"], body["failed"]) == (2, 0, 1)
    assert body["results"][2]["error"] == "not_found"


@pytest.mark.asyncio
async def test_bulk_requires_console_access(client, auth_headers):
    response = await client.post(
        f"{BULK}/add",
        json={"user_ids": ["viewer"], "role": "host"},
        headers=auth_headers("host"),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_bulk_requires_targets(client, auth_headers):
    response = await client.post(
        f"{BULK}/add", json={"user_ids": [], "role": "host"}, headers=auth_headers("admin")
    )
    assert response.status_code == 422
