"""API tests for the user directory and single-user role routes."""

import pytest

USERS = "/api/v1/users"


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get(USERS)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_header(self, client):
        response = await client.get(USERS, headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_user(self, client, auth_headers):
        response = await client.get(USERS, headers=auth_headers("ghost"))
        assert response.status_code == 403

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", ["host", "viewer", "participant"])
    async def test_non_admins_cannot_open_console(self, client, auth_headers, user_id):
        response = await client.get(USERS, headers=auth_headers(user_id))

        assert response.status_code == 403
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "permission_denied"

    @pytest.mark.asyncio
    async def test_blocked_admin_is_turned_away(self, client, auth_headers):
        response = await client.get(USERS, headers=auth_headers("blocked-admin"))
        assert response.status_code == 403
        assert response.json()["message"] == "Blocked users cannot manage user roles"


class TestDirectory:
    @pytest.mark.asyncio
    async def test_super_admin_sees_everyone(self, client, auth_headers):
        response = await client.get(USERS, headers=auth_headers("owner"))

        assert response.status_code == 200
        assert response.json()["total"] == 7

    @pytest.mark.asyncio
    async def test_admin_does_not_see_super_admins(self, client, auth_headers):
        response = await client.get(USERS, headers=auth_headers("admin"))

        ids = [item["id"] for item in response.json()["items"]]
        assert "owner" not in ids
        assert len(ids) == 6

    @pytest.mark.asyncio
    async def test_filters_and_sort(self, client, auth_headers):
        response = await client.get(
            USERS,
            params={"role": "admin", "sort": "email-asc", "session": "never"},
            headers=auth_headers("owner"),
        )

        items = response.json()["items"]
        assert [item["id"] for item in items] == ["admin2", "admin", "blocked-admin"]
        assert {item["session_status"] for item in items} == {"never"}

    @pytest.mark.asyncio
    async def test_search(self, client, auth_headers):
        response = await client.get(USERS, params={"search": "hank"}, headers=auth_headers("admin"))
        assert [item["id"] for item in response.json()["items"]] == ["host"]

    @pytest.mark.asyncio
    async def test_unknown_role_filter(self, client, auth_headers):
        response = await client.get(USERS, params={"role": "owner"}, headers=auth_headers("admin"))
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_user(self, client, auth_headers):
        response = await client.get(f"{USERS}/host", headers=auth_headers("admin"))

        assert response.status_code == 200
        body = response.json()
        assert body["roles"] == ["host"]
        assert body["highest_role"] == "host"

    @pytest.mark.asyncio
    async def test_admin_cannot_look_up_super_admin(self, client, auth_headers):
        response = await client.get(f"{USERS}/owner", headers=auth_headers("admin"))
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_assignable_roles(self, client, auth_headers):
        response = await client.get(
            f"{USERS}/participant/assignable-roles", headers=auth_headers("admin")
        )

        assert response.json() == {
            "user_id": "participant",
            "assignable": ["viewer", "host"],
            "removable": [],
        }

    @pytest.mark.asyncio
    async def test_admin_cannot_list_options_for_super_admin(self, client, auth_headers):
        response = await client.get(
            f"{USERS}/owner/assignable-roles", headers=auth_headers("admin")
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestRoleChanges:
    @pytest.mark.asyncio
    async def test_change_role(self, client, auth_headers, api_notifier):
        response = await client.put(
            f"{USERS}/host/role", json={"role": "viewer"}, headers=auth_headers("admin")
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["skipped"] is False
        assert body["roles"] == ["viewer"]
        assert body["message"] == "Changed Hank Host's role to VIEWER"
        assert [sent[0] for sent in api_notifier.sent] == ["host"]

    @pytest.mark.asyncio
    async def test_admin_cannot_grant_admin(self, client, auth_headers):
        response = await client.put(
            f"{USERS}/participant/role", json={"role": "admin"}, headers=auth_headers("admin")
        )

        assert response.status_code == 403
        assert "only SUPER_ADMIN can assign ADMIN" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_add_role_already_held_is_skipped(self, client, auth_headers, api_notifier):
        response = await client.post(
            f"{USERS}/viewer/roles", json={"role": "viewer"}, headers=auth_headers("admin")
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "skipped": True,
            "message": "User already has this role",
        }
        assert api_notifier.sent == []

    @pytest.mark.asyncio
    async def test_add_role(self, client, auth_headers):
        response = await client.post(
            f"{USERS}/host/roles", json={"role": "viewer"}, headers=auth_headers("admin")
        )

        assert response.json()["roles"] == ["viewer", "host"]
        assert response.json()["message"] == "Added VIEWER role to Hank Host"

    @pytest.mark.asyncio
    async def test_remove_role(self, client, auth_headers):
        response = await client.delete(f"{USERS}/host/roles/host", headers=auth_headers("admin"))

        body = response.json()
        assert response.status_code == 200
        assert body["roles"] == ["participant"]
        assert body["message"] == "Removed HOST role - user now has PARTICIPANT role"

    @pytest.mark.asyncio
    async def test_invalid_role_value(self, client, auth_headers):
        response = await client.put(
            f"{USERS}/host/role", json={"role": "owner"}, headers=auth_headers("admin")
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_target(self, client, auth_headers):
        response = await client.put(
            f"{USERS}/ghost/role", json={"role": "viewer"}, headers=auth_headers("admin")
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_last_super_admin_cannot_step_down(self, client, auth_headers):
        response = await client.put(
            f"{USERS}/owner/role", json={"role": "admin"}, headers=auth_headers("owner")
        )

        assert response.status_code == 409
        assert response.json()["error"] == "invariant_violation"

    @pytest.mark.asyncio
    async def test_admin_cannot_change_hidden_super_admin(self, client, auth_headers, api_notifier):
        response = await client.put(
            f"{USERS}/owner/role", json={"role": "viewer"}, headers=auth_headers("admin")
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
        assert api_notifier.sent == []

    @pytest.mark.asyncio
    async def test_correlation_id_is_echoed(self, client, auth_headers):
        response = await client.get(
            f"{USERS}/host",
            headers={**auth_headers("admin"), "X-Correlation-ID": "cid_test123"},
        )
        assert response.headers["X-Correlation-ID"] == "cid_test123"


class TestBlockStatus:
    @pytest.mark.asyncio
    async def test_super_admin_blocks_and_unblocks(self, client, auth_headers):
        blocked = await client.put(
            f"{USERS}/host/block",
            json={"blocked": True, "reason": " spam "},
            headers=auth_headers("owner"),
        )
        assert blocked.status_code == 200
        assert blocked.json()["message"] == "User blocked successfully"

        detail = (await client.get(f"{USERS}/host", headers=auth_headers("owner"))).json()
        assert detail["is_blocked"] is True
        assert detail["block_reason"] == "spam"
        assert detail["roles"] == ["host"]

        unblocked = await client.put(
            f"{USERS}/host/block", json={"blocked": False}, headers=auth_headers("owner")
        )
        assert unblocked.json()["message"] == "User unblocked successfully"

    @pytest.mark.asyncio
    async def test_admin_cannot_block(self, client, auth_headers):
        response = await client.put(
            f"{USERS}/host/block", json={"blocked": True}, headers=auth_headers("admin")
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Only SUPER_ADMIN can block or unblock users"

    @pytest.mark.asyncio
    async def test_blocking_blocked_user_is_skipped(self, client, auth_headers):
        response = await client.put(
            f"{USERS}/blocked-admin/block", json={"blocked": True}, headers=auth_headers("owner")
        )
        assert response.json()["skipped"] is True
