"""
API tests for user management.
"""

import pytest


def new_user(**overrides) -> dict:
    return {
        "username": "bob",
        "email": "bob@schoolhub.dev",
        "password": "Password123!",
        "role": "admin",
        **overrides,
    }


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.post("/api/v1/users", json=new_user())
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_forbidden(self, client, admin_headers):
        response = await client.post("/api/v1/users", json=new_user(), headers=admin_headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Forbidden: superadmin access required"

    @pytest.mark.asyncio
    async def test_superadmin_creates(self, client, superadmin_headers, school):
        response = await client.post(
            "/api/v1/users",
            json=new_user(username="Bob", schoolIds=[school.id]),
            headers=superadmin_headers,
        )
        assert response.status_code == 201
        user = response.json()["data"]["user"]
        assert user["username"] == "bob"
        assert user["role"] == "admin"
        assert user["schoolIds"] == [school.id]
        assert "password" not in user

    @pytest.mark.asyncio
    async def test_duplicate(self, client, superadmin_headers, admin):
        response = await client.post(
            "/api/v1/users", json=new_user(username="alice"), headers=superadmin_headers
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_payload(self, client, superadmin_headers):
        response = await client.post(
            "/api/v1/users",
            json=new_user(schoolIds=["not-an-id"]),
            headers=superadmin_headers,
        )
        assert response.status_code == 400
        assert response.json()["errors"] == ["schoolIds.0 must be a valid ObjectId"]


class TestAssignSchools:
    @pytest.mark.asyncio
    async def test_adds_schools(self, client, superadmin_headers, admin, school, other_school):
        response = await client.patch(
            f"/api/v1/users/{admin.id}/schools",
            json={"schoolIds": [other_school.id, school.id]},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["message"] == "1 school(s) added to user successfully"
        assert data["user"]["schoolIds"] == [school.id, other_school.id]

    @pytest.mark.asyncio
    async def test_empty_list_rejected(self, client, superadmin_headers, admin):
        response = await client.patch(
            f"/api/v1/users/{admin.id}/schools",
            json={"schoolIds": []},
            headers=superadmin_headers,
        )
        assert response.status_code == 400


class TestUpdateRole:
    @pytest.mark.asyncio
    async def test_self_change_rejected(self, client, superadmin, superadmin_headers):
        response = await client.patch(
            f"/api/v1/users/{superadmin.id}/role",
            json={"role": "admin"},
            headers=superadmin_headers,
        )
        assert response.status_code == 400
        assert response.json() == {"ok": False, "message": "Cannot change your own role"}

    @pytest.mark.asyncio
    async def test_changes_other_user(self, client, superadmin_headers, admin):
        response = await client.patch(
            f"/api/v1/users/{admin.id}/role",
            json={"role": "superadmin"},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["role"] == "superadmin"
        assert response.json()["data"]["message"] == "User role updated successfully"

    @pytest.mark.asyncio
    async def test_malformed_id(self, client, superadmin_headers):
        response = await client.patch(
            "/api/v1/users/123/role", json={"role": "admin"}, headers=superadmin_headers
        )
        assert response.status_code == 400
        assert response.json()["errors"] == ["userId must be a valid ObjectId"]

    @pytest.mark.asyncio
    async def test_unknown_role(self, client, superadmin_headers, admin):
        response = await client.patch(
            f"/api/v1/users/{admin.id}/role", json={"role": "owner"}, headers=superadmin_headers
        )
        assert response.status_code == 400
