"""Tests for the scope permission matrix API."""

from uuid import uuid4

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import DEFAULT_SCOPE_PERMISSIONS, NodeKind
from app.models import AuditEntry, ScopePermission, User
from app.services import permission as permission_service
from tests.conftest import Org, assign, auth_header, token_for


class TestMatrix:
    """Tests for reading and editing the matrix."""

    async def test_non_admin_refused(self, client: AsyncClient, director: User):
        response = await client.get(
            "/api/v1/permissions/matrix",
            headers=auth_header(token_for(director)),
        )

        assert response.status_code == 403

    async def test_defaults_are_seeded(self, client: AsyncClient, admin_token: str):
        response = await client.get(
            "/api/v1/permissions/matrix",
            headers=auth_header(admin_token),
        )

        assert response.status_code == 200
        assert len(response.json()) == len(DEFAULT_SCOPE_PERMISSIONS)

    async def test_filter_by_role_and_type(self, client: AsyncClient, admin_token: str):
        response = await client.get(
            "/api/v1/permissions/matrix",
            headers=auth_header(admin_token),
            params={"role_name": "director", "data_type": "students"},
        )

        assert response.status_code == 200
        rows = response.json()
        assert {row["scope_level"] for row in rows} == {"zone", "province", "district"}
        assert all(row["can_create"] is False for row in rows)

    async def test_seed_is_idempotent(self, db: AsyncSession):
        assert await permission_service.seed_defaults(db) == (0, 0)


class TestMatrixChanges:
    """Matrix edits apply to the very next check."""

    async def test_grant_takes_effect_immediately(
        self, client: AsyncClient, db: AsyncSession, org: Org, admin_token: str, intern: User
    ):
        await assign(db, intern, NodeKind.SCHOOL, org.school7.id)
        intern_headers = auth_header(token_for(intern))
        check = {"data_type": "schools", "action": "view", "resource_id": str(org.school7.id)}

        response = await client.post("/api/v1/permissions/check", headers=intern_headers, json=check)
        assert response.json() == {"allowed": False}

        response = await client.put(
            "/api/v1/permissions/matrix",
            headers=auth_header(admin_token),
            json={
                "role_name": "intern",
                "data_type": "schools",
                "scope_level": "school",
                "can_view": True,
            },
        )
        assert response.status_code == 200
        entry = response.json()
        assert entry["can_view"] is True
        assert entry["can_update"] is False

        response = await client.post("/api/v1/permissions/check", headers=intern_headers, json=check)
        assert response.json() == {"allowed": True}

        response = await client.delete(
            f"/api/v1/permissions/matrix/{entry['id']}",
            headers=auth_header(admin_token),
        )
        assert response.status_code == 204

        response = await client.post("/api/v1/permissions/check", headers=intern_headers, json=check)
        assert response.json() == {"allowed": False}

        result = await db.execute(
            select(AuditEntry.action).where(AuditEntry.table_name == "role_data_scopes")
        )
        assert sorted(result.scalars().all()) == ["CREATE", "DELETE"]

    async def test_upsert_updates_existing_row(
        self, client: AsyncClient, db: AsyncSession, admin_token: str
    ):
        result = await db.execute(
            select(ScopePermission.id).where(
                ScopePermission.role_name == "intern",
                ScopePermission.data_type == "observations",
                ScopePermission.scope_level == "school",
            )
        )
        existing_id = result.scalar_one()

        response = await client.put(
            "/api/v1/permissions/matrix",
            headers=auth_header(admin_token),
            json={
                "role_name": "intern",
                "data_type": "observations",
                "scope_level": "school",
                "can_view": True,
                "can_export": True,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(existing_id)
        assert data["can_export"] is True

    async def test_unknown_scope_level_rejected(self, client: AsyncClient, admin_token: str):
        response = await client.put(
            "/api/v1/permissions/matrix",
            headers=auth_header(admin_token),
            json={"role_name": "intern", "data_type": "schools", "scope_level": "planet"},
        )

        assert response.status_code == 422

    async def test_delete_missing_row(self, client: AsyncClient, admin_token: str):
        response = await client.delete(
            f"/api/v1/permissions/matrix/{uuid4()}",
            headers=auth_header(admin_token),
        )

        assert response.status_code == 404


class TestCheck:
    """Tests for the access check endpoint."""

    async def test_check_own_scope(self, client: AsyncClient, org: Org, coordinator: User):
        headers = auth_header(token_for(coordinator))

        response = await client.post(
            "/api/v1/permissions/check",
            headers=headers,
            json={"data_type": "training_sessions", "action": "create"},
        )
        assert response.json() == {"allowed": True}

        response = await client.post(
            "/api/v1/permissions/check",
            headers=headers,
            json={"data_type": "schools", "action": "view"},
        )
        assert response.json() == {"allowed": False}
