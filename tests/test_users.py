"""Tests for users API."""

from uuid import uuid4

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Role
from app.models.audit import AuditEntry
from app.models.user import User
from tests.conftest import Org, auth_header, make_user, token_for


class TestCurrentUser:
    """Tests for /users/me endpoints."""

    async def test_get_me(self, client: AsyncClient, teacher: User):
        response = await client.get(
            "/api/v1/users/me",
            headers=auth_header(token_for(teacher)),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(teacher.id)
        assert data["role"] == "teacher"
        assert "password_hash" not in data

    async def test_my_hierarchy(self, client: AsyncClient, org: Org, director: User):
        response = await client.get(
            "/api/v1/users/me/hierarchy",
            headers=auth_header(token_for(director)),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["hierarchy_level"] == 2
        assert data["is_global"] is False
        assert data["provinces"] == [str(org.province1.id)]
        assert data["schools"] == []
        assert data["grantable_node_kinds"] == ["district", "school", "class"]

    async def test_admin_hierarchy_is_global(self, client: AsyncClient, admin_token: str):
        response = await client.get(
            "/api/v1/users/me/hierarchy",
            headers=auth_header(admin_token),
        )

        assert response.status_code == 200
        assert response.json()["is_global"] is True


class TestListUsers:
    """Tests for listing users."""

    async def test_director_sees_province_staff(
        self,
        client: AsyncClient,
        admin_user: User,
        director: User,
        coordinator: User,
        teacher: User,
        intern: User,
    ):
        response = await client.get(
            "/api/v1/users",
            headers=auth_header(token_for(director)),
        )

        assert response.status_code == 200
        ids = {item["id"] for item in response.json()["items"]}
        assert ids == {str(u.id) for u in [director, coordinator, teacher, intern]}

    async def test_teacher_sees_only_self(
        self, client: AsyncClient, admin_user: User, coordinator: User, teacher: User
    ):
        response = await client.get(
            "/api/v1/users",
            headers=auth_header(token_for(teacher)),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == str(teacher.id)

    async def test_filter_by_role(
        self, client: AsyncClient, admin_token: str, coordinator: User, teacher: User
    ):
        response = await client.get(
            "/api/v1/users",
            headers=auth_header(admin_token),
            params={"role": "teacher"},
        )

        assert response.status_code == 200
        assert response.json()["total"] == 1


class TestCreateUser:
    """Tests for creating users."""

    async def test_director_creates_lower_role_in_scope(
        self, client: AsyncClient, db: AsyncSession, org: Org, director: User
    ):
        response = await client.post(
            "/api/v1/users",
            headers=auth_header(token_for(director)),
            json={
                "phone_number": "+855 12 000 111",
                "password": "secret123",
                "first_name": "New",
                "last_name": "Coordinator",
                "role": "coordinator",
                "school_id": str(org.school7.id),
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["phone_number"] == "+85512000111"
        assert data["role"] == "coordinator"

        result = await db.execute(
            select(AuditEntry).where(AuditEntry.action == "CREATE", AuditEntry.table_name == "users")
        )
        entry = result.scalar_one()
        assert entry.actor_id == director.id
        assert "password_hash" not in entry.new_data

    async def test_director_cannot_create_peer(
        self, client: AsyncClient, org: Org, director: User
    ):
        """Test roles at the director's own level cannot be handed out."""
        response = await client.post(
            "/api/v1/users",
            headers=auth_header(token_for(director)),
            json={
                "phone_number": "+85512000222",
                "password": "secret123",
                "first_name": "Peer",
                "last_name": "Partner",
                "role": "partner",
                "school_id": str(org.school7.id),
            },
        )

        assert response.status_code == 403

    async def test_director_cannot_create_outside_scope(
        self, client: AsyncClient, org: Org, director: User
    ):
        response = await client.post(
            "/api/v1/users",
            headers=auth_header(token_for(director)),
            json={
                "phone_number": "+85512000333",
                "password": "secret123",
                "first_name": "Far",
                "last_name": "Away",
                "role": "teacher",
                "school_id": str(org.school9.id),
            },
        )

        assert response.status_code == 403

    async def test_teacher_cannot_create(self, client: AsyncClient, teacher: User):
        response = await client.post(
            "/api/v1/users",
            headers=auth_header(token_for(teacher)),
            json={
                "phone_number": "+85512000444",
                "password": "secret123",
                "first_name": "A",
                "last_name": "B",
            },
        )

        assert response.status_code == 403

    async def test_duplicate_phone(
        self, client: AsyncClient, admin_token: str, teacher: User
    ):
        response = await client.post(
            "/api/v1/users",
            headers=auth_header(admin_token),
            json={
                "phone_number": teacher.phone_number,
                "password": "secret123",
                "first_name": "Dup",
                "last_name": "Phone",
            },
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Phone number already registered"


class TestUpdateUser:
    """Tests for updating users."""

    async def test_user_edits_own_profile(self, client: AsyncClient, teacher: User):
        response = await client.patch(
            f"/api/v1/users/{teacher.id}",
            headers=auth_header(token_for(teacher)),
            json={"first_name": "Renamed"},
        )

        assert response.status_code == 200
        assert response.json()["first_name"] == "Renamed"

    async def test_user_cannot_change_own_role(self, client: AsyncClient, teacher: User):
        response = await client.patch(
            f"/api/v1/users/{teacher.id}",
            headers=auth_header(token_for(teacher)),
            json={"role": "admin"},
        )

        assert response.status_code == 403

    async def test_director_cannot_promote_to_admin(
        self, client: AsyncClient, director: User, teacher: User
    ):
        response = await client.patch(
            f"/api/v1/users/{teacher.id}",
            headers=auth_header(token_for(director)),
            json={"role": "admin"},
        )

        assert response.status_code == 403

    async def test_director_updates_staff(
        self, client: AsyncClient, director: User, teacher: User
    ):
        response = await client.patch(
            f"/api/v1/users/{teacher.id}",
            headers=auth_header(token_for(director)),
            json={"role": "coordinator"},
        )

        assert response.status_code == 200
        assert response.json()["role"] == "coordinator"

    async def test_own_account_grant_does_not_reach_others(
        self, client: AsyncClient, db: AsyncSession, director: User, teacher: User
    ):
        headers = auth_header(token_for(teacher))

        response = await client.get(f"/api/v1/users/{director.id}", headers=headers)
        assert response.status_code == 403

        response = await client.patch(
            f"/api/v1/users/{director.id}",
            headers=headers,
            json={"role": "intern", "first_name": "Changed"},
        )
        assert response.status_code == 403

        response = await client.get(
            f"/api/v1/users/{director.id}/assignments", headers=headers
        )
        assert response.status_code == 403

        result = await db.execute(
            select(User).where(User.id == director.id).execution_options(populate_existing=True)
        )
        unchanged = result.scalar_one()
        assert unchanged.role == "director"
        assert unchanged.first_name == "Director"

    async def test_director_cannot_change_peer_role(
        self, client: AsyncClient, db: AsyncSession, org: Org, director: User
    ):
        peer = await make_user(
            db, Role.DIRECTOR, "+85510000012", "Peer", school_id=org.school7.id
        )
        headers = auth_header(token_for(director))

        response = await client.patch(
            f"/api/v1/users/{peer.id}",
            headers=headers,
            json={"role": "intern"},
        )
        assert response.status_code == 403

        # the peer is inside the province, so plain profile edits still go through
        response = await client.patch(
            f"/api/v1/users/{peer.id}",
            headers=headers,
            json={"last_name": "Renamed"},
        )
        assert response.status_code == 200
        assert response.json()["role"] == "director"


class TestDeleteUser:
    """Tests for deleting users."""

    async def test_cannot_delete_self(self, client: AsyncClient, admin_user: User, admin_token: str):
        response = await client.delete(
            f"/api/v1/users/{admin_user.id}",
            headers=auth_header(admin_token),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot delete yourself"

    async def test_director_cannot_delete(
        self, client: AsyncClient, director: User, teacher: User
    ):
        response = await client.delete(
            f"/api/v1/users/{teacher.id}",
            headers=auth_header(token_for(director)),
        )

        assert response.status_code == 403

    async def test_deleted_user_loses_access(
        self, client: AsyncClient, admin_token: str, teacher: User
    ):
        token = token_for(teacher)

        response = await client.delete(
            f"/api/v1/users/{teacher.id}",
            headers=auth_header(admin_token),
        )
        assert response.status_code == 204

        response = await client.get("/api/v1/users/me", headers=auth_header(token))
        assert response.status_code == 401

    async def test_not_found(self, client: AsyncClient, admin_token: str):
        response = await client.delete(
            f"/api/v1/users/{uuid4()}",
            headers=auth_header(admin_token),
        )

        assert response.status_code == 404


class TestAssignments:
    """Tests for hierarchy assignment endpoints."""

    async def test_director_assigns_and_revokes(
        self, client: AsyncClient, org: Org, director: User, intern: User
    ):
        headers = auth_header(token_for(director))

        response = await client.post(
            f"/api/v1/users/{intern.id}/assignments",
            headers=headers,
            json={"node_kind": "school", "node_id": str(org.school7.id)},
        )
        assert response.status_code == 201
        assignment = response.json()
        assert assignment["assigned_by"] == str(director.id)
        assert assignment["is_active"] is True

        response = await client.get(f"/api/v1/users/{intern.id}/assignments", headers=headers)
        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [assignment["id"]]

        response = await client.delete(
            f"/api/v1/users/{intern.id}/assignments/{assignment['id']}",
            headers=headers,
        )
        assert response.status_code == 204

        response = await client.get(
            f"/api/v1/users/{intern.id}/assignments",
            headers=headers,
            params={"include_inactive": True},
        )
        [revoked] = response.json()
        assert revoked["is_active"] is False

    async def test_director_cannot_assign_zone(
        self, client: AsyncClient, org: Org, director: User, intern: User
    ):
        response = await client.post(
            f"/api/v1/users/{intern.id}/assignments",
            headers=auth_header(token_for(director)),
            json={"node_kind": "zone", "node_id": str(org.zone1.id)},
        )

        assert response.status_code == 403

    async def test_revoke_with_wrong_user(
        self, client: AsyncClient, admin_token: str, coordinator: User, teacher: User
    ):
        headers = auth_header(admin_token)
        response = await client.get(f"/api/v1/users/{coordinator.id}/assignments", headers=headers)
        [assignment] = response.json()

        response = await client.delete(
            f"/api/v1/users/{teacher.id}/assignments/{assignment['id']}",
            headers=headers,
        )

        assert response.status_code == 404
