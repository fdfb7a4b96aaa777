"""Tests for students API."""

from uuid import uuid4

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditEntry
from app.models.student import Student
from app.models.user import User
from tests.conftest import FixedClock, Org, auth_header, token_for


async def seed_students(db: AsyncSession, org: Org) -> dict[str, Student]:
    students = {
        "7a": Student(school_id=org.school7.id, class_id=org.class7a.id, first_name="Dara", last_name="Sok"),
        "7": Student(school_id=org.school7.id, first_name="Bopha", last_name="Chea"),
        "9a": Student(school_id=org.school9.id, class_id=org.class9a.id, first_name="Vicheka", last_name="Lim"),
    }
    db.add_all(students.values())
    await db.commit()
    return students


class TestListStudents:
    """Tests for listing students."""

    async def test_coordinator_sees_own_school(
        self, client: AsyncClient, db: AsyncSession, org: Org, coordinator: User
    ):
        """Test coordinator of school #7 sees none of school #9."""
        await seed_students(db, org)

        response = await client.get(
            "/api/v1/students",
            headers=auth_header(token_for(coordinator)),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {item["school_id"] for item in data["items"]} == {str(org.school7.id)}

    async def test_teacher_sees_own_class(
        self, client: AsyncClient, db: AsyncSession, org: Org, teacher: User
    ):
        """Test teacher only sees students of the assigned class."""
        students = await seed_students(db, org)

        response = await client.get(
            "/api/v1/students",
            headers=auth_header(token_for(teacher)),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == str(students["7a"].id)

    async def test_intern_is_refused(self, client: AsyncClient, intern: User):
        """Test roles without a students row cannot list."""
        response = await client.get(
            "/api/v1/students",
            headers=auth_header(token_for(intern)),
        )

        assert response.status_code == 403

    async def test_listing_is_audited(
        self, client: AsyncClient, db: AsyncSession, org: Org, coordinator: User
    ):
        """Test listing writes a READ entry."""
        await seed_students(db, org)

        await client.get(
            "/api/v1/students",
            headers=auth_header(token_for(coordinator)),
        )

        result = await db.execute(select(AuditEntry).where(AuditEntry.action == "READ"))
        entry = result.scalar_one()
        assert entry.actor_id == coordinator.id
        assert entry.table_name == "students"
        assert entry.changes_summary == "Listed 2 of 2 students"

    async def test_search(
        self, client: AsyncClient, db: AsyncSession, org: Org, admin_token: str
    ):
        """Test searching by name."""
        await seed_students(db, org)

        response = await client.get(
            "/api/v1/students",
            headers=auth_header(admin_token),
            params={"search": "Vich"},
        )

        assert response.status_code == 200
        assert response.json()["total"] == 1


class TestCreateStudent:
    """Tests for creating students."""

    async def test_teacher_creates_in_own_class(
        self, client: AsyncClient, org: Org, teacher: User, clock: FixedClock
    ):
        """Test enrollment date defaults to today."""
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(token_for(teacher)),
            json={
                "school_id": str(org.school7.id),
                "class_id": str(org.class7a.id),
                "first_name": "Sophea",
                "last_name": "Keo",
                "guardian_phone": "+855 12 345 678",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["enrolled_at"] == "2024-01-01"
        assert data["guardian_phone"] == "+85512345678"

    async def test_teacher_cannot_create_in_other_class(
        self, client: AsyncClient, db: AsyncSession, org: Org, teacher: User
    ):
        """Test a student placed outside the teacher's class is rolled back."""
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(token_for(teacher)),
            json={
                "school_id": str(org.school9.id),
                "class_id": str(org.class9a.id),
                "first_name": "Outside",
                "last_name": "Scope",
            },
        )

        assert response.status_code == 403
        result = await db.execute(select(Student).where(Student.first_name == "Outside"))
        assert result.scalar_one_or_none() is None

    async def test_director_cannot_create(
        self, client: AsyncClient, org: Org, director: User
    ):
        """Test directors may manage but not enroll students."""
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(token_for(director)),
            json={"school_id": str(org.school7.id), "first_name": "A", "last_name": "B"},
        )

        assert response.status_code == 403


class TestGetStudent:
    """Tests for getting a single student."""

    async def test_get_inside_and_outside_scope(
        self, client: AsyncClient, db: AsyncSession, org: Org, coordinator: User
    ):
        """Test coordinator can read school #7 students only."""
        students = await seed_students(db, org)
        headers = auth_header(token_for(coordinator))

        response = await client.get(f"/api/v1/students/{students['7'].id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["first_name"] == "Bopha"

        response = await client.get(f"/api/v1/students/{students['9a'].id}", headers=headers)
        assert response.status_code == 403

    async def test_not_found(self, client: AsyncClient, admin_token: str):
        """Test getting non-existent student."""
        response = await client.get(
            f"/api/v1/students/{uuid4()}",
            headers=auth_header(admin_token),
        )

        assert response.status_code == 404


class TestUpdateStudent:
    """Tests for updating students."""

    async def test_update_is_audited(
        self, client: AsyncClient, db: AsyncSession, org: Org, teacher: User
    ):
        """Test update stores before and after snapshots."""
        students = await seed_students(db, org)
        student_id = students["7a"].id

        response = await client.patch(
            f"/api/v1/students/{student_id}",
            headers=auth_header(token_for(teacher)),
            json={"last_name": "Sokha"},
        )

        assert response.status_code == 200
        assert response.json()["last_name"] == "Sokha"

        result = await db.execute(
            select(AuditEntry).where(
                AuditEntry.action == "UPDATE", AuditEntry.record_id == str(student_id)
            )
        )
        entry = result.scalar_one()
        assert entry.old_data["last_name"] == "Sok"
        assert entry.new_data["last_name"] == "Sokha"

    async def test_teacher_cannot_move_student_out(
        self, client: AsyncClient, db: AsyncSession, org: Org, teacher: User
    ):
        """Test moving a student to a class the teacher does not hold is refused."""
        students = await seed_students(db, org)

        response = await client.patch(
            f"/api/v1/students/{students['7a'].id}",
            headers=auth_header(token_for(teacher)),
            json={"class_id": str(org.class9a.id)},
        )

        assert response.status_code == 403


class TestDeleteAndRestore:
    """Soft delete through the API, then restore."""

    async def test_coordinator_cannot_delete(
        self, client: AsyncClient, db: AsyncSession, org: Org, coordinator: User
    ):
        students = await seed_students(db, org)

        response = await client.delete(
            f"/api/v1/students/{students['7'].id}",
            headers=auth_header(token_for(coordinator)),
        )

        assert response.status_code == 403

    async def test_delete_then_restore(
        self,
        client: AsyncClient,
        db: AsyncSession,
        org: Org,
        admin_token: str,
        clock: FixedClock,
    ):
        students = await seed_students(db, org)
        student_id = students["7"].id
        headers = auth_header(admin_token)

        response = await client.delete(
            f"/api/v1/students/{student_id}",
            headers=headers,
            params={"reason": "Left the school"},
        )
        assert response.status_code == 204

        response = await client.get(f"/api/v1/students/{student_id}", headers=headers)
        assert response.status_code == 404

        response = await client.get(
            "/api/v1/deleted-records",
            headers=headers,
            params={"table_name": "students"},
        )
        assert response.status_code == 200
        [item] = response.json()["items"]
        assert item["record_id"] == str(student_id)
        assert item["delete_reason"] == "Left the school"
        assert item["retention_period_days"] == 60
        assert item["is_still_restorable"] is True
        assert item["state"] == "restorable"

        clock.advance(days=5)
        response = await client.post(
            f"/api/v1/deleted-records/{item['id']}/restore",
            headers=headers,
            json={"reason": "Came back"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["record_id"] == str(student_id)
        assert data["restored_data"]["is_deleted"] is False

        response = await client.get(f"/api/v1/students/{student_id}", headers=headers)
        assert response.status_code == 200
