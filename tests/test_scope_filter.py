"""Tests for the listing filter builder and its agreement with the access engine."""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Action, DataType, NodeKind, Role
from app.core.predicates import Always, And, InSet, Never, NodeColumn, Or, any_of
from app.core.scopes import get_scope
from app.models import (
    Observation,
    School,
    Student,
    TrainingParticipant,
    TrainingSession,
    User,
)
from app.services import access, scope_filter
from tests.conftest import Org, assign, make_user


async def visible_ids(db: AsyncSession, user: User, data_type: DataType) -> set:
    scope = get_scope(data_type)
    flt = await scope_filter.build_filter(db, user.id, data_type)
    result = await db.execute(flt.apply(select(scope.model.id)))
    return set(result.scalars().all())


async def allowed_ids(db: AsyncSession, user: User, data_type: DataType) -> set:
    scope = get_scope(data_type)
    result = await db.execute(select(scope.model.id))
    return {
        record_id
        for record_id in result.scalars().all()
        if await access.can_access_record(db, user.id, data_type, Action.VIEW, record_id)
    }


async def populate_students(db: AsyncSession, org: Org) -> None:
    orphan = School(name="Orphan School", district_id=org.district1.id)
    db.add(orphan)
    await db.flush()
    db.add_all(
        [
            Student(school_id=org.school7.id, class_id=org.class7a.id, first_name="A", last_name="7A"),
            Student(school_id=org.school7.id, first_name="B", last_name="7"),
            Student(school_id=org.school9.id, class_id=org.class9a.id, first_name="C", last_name="9A"),
            Student(school_id=org.school9.id, first_name="D", last_name="9"),
            Student(school_id=orphan.id, first_name="E", last_name="Orphan"),
        ]
    )
    await db.commit()


async def populate_everything(db: AsyncSession, org: Org, authors: list[User]) -> None:
    """Students, observations, sessions (one without a school) and participants."""
    await populate_students(db, org)

    for author in authors:
        db.add_all(
            [
                Observation(
                    school_id=org.school7.id,
                    class_id=org.class7a.id,
                    created_by=author.id,
                    visit_date=date(2024, 1, 15),
                    subject="math",
                ),
                Observation(
                    school_id=org.school9.id,
                    created_by=author.id,
                    visit_date=date(2024, 1, 16),
                    subject="language",
                ),
            ]
        )

    starts_at = datetime(2024, 2, 1, 9, tzinfo=timezone.utc)
    sessions = [
        TrainingSession(title="At 7", school_id=org.school7.id, starts_at=starts_at),
        TrainingSession(title="At 9", school_id=org.school9.id, starts_at=starts_at),
        TrainingSession(title="Online", school_id=None, starts_at=starts_at),
    ]
    db.add_all(sessions)
    await db.flush()
    for session in sessions:
        db.add(TrainingParticipant(session_id=session.id, full_name=f"Guest of {session.title}"))
    await db.commit()


class TestFilterMatchesDecision:
    """The filter returns exactly the rows the engine allows record by record."""

    @pytest.mark.parametrize("data_type", list(DataType))
    async def test_every_data_type(
        self,
        data_type: DataType,
        db: AsyncSession,
        org: Org,
        admin_user: User,
        director: User,
        coordinator: User,
        teacher: User,
        intern: User,
    ):
        collector = await make_user(db, Role.COLLECTOR, "+85510000020", "Collector")
        await assign(db, collector, NodeKind.SCHOOL, org.school9.id)
        await assign(db, intern, NodeKind.SCHOOL, org.school7.id)
        await populate_everything(db, org, [collector, coordinator, teacher])

        for user in [admin_user, director, coordinator, teacher, intern, collector]:
            visible = await visible_ids(db, user, data_type)
            allowed = await allowed_ids(db, user, data_type)
            assert visible == allowed, (data_type, user.role)

    async def test_participants_follow_session_school(
        self, db: AsyncSession, org: Org, director: User, coordinator: User
    ):
        await populate_everything(db, org, [coordinator])

        result = await db.execute(
            select(TrainingParticipant.full_name).where(
                TrainingParticipant.id.in_(
                    list(await visible_ids(db, coordinator, DataType.TRAINING_PARTICIPANTS))
                )
            )
        )
        assert result.scalars().all() == ["Guest of At 7"]
        assert len(await visible_ids(db, director, DataType.TRAINING_SESSIONS)) == 1

    async def test_expected_student_counts(
        self,
        db: AsyncSession,
        org: Org,
        admin_user: User,
        director: User,
        coordinator: User,
        teacher: User,
        intern: User,
    ):
        await populate_students(db, org)

        assert len(await visible_ids(db, admin_user, DataType.STUDENTS)) == 5
        assert len(await visible_ids(db, director, DataType.STUDENTS)) == 2
        assert len(await visible_ids(db, coordinator, DataType.STUDENTS)) == 2
        assert len(await visible_ids(db, teacher, DataType.STUDENTS)) == 1
        assert await visible_ids(db, intern, DataType.STUDENTS) == set()

    async def test_users_include_own_account(
        self,
        db: AsyncSession,
        org: Org,
        admin_user: User,
        director: User,
        coordinator: User,
        teacher: User,
        intern: User,
    ):
        for user in [director, coordinator, teacher, intern]:
            visible = await visible_ids(db, user, DataType.USERS)
            assert visible == await allowed_ids(db, user, DataType.USERS), user.role
            assert user.id in visible

        # director reaches everyone attached to a school in province 1
        assert await visible_ids(db, director, DataType.USERS) == {
            director.id,
            coordinator.id,
            teacher.id,
            intern.id,
        }
        assert await visible_ids(db, teacher, DataType.USERS) == {teacher.id}

    async def test_self_scope_covers_own_records_only(self, db: AsyncSession, org: Org):
        collector = await make_user(db, Role.COLLECTOR, "+85510000020", "Collector")
        other = await make_user(db, Role.COLLECTOR, "+85510000021", "Other")
        for author in [collector, other]:
            db.add(
                Observation(
                    school_id=org.school9.id,
                    created_by=author.id,
                    visit_date=date(2024, 1, 15),
                    subject="language",
                )
            )
        await db.commit()

        visible = await visible_ids(db, collector, DataType.OBSERVATIONS)
        allowed = await allowed_ids(db, collector, DataType.OBSERVATIONS)

        assert len(visible) == 1
        assert visible == allowed

    async def test_unknown_user_sees_nothing(self, db: AsyncSession, org: Org):
        flt = await scope_filter.build_filter(db, uuid4(), DataType.SCHOOLS)

        assert flt.matches_nothing
        result = await db.execute(flt.apply(select(School.id)))
        assert result.scalars().all() == []

    async def test_admin_filter_is_unrestricted(self, db: AsyncSession, admin_user: User):
        flt = await scope_filter.build_filter(db, admin_user.id, DataType.SCHOOLS)

        assert flt.matches_everything
        query = select(School.id)
        assert flt.apply(query) is query

    async def test_role_without_nodes_sees_nothing(self, db: AsyncSession, org: Org):
        # directors without an assignment hold the rows but no nodes
        user = await make_user(db, Role.DIRECTOR, "+85510000030", "Unassigned")

        flt = await scope_filter.build_filter(db, user.id, DataType.SCHOOLS)

        assert flt.matches_nothing


class TestPredicates:
    """Unit tests for the predicate tree."""

    def test_empty_set_matches_nothing(self):
        pred = InSet(NodeColumn(Student.school_id), frozenset())

        assert pred.evaluate(lambda column: uuid4()) is False
        assert str(pred.to_sql()) == "false"

    def test_in_set_evaluate(self):
        school_id = uuid4()
        pred = InSet(NodeColumn(Student.school_id), frozenset({school_id}))

        assert pred.evaluate(lambda column: school_id)
        assert not pred.evaluate(lambda column: uuid4())
        assert not pred.evaluate(lambda column: None)

    def test_any_of_collapses(self):
        single = InSet(NodeColumn(Student.school_id), frozenset({uuid4()}))

        assert isinstance(any_of([]), Never)
        assert isinstance(any_of([Never(), Never()]), Never)
        assert isinstance(any_of([single, Always()]), Always)
        assert any_of([Never(), single]) is single
        assert isinstance(any_of([single, single]), Or)

    def test_and_or_evaluate(self):
        assert And([]).evaluate(lambda column: None)
        assert not Or([]).evaluate(lambda column: None)
        assert Or([Never(), Always()]).evaluate(lambda column: None)
        assert not And([Always(), Never()]).evaluate(lambda column: None)

    def test_node_column_key(self):
        direct = NodeColumn(Student.school_id)
        via = NodeColumn(School.province_id, via=(Student.school_id,))

        assert direct.key == "students.school_id"
        assert via.key == "students.school_id>schools.province_id"

    def test_via_column_renders_subquery(self):
        pred = InSet(NodeColumn(School.province_id, via=(Student.school_id,)), frozenset({uuid4()}))

        sql = str(pred.to_sql())

        assert "students.school_id IN" in sql
        assert "schools.province_id IN" in sql
