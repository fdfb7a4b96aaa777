"""Test configuration and fixtures."""

import os
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.clock import Clock, get_clock
from app.core.database import Base, get_db
from app.core.permissions import NodeKind, Role
from app.core.security import create_access_token, get_password_hash
from app.models import (
    District,
    HierarchyAssignment,
    Province,
    School,
    SchoolClass,
    User,
    Zone,
)
from app.services import permission as permission_service
from app.services.audit import AuditContext
from main import app

# Throwaway SQLite file by default; point at PostgreSQL with TEST_DATABASE_URL
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test.db")

# Create test engine with NullPool to avoid connection issues
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
)
test_session_maker = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

PASSWORD = "password123"


class FixedClock(Clock):
    """Clock frozen at a given instant, movable by hand."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    """Override database dependency for tests."""
    async with test_session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def setup_database() -> AsyncGenerator[None, None]:
    """Create test database tables and default permissions before each test."""
    app.dependency_overrides[get_db] = override_get_db

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with test_session_maker() as session:
        await permission_service.seed_defaults(session)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_clock, None)


@pytest_asyncio.fixture
async def db(setup_database: None) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for tests."""
    async with test_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(setup_database: None) -> AsyncGenerator[AsyncClient, None]:
    """Get async HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def clock() -> FixedClock:
    """A clock fixed at 2024-01-01 00:00 UTC, also used by the API."""
    fixed = FixedClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
    app.dependency_overrides[get_clock] = lambda: fixed
    return fixed


# ============== Organization ==============


@dataclass
class Org:
    """Two zones, each down to one school with one class.

    School #7 sits in zone/province/district 1, school #9 in 2.
    """

    zone1: Zone
    zone2: Zone
    province1: Province
    province2: Province
    district1: District
    district2: District
    school7: School
    school9: School
    class7a: SchoolClass
    class9a: SchoolClass


@pytest_asyncio.fixture
async def org(db: AsyncSession) -> Org:
    zone1, zone2 = Zone(name="Zone 1"), Zone(name="Zone 2")
    db.add_all([zone1, zone2])
    await db.flush()

    province1 = Province(zone_id=zone1.id, name="Province 1")
    province2 = Province(zone_id=zone2.id, name="Province 2")
    db.add_all([province1, province2])
    await db.flush()

    district1 = District(province_id=province1.id, name="District 1")
    district2 = District(province_id=province2.id, name="District 2")
    db.add_all([district1, district2])
    await db.flush()

    school7 = School(
        name="School 7",
        code="S7",
        zone_id=zone1.id,
        province_id=province1.id,
        district_id=district1.id,
    )
    school9 = School(
        name="School 9",
        code="S9",
        zone_id=zone2.id,
        province_id=province2.id,
        district_id=district2.id,
    )
    db.add_all([school7, school9])
    await db.flush()

    class7a = SchoolClass(school_id=school7.id, grade=1, section="A")
    class9a = SchoolClass(school_id=school9.id, grade=1, section="A")
    db.add_all([class7a, class9a])
    await db.commit()

    return Org(
        zone1=zone1,
        zone2=zone2,
        province1=province1,
        province2=province2,
        district1=district1,
        district2=district2,
        school7=school7,
        school9=school9,
        class7a=class7a,
        class9a=class9a,
    )


# ============== Users ==============


async def make_user(
    db: AsyncSession,
    role: Role | str,
    phone_number: str,
    first_name: str,
    *,
    school_id: UUID | None = None,
) -> User:
    user = User(
        phone_number=phone_number,
        password_hash=get_password_hash(PASSWORD),
        first_name=first_name,
        last_name="User",
        role=role.value if isinstance(role, Role) else role,
        school_id=school_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def assign(
    db: AsyncSession,
    user: User,
    kind: NodeKind,
    node_id: UUID,
    *,
    is_active: bool = True,
) -> HierarchyAssignment:
    assignment = HierarchyAssignment(
        user_id=user.id,
        node_kind=kind.value,
        node_id=node_id,
        is_active=is_active,
    )
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)
    return assignment


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    """Create an administrator for tests."""
    return await make_user(db, Role.ADMIN, "+85510000001", "Admin")


@pytest_asyncio.fixture
async def director(db: AsyncSession, org: Org) -> User:
    """Director of province 1."""
    user = await make_user(db, Role.DIRECTOR, "+85510000002", "Director")
    await assign(db, user, NodeKind.PROVINCE, org.province1.id)
    return user


@pytest_asyncio.fixture
async def coordinator(db: AsyncSession, org: Org) -> User:
    """Coordinator of school #7."""
    user = await make_user(db, Role.COORDINATOR, "+85510000003", "Coordinator", school_id=org.school7.id)
    await assign(db, user, NodeKind.SCHOOL, org.school7.id)
    return user


@pytest_asyncio.fixture
async def teacher(db: AsyncSession, org: Org) -> User:
    """Teacher of class 7A."""
    user = await make_user(db, Role.TEACHER, "+85510000004", "Teacher", school_id=org.school7.id)
    await assign(db, user, NodeKind.CLASS, org.class7a.id)
    return user


@pytest_asyncio.fixture
async def intern(db: AsyncSession, org: Org) -> User:
    """Intern without any assignment."""
    return await make_user(db, Role.INTERN, "+85510000005", "Intern", school_id=org.school7.id)


def token_for(user: User) -> str:
    """Access token for a user, bypassing the login endpoint."""
    return create_access_token(data={"sub": str(user.id)})


@pytest_asyncio.fixture
async def admin_token(client: AsyncClient, admin_user: User) -> str:
    """Get auth token for the administrator through the login endpoint."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"phone_number": admin_user.phone_number, "password": PASSWORD},
    )
    return response.json()["access_token"]


def ctx_for(user: User) -> AuditContext:
    """Audit context as the API would build it for ``user``."""
    return AuditContext(
        actor_id=user.id,
        actor_username=user.username,
        actor_role=user.role,
        ip_address="127.0.0.1",
        user_agent="pytest",
    )


def auth_header(token: str) -> dict[str, str]:
    """Create authorization header."""
    return {"Authorization": f"Bearer {token}"}
