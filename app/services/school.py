"""School service."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.exceptions import CascadeConflict
from app.core.permissions import DataType
from app.models import Observation, School, SchoolClass, Student
from app.schemas.school import SchoolCreate, SchoolUpdate
from app.services import audit as audit_service
from app.services import records
from app.services.audit import AuditContext
from app.services.scope_filter import ScopeFilter


async def get_school_by_id(db: AsyncSession, school_id: UUID) -> School | None:
    """Get school by ID."""
    return await records.get_active(db, School, school_id)


async def get_schools(
    db: AsyncSession,
    scope_filter: ScopeFilter,
    *,
    zone_id: UUID | None = None,
    province_id: UUID | None = None,
    district_id: UUID | None = None,
    is_active: bool | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[School], int]:
    """Get list of schools visible through ``scope_filter``."""
    query = select(School).where(School.is_deleted.is_(False))

    # Apply filters
    if zone_id is not None:
        query = query.where(School.zone_id == zone_id)
    if province_id is not None:
        query = query.where(School.province_id == province_id)
    if district_id is not None:
        query = query.where(School.district_id == district_id)
    if is_active is not None:
        query = query.where(School.is_active == is_active)
    if search:
        query = query.where(
            School.name.ilike(f"%{search}%") | School.code.ilike(f"%{search}%")
        )

    return await records.paginate(
        db, query, scope_filter, order_by=[School.created_at.desc()], skip=skip, limit=limit
    )


async def create_school(db: AsyncSession, ctx: AuditContext, school_data: SchoolCreate) -> School:
    """Create a new school."""
    school = School(**school_data.model_dump())
    return await records.create_scoped(
        db, ctx, DataType.SCHOOLS, school, f"Created school {school.name}"
    )


async def update_school(
    db: AsyncSession,
    ctx: AuditContext,
    school: School,
    school_data: SchoolUpdate,
) -> School:
    """Update a school."""
    return await records.update_scoped(
        db,
        ctx,
        DataType.SCHOOLS,
        school,
        school_data.model_dump(exclude_unset=True),
        f"Updated school {school.name}",
    )


async def _dependents(db: AsyncSession, school_id: UUID) -> list[tuple[str, UUID]]:
    targets: list[tuple[str, UUID]] = []
    for model in (SchoolClass, Student, Observation):
        result = await db.execute(
            select(model.id).where(model.school_id == school_id, model.is_deleted.is_(False))
        )
        targets.extend((model.__tablename__, rid) for rid in result.scalars().all())
    return targets


async def delete_school(
    db: AsyncSession,
    ctx: AuditContext,
    school: School,
    *,
    reason: str | None = None,
    force: bool = False,
    clock: Clock = system_clock,
) -> int:
    """Soft-delete a school, and with ``force`` its classes, students and observations.

    Returns the number of records deleted.
    """
    dependents = await _dependents(db, school.id)
    if dependents and not force:
        raise CascadeConflict(len(dependents))
    return await audit_service.soft_delete_many(
        db, ctx, [(School.__tablename__, school.id), *dependents], reason, clock=clock
    )


async def get_school_by_code(db: AsyncSession, code: str) -> School | None:
    """Get school by code, including deleted ones (codes stay reserved)."""
    result = await db.execute(select(School).where(School.code == code))
    return result.scalar_one_or_none()
