"""School class service."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.permissions import DataType
from app.models.school_class import SchoolClass
from app.schemas.school_class import SchoolClassCreate, SchoolClassUpdate
from app.services import audit as audit_service
from app.services import records
from app.services.audit import AuditContext
from app.services.scope_filter import ScopeFilter


async def get_class_by_id(db: AsyncSession, class_id: UUID) -> SchoolClass | None:
    """Get class by ID."""
    return await records.get_active(db, SchoolClass, class_id)


async def get_classes(
    db: AsyncSession,
    scope_filter: ScopeFilter,
    *,
    school_id: UUID | None = None,
    grade: int | None = None,
    is_active: bool | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[SchoolClass], int]:
    """Get list of classes visible through ``scope_filter``."""
    query = select(SchoolClass).where(SchoolClass.is_deleted.is_(False))

    if school_id is not None:
        query = query.where(SchoolClass.school_id == school_id)
    if grade is not None:
        query = query.where(SchoolClass.grade == grade)
    if is_active is not None:
        query = query.where(SchoolClass.is_active == is_active)

    return await records.paginate(
        db,
        query,
        scope_filter,
        order_by=[SchoolClass.grade, SchoolClass.section],
        skip=skip,
        limit=limit,
    )


async def create_class(
    db: AsyncSession,
    ctx: AuditContext,
    class_data: SchoolClassCreate,
) -> SchoolClass:
    """Create a new class."""
    school_class = SchoolClass(**class_data.model_dump())
    return await records.create_scoped(
        db, ctx, DataType.CLASSES, school_class, f"Created class {school_class.name}"
    )


async def update_class(
    db: AsyncSession,
    ctx: AuditContext,
    school_class: SchoolClass,
    class_data: SchoolClassUpdate,
) -> SchoolClass:
    """Update a class."""
    return await records.update_scoped(
        db,
        ctx,
        DataType.CLASSES,
        school_class,
        class_data.model_dump(exclude_unset=True),
        f"Updated class {school_class.name}",
    )


async def delete_class(
    db: AsyncSession,
    ctx: AuditContext,
    school_class: SchoolClass,
    *,
    reason: str | None = None,
    clock: Clock = system_clock,
) -> bool:
    """Soft-delete a class. Its students stay enrolled and keep their class_id."""
    return await audit_service.soft_delete(
        db, ctx, SchoolClass.__tablename__, school_class.id, reason, clock=clock
    )
