"""Student service."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.permissions import DataType
from app.models.student import Student
from app.schemas.student import StudentCreate, StudentUpdate
from app.services import audit as audit_service
from app.services import records
from app.services.audit import AuditContext
from app.services.scope_filter import ScopeFilter


async def get_student_by_id(db: AsyncSession, student_id: UUID) -> Student | None:
    """Get student by ID."""
    return await records.get_active(db, Student, student_id)


async def get_students(
    db: AsyncSession,
    scope_filter: ScopeFilter,
    *,
    school_id: UUID | None = None,
    class_id: UUID | None = None,
    is_active: bool | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Student], int]:
    """Get list of students visible through ``scope_filter``."""
    query = select(Student).where(Student.is_deleted.is_(False))

    # Apply filters
    if school_id is not None:
        query = query.where(Student.school_id == school_id)
    if class_id is not None:
        query = query.where(Student.class_id == class_id)
    if is_active is not None:
        query = query.where(Student.is_active == is_active)
    if search:
        query = query.where(
            Student.first_name.ilike(f"%{search}%")
            | Student.last_name.ilike(f"%{search}%")
            | Student.guardian_phone.ilike(f"%{search}%")
        )

    return await records.paginate(
        db, query, scope_filter, order_by=[Student.created_at.desc()], skip=skip, limit=limit
    )


async def create_student(
    db: AsyncSession,
    ctx: AuditContext,
    student_data: StudentCreate,
    *,
    clock: Clock = system_clock,
) -> Student:
    """Create a new student. Enrollment defaults to today."""
    data = student_data.model_dump()
    if data["enrolled_at"] is None:
        data["enrolled_at"] = clock.now().date()
    student = Student(**data)
    return await records.create_scoped(
        db, ctx, DataType.STUDENTS, student, f"Enrolled student {student.full_name}"
    )


async def update_student(
    db: AsyncSession,
    ctx: AuditContext,
    student: Student,
    student_data: StudentUpdate,
) -> Student:
    """Update a student."""
    return await records.update_scoped(
        db,
        ctx,
        DataType.STUDENTS,
        student,
        student_data.model_dump(exclude_unset=True),
        f"Updated student {student.full_name}",
    )


async def delete_student(
    db: AsyncSession,
    ctx: AuditContext,
    student: Student,
    *,
    reason: str | None = None,
    clock: Clock = system_clock,
) -> bool:
    """Soft-delete a student."""
    return await audit_service.soft_delete(
        db, ctx, Student.__tablename__, student.id, reason, clock=clock
    )
