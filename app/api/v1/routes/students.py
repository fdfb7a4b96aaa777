"""Student routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.deps import Audit, CurrentUser, DbSession, SystemClock, require_access
from app.core.exceptions import NotFound
from app.core.permissions import Action, DataType
from app.schemas.student import (
    StudentCreate,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
)
from app.services import access as access_service
from app.services import audit as audit_service
from app.services import scope_filter as scope_filter_service
from app.services import student as student_service

router = APIRouter(prefix="/students", tags=["Students"])


async def _get_student_or_404(db, student_id: UUID):
    student = await student_service.get_student_by_id(db, student_id)
    if not student:
        raise NotFound("Student not found")
    return student


# ============== Endpoints ==============


@router.get(
    "",
    response_model=StudentListResponse,
    dependencies=[Depends(require_access(DataType.STUDENTS, Action.VIEW))],
)
async def list_students(
    db: DbSession,
    current_user: CurrentUser,
    ctx: Audit,
    school_id: UUID | None = Query(None, description="Filter by school"),
    class_id: UUID | None = Query(None, description="Filter by class"),
    is_active: bool | None = Query(None, description="Filter by active status"),
    search: str | None = Query(None, description="Search by name or guardian phone"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> StudentListResponse:
    """
    List students inside the current user's scope.

    - Teachers see the students of their classes
    - Coordinators see the students of their schools
    - Directors see the students of their zones, provinces and districts
    """
    scope_filter = await scope_filter_service.build_filter(db, current_user.id, DataType.STUDENTS)
    students, total = await student_service.get_students(
        db,
        scope_filter,
        school_id=school_id,
        class_id=class_id,
        is_active=is_active,
        search=search,
        skip=skip,
        limit=limit,
    )
    response = StudentListResponse(
        items=[StudentResponse.model_validate(s) for s in students],
        total=total,
        skip=skip,
        limit=limit,
    )
    await audit_service.log_read(db, ctx, "students", f"Listed {len(students)} of {total} students")
    return response


@router.post(
    "",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_access(DataType.STUDENTS, Action.CREATE))],
)
async def create_student(
    student_data: StudentCreate,
    db: DbSession,
    ctx: Audit,
    clock: SystemClock,
) -> StudentResponse:
    """Enroll a student in a school (and optionally a class) inside the user's scope."""
    student = await student_service.create_student(db, ctx, student_data, clock=clock)
    return StudentResponse.model_validate(student)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
    ctx: Audit,
) -> StudentResponse:
    """Get a specific student by ID."""
    student = await _get_student_or_404(db, student_id)
    await access_service.ensure_record_access(
        db, current_user.id, DataType.STUDENTS, Action.VIEW, student_id
    )
    response = StudentResponse.model_validate(student)
    await audit_service.log_read(
        db, ctx, "students", f"Viewed student {student.full_name}", student_id
    )
    return response


@router.patch("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: UUID,
    student_data: StudentUpdate,
    db: DbSession,
    ctx: Audit,
) -> StudentResponse:
    """Update a student."""
    student = await _get_student_or_404(db, student_id)
    await access_service.ensure_record_access(
        db, ctx.actor_id, DataType.STUDENTS, Action.UPDATE, student_id
    )
    updated = await student_service.update_student(db, ctx, student, student_data)
    return StudentResponse.model_validate(updated)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(
    student_id: UUID,
    db: DbSession,
    ctx: Audit,
    clock: SystemClock,
    reason: str | None = Query(None, max_length=1000, description="Why the student is removed"),
) -> None:
    """Soft-delete a student. Restorable from deleted records until the retention period ends."""
    student = await _get_student_or_404(db, student_id)
    await access_service.ensure_record_access(
        db, ctx.actor_id, DataType.STUDENTS, Action.DELETE, student_id
    )
    await student_service.delete_student(db, ctx, student, reason=reason, clock=clock)
