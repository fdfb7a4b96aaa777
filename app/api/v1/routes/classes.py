"""School class routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select

from app.core.deps import Audit, CurrentUser, DbSession, SystemClock, require_access
from app.core.exceptions import NotFound
from app.core.permissions import Action, DataType
from app.models.school_class import SchoolClass
from app.schemas.school_class import (
    SchoolClassCreate,
    SchoolClassListResponse,
    SchoolClassResponse,
    SchoolClassUpdate,
)
from app.services import access as access_service
from app.services import audit as audit_service
from app.services import school_class as class_service
from app.services import scope_filter as scope_filter_service

router = APIRouter(prefix="/classes", tags=["Classes"])


async def _get_class_or_404(db, class_id: UUID) -> SchoolClass:
    school_class = await class_service.get_class_by_id(db, class_id)
    if not school_class:
        raise NotFound("Class not found")
    return school_class


# ============== Endpoints ==============


@router.get(
    "",
    response_model=SchoolClassListResponse,
    dependencies=[Depends(require_access(DataType.CLASSES, Action.VIEW))],
)
async def list_classes(
    db: DbSession,
    current_user: CurrentUser,
    ctx: Audit,
    school_id: UUID | None = Query(None, description="Filter by school"),
    grade: int | None = Query(None, ge=1, le=12, description="Filter by grade"),
    is_active: bool | None = Query(None, description="Filter by active status"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> SchoolClassListResponse:
    """List classes inside the current user's scope."""
    scope_filter = await scope_filter_service.build_filter(db, current_user.id, DataType.CLASSES)
    classes, total = await class_service.get_classes(
        db,
        scope_filter,
        school_id=school_id,
        grade=grade,
        is_active=is_active,
        skip=skip,
        limit=limit,
    )
    response = SchoolClassListResponse(
        items=[SchoolClassResponse.model_validate(c) for c in classes],
        total=total,
        skip=skip,
        limit=limit,
    )
    await audit_service.log_read(db, ctx, "classes", f"Listed {len(classes)} of {total} classes")
    return response


@router.post(
    "",
    response_model=SchoolClassResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_access(DataType.CLASSES, Action.CREATE))],
)
async def create_class(
    class_data: SchoolClassCreate,
    db: DbSession,
    ctx: Audit,
) -> SchoolClassResponse:
    """Create a new class."""
    # Check for duplicate grade+section in same school
    result = await db.execute(
        select(SchoolClass).where(
            SchoolClass.school_id == class_data.school_id,
            SchoolClass.grade == class_data.grade,
            SchoolClass.section == class_data.section,
        )
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Class {class_data.grade}{class_data.section} already exists in this school",
        )

    school_class = await class_service.create_class(db, ctx, class_data)
    return SchoolClassResponse.model_validate(school_class)


@router.get("/{class_id}", response_model=SchoolClassResponse)
async def get_class(
    class_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
) -> SchoolClassResponse:
    """Get a specific class by ID."""
    school_class = await _get_class_or_404(db, class_id)
    await access_service.ensure_record_access(
        db, current_user.id, DataType.CLASSES, Action.VIEW, class_id
    )
    return SchoolClassResponse.model_validate(school_class)


@router.patch("/{class_id}", response_model=SchoolClassResponse)
async def update_class(
    class_id: UUID,
    class_data: SchoolClassUpdate,
    db: DbSession,
    ctx: Audit,
) -> SchoolClassResponse:
    """Update a class."""
    school_class = await _get_class_or_404(db, class_id)
    await access_service.ensure_record_access(
        db, ctx.actor_id, DataType.CLASSES, Action.UPDATE, class_id
    )
    updated = await class_service.update_class(db, ctx, school_class, class_data)
    return SchoolClassResponse.model_validate(updated)


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_class(
    class_id: UUID,
    db: DbSession,
    ctx: Audit,
    clock: SystemClock,
    reason: str | None = Query(None, max_length=1000, description="Why the class is removed"),
) -> None:
    """Soft-delete a class."""
    school_class = await _get_class_or_404(db, class_id)
    await access_service.ensure_record_access(
        db, ctx.actor_id, DataType.CLASSES, Action.DELETE, class_id
    )
    await class_service.delete_class(db, ctx, school_class, reason=reason, clock=clock)
