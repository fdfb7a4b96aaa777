"""School routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.deps import Audit, CurrentUser, DbSession, SystemClock, require_access
from app.core.exceptions import NotFound
from app.core.permissions import Action, DataType
from app.schemas.school import (
    SchoolCreate,
    SchoolListResponse,
    SchoolResponse,
    SchoolUpdate,
)
from app.services import access as access_service
from app.services import audit as audit_service
from app.services import school as school_service
from app.services import scope_filter as scope_filter_service

router = APIRouter(prefix="/schools", tags=["Schools"])


async def _get_school_or_404(db, school_id: UUID):
    school = await school_service.get_school_by_id(db, school_id)
    if not school:
        raise NotFound("School not found")
    return school


# ============== Endpoints ==============


@router.get(
    "",
    response_model=SchoolListResponse,
    dependencies=[Depends(require_access(DataType.SCHOOLS, Action.VIEW))],
)
async def list_schools(
    db: DbSession,
    current_user: CurrentUser,
    ctx: Audit,
    zone_id: UUID | None = Query(None, description="Filter by zone"),
    province_id: UUID | None = Query(None, description="Filter by province"),
    district_id: UUID | None = Query(None, description="Filter by district"),
    is_active: bool | None = Query(None, description="Filter by active status"),
    search: str | None = Query(None, description="Search by name or code"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> SchoolListResponse:
    """List schools inside the current user's scope."""
    scope_filter = await scope_filter_service.build_filter(db, current_user.id, DataType.SCHOOLS)
    schools, total = await school_service.get_schools(
        db,
        scope_filter,
        zone_id=zone_id,
        province_id=province_id,
        district_id=district_id,
        is_active=is_active,
        search=search,
        skip=skip,
        limit=limit,
    )
    response = SchoolListResponse(
        items=[SchoolResponse.model_validate(s) for s in schools],
        total=total,
        skip=skip,
        limit=limit,
    )
    await audit_service.log_read(db, ctx, "schools", f"Listed {len(schools)} of {total} schools")
    return response


@router.post(
    "",
    response_model=SchoolResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_access(DataType.SCHOOLS, Action.CREATE))],
)
async def create_school(
    school_data: SchoolCreate,
    db: DbSession,
    ctx: Audit,
) -> SchoolResponse:
    """Create a new school inside the current user's scope."""
    if school_data.code and await school_service.get_school_by_code(db, school_data.code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="School code already exists",
        )
    school = await school_service.create_school(db, ctx, school_data)
    return SchoolResponse.model_validate(school)


@router.get("/{school_id}", response_model=SchoolResponse)
async def get_school(
    school_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
) -> SchoolResponse:
    """Get a specific school by ID."""
    school = await _get_school_or_404(db, school_id)
    await access_service.ensure_record_access(
        db, current_user.id, DataType.SCHOOLS, Action.VIEW, school_id
    )
    return SchoolResponse.model_validate(school)


@router.patch("/{school_id}", response_model=SchoolResponse)
async def update_school(
    school_id: UUID,
    school_data: SchoolUpdate,
    db: DbSession,
    ctx: Audit,
) -> SchoolResponse:
    """Update a school."""
    school = await _get_school_or_404(db, school_id)
    await access_service.ensure_record_access(
        db, ctx.actor_id, DataType.SCHOOLS, Action.UPDATE, school_id
    )
    updated_school = await school_service.update_school(db, ctx, school, school_data)
    return SchoolResponse.model_validate(updated_school)


@router.delete("/{school_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_school(
    school_id: UUID,
    db: DbSession,
    ctx: Audit,
    clock: SystemClock,
    reason: str | None = Query(None, max_length=1000, description="Why the school is removed"),
    force: bool = Query(False, description="Also delete classes, students and observations"),
) -> None:
    """
    Soft-delete a school.

    - Fails with 409 while active classes, students or observations exist,
      unless force=true
    """
    school = await _get_school_or_404(db, school_id)
    await access_service.ensure_record_access(
        db, ctx.actor_id, DataType.SCHOOLS, Action.DELETE, school_id
    )
    await school_service.delete_school(db, ctx, school, reason=reason, force=force, clock=clock)
