"""Observation routes."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.deps import Audit, CurrentUser, DbSession, SystemClock, require_access
from app.core.exceptions import NotFound
from app.core.permissions import Action, DataType
from app.schemas.observation import (
    ObservationCreate,
    ObservationListResponse,
    ObservationResponse,
    ObservationUpdate,
)
from app.services import access as access_service
from app.services import audit as audit_service
from app.services import observation as observation_service
from app.services import scope_filter as scope_filter_service

router = APIRouter(prefix="/observations", tags=["Observations"])


async def _get_observation_or_404(db, observation_id: UUID):
    observation = await observation_service.get_observation_by_id(db, observation_id)
    if not observation:
        raise NotFound("Observation not found")
    return observation


# ============== Endpoints ==============


@router.get(
    "",
    response_model=ObservationListResponse,
    dependencies=[Depends(require_access(DataType.OBSERVATIONS, Action.VIEW))],
)
async def list_observations(
    db: DbSession,
    current_user: CurrentUser,
    ctx: Audit,
    school_id: UUID | None = Query(None, description="Filter by school"),
    class_id: UUID | None = Query(None, description="Filter by class"),
    subject: str | None = Query(None, description="Filter by subject"),
    date_from: date | None = Query(None, description="Visits on or after"),
    date_to: date | None = Query(None, description="Visits on or before"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> ObservationListResponse:
    """List observations inside the current user's scope, plus their own."""
    scope_filter = await scope_filter_service.build_filter(
        db, current_user.id, DataType.OBSERVATIONS
    )
    observations, total = await observation_service.get_observations(
        db,
        scope_filter,
        school_id=school_id,
        class_id=class_id,
        subject=subject,
        date_from=date_from,
        date_to=date_to,
        skip=skip,
        limit=limit,
    )
    response = ObservationListResponse(
        items=[ObservationResponse.model_validate(o) for o in observations],
        total=total,
        skip=skip,
        limit=limit,
    )
    await audit_service.log_read(
        db, ctx, "observations", f"Listed {len(observations)} of {total} observations"
    )
    return response


@router.post(
    "",
    response_model=ObservationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_access(DataType.OBSERVATIONS, Action.CREATE))],
)
async def create_observation(
    observation_data: ObservationCreate,
    db: DbSession,
    ctx: Audit,
) -> ObservationResponse:
    """Record an observation."""
    observation = await observation_service.create_observation(db, ctx, observation_data)
    return ObservationResponse.model_validate(observation)


@router.get("/{observation_id}", response_model=ObservationResponse)
async def get_observation(
    observation_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
) -> ObservationResponse:
    """Get a specific observation by ID."""
    observation = await _get_observation_or_404(db, observation_id)
    await access_service.ensure_record_access(
        db, current_user.id, DataType.OBSERVATIONS, Action.VIEW, observation_id
    )
    return ObservationResponse.model_validate(observation)


@router.patch("/{observation_id}", response_model=ObservationResponse)
async def update_observation(
    observation_id: UUID,
    observation_data: ObservationUpdate,
    db: DbSession,
    ctx: Audit,
) -> ObservationResponse:
    """Update an observation."""
    observation = await _get_observation_or_404(db, observation_id)
    await access_service.ensure_record_access(
        db, ctx.actor_id, DataType.OBSERVATIONS, Action.UPDATE, observation_id
    )
    updated = await observation_service.update_observation(db, ctx, observation, observation_data)
    return ObservationResponse.model_validate(updated)


@router.delete("/{observation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_observation(
    observation_id: UUID,
    db: DbSession,
    ctx: Audit,
    clock: SystemClock,
    reason: str | None = Query(None, max_length=1000, description="Why the observation is removed"),
) -> None:
    """Soft-delete an observation."""
    observation = await _get_observation_or_404(db, observation_id)
    await access_service.ensure_record_access(
        db, ctx.actor_id, DataType.OBSERVATIONS, Action.DELETE, observation_id
    )
    await observation_service.delete_observation(db, ctx, observation, reason=reason, clock=clock)
