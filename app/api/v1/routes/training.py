"""Training session routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.deps import Audit, CurrentUser, DbSession, SystemClock, require_access
from app.core.exceptions import NotFound
from app.core.permissions import Action, DataType
from app.schemas.training import (
    ParticipantCreate,
    ParticipantResponse,
    TrainingSessionCreate,
    TrainingSessionListResponse,
    TrainingSessionResponse,
)
from app.services import access as access_service
from app.services import audit as audit_service
from app.services import scope_filter as scope_filter_service
from app.services import training as training_service

router = APIRouter(prefix="/training-sessions", tags=["Training"])


async def _get_session_or_404(db, session_id: UUID):
    session = await training_service.get_session_by_id(db, session_id)
    if not session:
        raise NotFound("Training session not found")
    return session


# ============== Endpoints ==============


@router.get(
    "",
    response_model=TrainingSessionListResponse,
    dependencies=[Depends(require_access(DataType.TRAINING_SESSIONS, Action.VIEW))],
)
async def list_sessions(
    db: DbSession,
    current_user: CurrentUser,
    ctx: Audit,
    school_id: UUID | None = Query(None, description="Filter by host school"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> TrainingSessionListResponse:
    """List training sessions inside the current user's scope."""
    scope_filter = await scope_filter_service.build_filter(
        db, current_user.id, DataType.TRAINING_SESSIONS
    )
    sessions, total = await training_service.get_sessions(
        db, scope_filter, school_id=school_id, skip=skip, limit=limit
    )
    response = TrainingSessionListResponse(
        items=[TrainingSessionResponse.model_validate(s) for s in sessions],
        total=total,
        skip=skip,
        limit=limit,
    )
    await audit_service.log_read(
        db, ctx, "training_sessions", f"Listed {len(sessions)} of {total} training sessions"
    )
    return response


@router.post(
    "",
    response_model=TrainingSessionResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_access(DataType.TRAINING_SESSIONS, Action.CREATE))],
)
async def create_session(
    session_data: TrainingSessionCreate,
    db: DbSession,
    ctx: Audit,
) -> TrainingSessionResponse:
    """Schedule a training session."""
    session = await training_service.create_session(db, ctx, session_data)
    return TrainingSessionResponse.model_validate(session)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: UUID,
    db: DbSession,
    ctx: Audit,
    clock: SystemClock,
    reason: str | None = Query(None, max_length=1000, description="Why the session is removed"),
    force: bool = Query(False, description="Also delete registered participants"),
) -> None:
    """
    Soft-delete a training session.

    - Fails with 409 while participants are registered, unless force=true
    """
    session = await _get_session_or_404(db, session_id)
    await access_service.ensure_record_access(
        db, ctx.actor_id, DataType.TRAINING_SESSIONS, Action.DELETE, session_id
    )
    await training_service.delete_session(
        db, ctx, session, reason=reason, force=force, clock=clock
    )


@router.get("/{session_id}/participants", response_model=list[ParticipantResponse])
async def list_participants(
    session_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
) -> list[ParticipantResponse]:
    """List participants of a session the user can see."""
    await _get_session_or_404(db, session_id)
    await access_service.ensure_record_access(
        db, current_user.id, DataType.TRAINING_SESSIONS, Action.VIEW, session_id
    )
    participants = await training_service.get_participants(db, session_id)
    return [ParticipantResponse.model_validate(p) for p in participants]


@router.post(
    "/{session_id}/participants",
    response_model=ParticipantResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_access(DataType.TRAINING_PARTICIPANTS, Action.CREATE))],
)
async def add_participant(
    session_id: UUID,
    participant_data: ParticipantCreate,
    db: DbSession,
    ctx: Audit,
) -> ParticipantResponse:
    """Register a participant."""
    session = await _get_session_or_404(db, session_id)
    participant = await training_service.add_participant(db, ctx, session, participant_data)
    return ParticipantResponse.model_validate(participant)
