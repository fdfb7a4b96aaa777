"""Training session service."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.exceptions import CascadeConflict
from app.core.permissions import DataType
from app.models.training import TrainingParticipant, TrainingSession
from app.schemas.training import ParticipantCreate, TrainingSessionCreate
from app.services import audit as audit_service
from app.services import records
from app.services.audit import AuditContext
from app.services.scope_filter import ScopeFilter


async def get_session_by_id(db: AsyncSession, session_id: UUID) -> TrainingSession | None:
    """Get training session by ID."""
    return await records.get_active(db, TrainingSession, session_id)


async def get_sessions(
    db: AsyncSession,
    scope_filter: ScopeFilter,
    *,
    school_id: UUID | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[TrainingSession], int]:
    """Get list of training sessions visible through ``scope_filter``."""
    query = select(TrainingSession).where(TrainingSession.is_deleted.is_(False))
    if school_id is not None:
        query = query.where(TrainingSession.school_id == school_id)

    return await records.paginate(
        db, query, scope_filter, order_by=[TrainingSession.starts_at.desc()], skip=skip, limit=limit
    )


async def create_session(
    db: AsyncSession,
    ctx: AuditContext,
    session_data: TrainingSessionCreate,
) -> TrainingSession:
    """Schedule a training session."""
    session = TrainingSession(**session_data.model_dump(), created_by=ctx.actor_id)
    return await records.create_scoped(
        db, ctx, DataType.TRAINING_SESSIONS, session, f"Scheduled training {session.title}"
    )


async def get_participants(
    db: AsyncSession,
    session_id: UUID,
) -> list[TrainingParticipant]:
    """Active participants of a session."""
    result = await db.execute(
        select(TrainingParticipant)
        .where(
            TrainingParticipant.session_id == session_id,
            TrainingParticipant.is_deleted.is_(False),
        )
        .order_by(TrainingParticipant.created_at)
    )
    return list(result.scalars().all())


async def count_participants(db: AsyncSession, session_id: UUID) -> int:
    result = await db.execute(
        select(func.count(TrainingParticipant.id)).where(
            TrainingParticipant.session_id == session_id,
            TrainingParticipant.is_deleted.is_(False),
        )
    )
    return result.scalar() or 0


async def add_participant(
    db: AsyncSession,
    ctx: AuditContext,
    session: TrainingSession,
    participant_data: ParticipantCreate,
) -> TrainingParticipant:
    """Register a participant for a session."""
    participant = TrainingParticipant(session_id=session.id, **participant_data.model_dump())
    return await records.create_scoped(
        db,
        ctx,
        DataType.TRAINING_PARTICIPANTS,
        participant,
        f"Registered {participant.full_name} for training {session.title}",
    )


async def delete_session(
    db: AsyncSession,
    ctx: AuditContext,
    session: TrainingSession,
    *,
    reason: str | None = None,
    force: bool = False,
    clock: Clock = system_clock,
) -> int:
    """Soft-delete a session. Participants go with it only when ``force`` is set.

    Returns the number of records deleted.
    """
    participants = await get_participants(db, session.id)
    if participants and not force:
        raise CascadeConflict(
            len(participants),
            f"Training session has {len(participants)} participants; "
            "pass force=true to delete them too",
        )
    targets = [(TrainingSession.__tablename__, session.id)]
    targets.extend((TrainingParticipant.__tablename__, p.id) for p in participants)
    return await audit_service.soft_delete_many(db, ctx, targets, reason, clock=clock)
