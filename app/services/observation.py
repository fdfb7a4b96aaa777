"""Observation service."""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.permissions import DataType
from app.models.observation import Observation
from app.schemas.observation import ObservationCreate, ObservationUpdate
from app.services import audit as audit_service
from app.services import records
from app.services.audit import AuditContext
from app.services.scope_filter import ScopeFilter


async def get_observation_by_id(db: AsyncSession, observation_id: UUID) -> Observation | None:
    """Get observation by ID."""
    return await records.get_active(db, Observation, observation_id)


async def get_observations(
    db: AsyncSession,
    scope_filter: ScopeFilter,
    *,
    school_id: UUID | None = None,
    class_id: UUID | None = None,
    subject: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Observation], int]:
    """Get list of observations visible through ``scope_filter``."""
    query = select(Observation).where(Observation.is_deleted.is_(False))

    if school_id is not None:
        query = query.where(Observation.school_id == school_id)
    if class_id is not None:
        query = query.where(Observation.class_id == class_id)
    if subject:
        query = query.where(Observation.subject == subject)
    if date_from:
        query = query.where(Observation.visit_date >= date_from)
    if date_to:
        query = query.where(Observation.visit_date <= date_to)

    return await records.paginate(
        db,
        query,
        scope_filter,
        order_by=[Observation.visit_date.desc(), Observation.created_at.desc()],
        skip=skip,
        limit=limit,
    )


async def create_observation(
    db: AsyncSession,
    ctx: AuditContext,
    observation_data: ObservationCreate,
) -> Observation:
    """Record an observation on behalf of the acting user."""
    observation = Observation(**observation_data.model_dump(), created_by=ctx.actor_id)
    return await records.create_scoped(
        db,
        ctx,
        DataType.OBSERVATIONS,
        observation,
        f"Recorded {observation.subject} observation of {observation.visit_date}",
    )


async def update_observation(
    db: AsyncSession,
    ctx: AuditContext,
    observation: Observation,
    observation_data: ObservationUpdate,
) -> Observation:
    """Update an observation."""
    return await records.update_scoped(
        db,
        ctx,
        DataType.OBSERVATIONS,
        observation,
        observation_data.model_dump(exclude_unset=True),
        f"Updated observation of {observation.visit_date}",
    )


async def delete_observation(
    db: AsyncSession,
    ctx: AuditContext,
    observation: Observation,
    *,
    reason: str | None = None,
    clock: Clock = system_clock,
) -> bool:
    """Soft-delete an observation."""
    return await audit_service.soft_delete(
        db, ctx, Observation.__tablename__, observation.id, reason, clock=clock
    )
