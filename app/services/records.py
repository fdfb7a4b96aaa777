"""Shared create/update/list plumbing for scoped, audited records."""

from typing import Any, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import atomic
from app.core.exceptions import PermissionDenied
from app.core.permissions import Action, AuditAction, DataType
from app.services import access as access_service
from app.services import audit as audit_service
from app.services.audit import AuditContext
from app.services.scope_filter import ScopeFilter

T = TypeVar("T")


async def get_active(db: AsyncSession, model: type[T], record_id: Any) -> T | None:
    """Get a record by ID unless it is soft-deleted."""
    result = await db.execute(
        select(model).where(model.id == record_id, model.is_deleted.is_(False))
    )
    return result.scalar_one_or_none()


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    scope_filter: ScopeFilter,
    *,
    order_by: list[Any],
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Any], int]:
    """Apply the scope filter, count, and fetch one page."""
    query = scope_filter.apply(query)

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(query.order_by(*order_by).offset(skip).limit(limit))
    return list(result.scalars().all()), total


async def create_scoped(
    db: AsyncSession,
    ctx: AuditContext,
    data_type: DataType,
    obj: T,
    summary: str,
) -> T:
    """Insert, confirm the new row is inside the actor's scope, audit, commit.

    A row the actor could not create at its owning node is rolled back.
    """
    async with atomic(db):
        db.add(obj)
        await db.flush()
        if not await access_service.can_access_record(
            db, ctx.actor_id, data_type, Action.CREATE, obj.id
        ):
            raise PermissionDenied()
        await audit_service.log(
            db,
            ctx,
            AuditAction.CREATE,
            data_type.value,
            obj.id,
            new_data=audit_service.snapshot(obj),
            summary=summary,
        )
    return obj


async def update_scoped(
    db: AsyncSession,
    ctx: AuditContext,
    data_type: DataType,
    obj: T,
    changes: dict[str, Any],
    summary: str,
) -> T:
    """Apply changes, re-check scope at the new position, audit, commit."""
    before = audit_service.snapshot(obj)
    async with atomic(db):
        for field, value in changes.items():
            setattr(obj, field, value)
        await db.flush()
        if not await access_service.can_access_record(
            db, ctx.actor_id, data_type, Action.UPDATE, obj.id
        ):
            raise PermissionDenied()
        await audit_service.log(
            db,
            ctx,
            AuditAction.UPDATE,
            data_type.value,
            obj.id,
            old_data=before,
            new_data=audit_service.snapshot(obj),
            summary=summary,
        )
    return obj
