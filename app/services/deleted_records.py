"""Restore workflow and deleted-record queries."""

import logging
from datetime import timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.database import atomic
from app.core.exceptions import NotFound, NotRestorable, PermissionDenied
from app.core.permissions import Action, AuditAction
from app.core.scopes import ResourceScope, get_scope
from app.models.audit import DeletedRecord
from app.services import access as access_service
from app.services import audit as audit_service
from app.services.audit import AuditContext

logger = logging.getLogger(__name__)


class DeletionState(str, Enum):
    """Lifecycle of a deleted-record entry. Computed, never stored."""

    RESTORABLE = "restorable"
    EXPIRED = "expired"
    RESTORED = "restored"


def entry_state(entry: DeletedRecord, now) -> DeletionState:
    if entry.is_restored:
        return DeletionState.RESTORED
    if entry.is_still_restorable(now):
        return DeletionState.RESTORABLE
    return DeletionState.EXPIRED


async def get_deleted_record_by_id(db: AsyncSession, entry_id: UUID) -> DeletedRecord | None:
    """Get deleted-record entry by ID, bypassing the identity map."""
    result = await db.execute(
        select(DeletedRecord)
        .where(DeletedRecord.id == entry_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _deleted_parent(
    db: AsyncSession, scope: ResourceScope, row: Any
) -> tuple[str, Any] | None:
    """First (table, id) among the row's parents that is soft-deleted."""
    for fk, parent_type in scope.parents:
        parent_id = getattr(row, fk.key)
        if parent_id is None:
            continue
        parent = get_scope(parent_type).model
        result = await db.execute(select(parent.is_deleted).where(parent.id == parent_id))
        if result.scalar_one_or_none():
            return parent.__tablename__, parent_id
    return None


async def restore(
    db: AsyncSession,
    ctx: AuditContext,
    deleted_record_id: UUID,
    reason: str | None = None,
    *,
    clock: Clock = system_clock,
) -> dict[str, Any]:
    """Bring a soft-deleted record back.

    Checked in order: entry exists and is not restored, retention window is
    open, actor may update the table, no parent record is soft-deleted.
    Returns the restored row's snapshot.
    """
    entry = await get_deleted_record_by_id(db, deleted_record_id)
    if entry is None:
        raise NotFound("Deleted record not found")
    if entry.is_restored:
        raise NotRestorable(NotRestorable.ALREADY_RESTORED)

    now = clock.now()
    if not entry.is_still_restorable(now):
        raise NotRestorable(NotRestorable.EXPIRED)

    if not await access_service.can_access(db, ctx.actor_id, entry.table_name, Action.UPDATE):
        raise PermissionDenied()

    scope = get_scope(entry.table_name)
    if scope is None:
        raise NotFound(f"Unknown table: {entry.table_name}")
    model = scope.model

    result = await db.execute(
        select(model)
        .where(model.id == entry.record_id, model.is_deleted.is_(True))
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFound("Original record no longer exists")

    deleted_parent = await _deleted_parent(db, scope, row)
    if deleted_parent is not None:
        raise NotRestorable(
            NotRestorable.PARENT_DELETED,
            f"Parent {deleted_parent[0]} record {deleted_parent[1]} is deleted; restore it first",
        )

    async with atomic(db):
        await db.execute(
            update(model)
            .where(model.id == entry.record_id)
            .values(
                is_deleted=False,
                deleted_at=None,
                deleted_by=None,
                updated_at=model.updated_at,
            )
            .execution_options(synchronize_session="fetch")
        )
        await db.refresh(row)

        entry.is_restored = True
        entry.restored_at = now
        entry.restored_by = ctx.actor_id

        restored = audit_service.snapshot(row)
        summary = f"Restored {entry.table_name} record {entry.record_id}"
        if reason:
            summary = f"{summary}: {reason}"
        await audit_service.log(
            db,
            ctx,
            AuditAction.RESTORE,
            entry.table_name,
            entry.record_id,
            new_data=restored,
            summary=summary,
        )

    logger.info("Restored %s:%s by %s", entry.table_name, entry.record_id, ctx.actor_id)
    return restored


async def _restorable_clause(db: AsyncSession, now):
    """SQL condition for entries whose retention window is still open."""
    periods = (
        await db.execute(select(DeletedRecord.retention_period_days).distinct())
    ).scalars().all()
    if not periods:
        return None
    return or_(
        *(
            and_(
                DeletedRecord.retention_period_days == days,
                DeletedRecord.deleted_at > now - timedelta(days=days),
            )
            for days in periods
        )
    )


async def list_deleted(
    db: AsyncSession,
    *,
    table_name: str | None = None,
    show_expired: bool = False,
    include_restored: bool = False,
    limit: int = 50,
    clock: Clock = system_clock,
) -> list[tuple[DeletedRecord, DeletionState]]:
    """Deleted-record entries, newest first, with their computed state."""
    now = clock.now()
    query = select(DeletedRecord)
    if table_name:
        query = query.where(DeletedRecord.table_name == table_name)
    if not include_restored:
        query = query.where(DeletedRecord.is_restored.is_(False))
    if not show_expired:
        clause = await _restorable_clause(db, now)
        if clause is None:
            return []
        query = query.where(clause)

    result = await db.execute(query.order_by(DeletedRecord.deleted_at.desc()).limit(limit))
    return [(entry, entry_state(entry, now)) for entry in result.scalars().all()]


async def deletion_stats(
    db: AsyncSession,
    *,
    clock: Clock = system_clock,
) -> dict[str, Any]:
    """Totals of deleted-record entries by state and table."""
    now = clock.now()
    result = await db.execute(select(DeletedRecord))
    entries = list(result.scalars().all())

    by_state = {state: 0 for state in DeletionState}
    by_table: dict[str, dict[str, int]] = {}
    for entry in entries:
        state = entry_state(entry, now)
        by_state[state] += 1
        table = by_table.setdefault(entry.table_name, {s.value: 0 for s in DeletionState})
        table[state.value] += 1

    return {
        "total": len(entries),
        "pending": by_state[DeletionState.RESTORABLE],
        "restored": by_state[DeletionState.RESTORED],
        "expired": by_state[DeletionState.EXPIRED],
        "affected_tables": len(by_table),
        "by_table": by_table,
    }
