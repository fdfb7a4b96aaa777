"""Audit ledger and soft-delete writer."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import func, inspect, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.core.database import atomic
from app.core.exceptions import AuditWriteFailed, NotFound
from app.core.permissions import AuditAction
from app.core.scopes import get_scope
from app.models.audit import AuditEntry, DeletedRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditContext:
    """Who is acting, and from where."""

    actor_id: UUID | None
    actor_username: str | None = None
    actor_role: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


SYSTEM_CONTEXT = AuditContext(actor_id=None, actor_username="system", actor_role="system")


def _json_safe(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


# Never copied into the ledger or tombstones
REDACTED_COLUMNS = frozenset({"password_hash"})


def snapshot(obj: Any) -> dict[str, Any]:
    """Column values of a loaded ORM object as a JSON-safe dict."""
    mapper = inspect(obj).mapper
    return {
        attr.key: _json_safe(getattr(obj, attr.key))
        for attr in mapper.column_attrs
        if attr.key not in REDACTED_COLUMNS
    }


async def _persist(db: AsyncSession, entry: AuditEntry) -> None:
    db.add(entry)
    await db.flush()


async def log(
    db: AsyncSession,
    ctx: AuditContext,
    action: AuditAction,
    table_name: str,
    record_id: Any = None,
    *,
    old_data: dict[str, Any] | None = None,
    new_data: dict[str, Any] | None = None,
    summary: str,
) -> AuditEntry:
    """Append an entry in the caller's transaction.

    Raises AuditWriteFailed on any database error; the caller's transaction
    must then be rolled back.
    """
    entry = AuditEntry(
        actor_id=ctx.actor_id,
        actor_username=ctx.actor_username,
        actor_role=ctx.actor_role,
        action=AuditAction(action).value,
        table_name=table_name,
        record_id=str(record_id) if record_id is not None else None,
        old_data=old_data,
        new_data=new_data,
        changes_summary=summary,
        ip_address=ctx.ip_address,
        user_agent=ctx.user_agent,
    )
    try:
        await _persist(db, entry)
    except SQLAlchemyError as exc:
        logger.error(
            "Audit write failed for %s %s:%s",
            entry.action,
            table_name,
            entry.record_id,
            exc_info=True,
        )
        raise AuditWriteFailed() from exc
    return entry


async def log_read(
    db: AsyncSession,
    ctx: AuditContext,
    table_name: str,
    summary: str,
    record_id: Any = None,
) -> None:
    """Record a notable read. Best-effort: failures are logged, not raised.

    Call once the read itself is complete; the entry is committed here.
    """
    if not settings.AUDIT_READS:
        return
    try:
        await log(db, ctx, AuditAction.READ, table_name, record_id, summary=summary)
        await db.commit()
    except (AuditWriteFailed, SQLAlchemyError):
        await db.rollback()
        logger.warning("READ audit skipped for %s: %s", table_name, summary)


async def _tombstone(
    db: AsyncSession,
    ctx: AuditContext,
    table_name: str,
    record_id: UUID,
    reason: str | None,
    clock: Clock,
) -> DeletedRecord:
    scope = get_scope(table_name)
    if scope is None:
        raise NotFound(f"Unknown table: {table_name}")
    model = scope.model

    result = await db.execute(
        select(model)
        .where(model.id == record_id, model.is_deleted.is_(False))
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFound("Record not found")

    original = snapshot(row)
    now = clock.now()
    tombstone = DeletedRecord(
        table_name=table_name,
        record_id=record_id,
        original_data=original,
        deleted_by=ctx.actor_id,
        deleted_by_username=ctx.actor_username,
        delete_reason=reason,
        deleted_at=now,
        retention_period_days=scope.retention_period_days,
    )
    db.add(tombstone)

    # updated_at is written back unchanged so a restore is field-for-field exact
    await db.execute(
        update(model)
        .where(model.id == record_id)
        .values(
            is_deleted=True,
            deleted_at=now,
            deleted_by=ctx.actor_id,
            updated_at=model.updated_at,
        )
        .execution_options(synchronize_session="fetch")
    )
    await db.refresh(row)

    summary = f"Deleted {table_name} record {record_id}"
    if reason:
        summary = f"{summary}: {reason}"
    await log(
        db,
        ctx,
        AuditAction.DELETE,
        table_name,
        record_id,
        old_data=original,
        summary=summary,
    )
    return tombstone


async def soft_delete(
    db: AsyncSession,
    ctx: AuditContext,
    table_name: str,
    record_id: UUID,
    reason: str | None = None,
    *,
    clock: Clock = system_clock,
) -> bool:
    """Tombstone, flag and audit one record in a single transaction."""
    async with atomic(db):
        await _tombstone(db, ctx, table_name, record_id, reason, clock)
    logger.info("Soft-deleted %s:%s by %s", table_name, record_id, ctx.actor_id)
    return True


async def soft_delete_many(
    db: AsyncSession,
    ctx: AuditContext,
    targets: list[tuple[str, UUID]],
    reason: str | None = None,
    *,
    clock: Clock = system_clock,
) -> int:
    """Soft-delete several records (a parent and its dependents) atomically."""
    async with atomic(db):
        for table_name, record_id in targets:
            await _tombstone(db, ctx, table_name, record_id, reason, clock)
    logger.info("Soft-deleted %d records by %s", len(targets), ctx.actor_id)
    return len(targets)


async def get_entries(
    db: AsyncSession,
    *,
    skip: int = 0,
    limit: int = 50,
    actor_id: UUID | None = None,
    table_name: str | None = None,
    action: AuditAction | None = None,
    record_id: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> tuple[list[AuditEntry], int]:
    """Get audit entries with filters, newest first."""
    query = select(AuditEntry)
    count_query = select(func.count(AuditEntry.id))

    filters = []
    if actor_id:
        filters.append(AuditEntry.actor_id == actor_id)
    if table_name:
        filters.append(AuditEntry.table_name == table_name)
    if action:
        filters.append(AuditEntry.action == AuditAction(action).value)
    if record_id:
        filters.append(AuditEntry.record_id == record_id)
    if date_from:
        filters.append(AuditEntry.created_at >= date_from)
    if date_to:
        filters.append(AuditEntry.created_at <= date_to)

    if filters:
        query = query.where(*filters)
        count_query = count_query.where(*filters)

    total = (await db.execute(count_query)).scalar() or 0
    query = query.order_by(AuditEntry.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def get_summary(
    db: AsyncSession,
    days: int = 7,
    *,
    clock: Clock = system_clock,
) -> dict[str, Any]:
    """Counts per action and table over the last ``days`` days."""
    since = clock.now() - timedelta(days=days)

    by_action = await db.execute(
        select(AuditEntry.action, func.count(AuditEntry.id))
        .where(AuditEntry.created_at >= since)
        .group_by(AuditEntry.action)
    )
    by_table = await db.execute(
        select(AuditEntry.table_name, func.count(AuditEntry.id))
        .where(AuditEntry.created_at >= since)
        .group_by(AuditEntry.table_name)
    )
    unique_actors = await db.execute(
        select(func.count(func.distinct(AuditEntry.actor_id))).where(
            AuditEntry.created_at >= since
        )
    )

    actions = {action: count for action, count in by_action.all()}
    return {
        "days": days,
        "total": sum(actions.values()),
        "by_action": actions,
        "by_table": {table: count for table, count in by_table.all()},
        "unique_actors": unique_actors.scalar() or 0,
    }
