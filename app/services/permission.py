"""Scope permission matrix management."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import atomic
from app.core.exceptions import NotFound
from app.core.permissions import (
    DEFAULT_SCOPE_PERMISSIONS,
    ROLE_DEFINITIONS,
    AuditAction,
)
from app.models import RoleDefinition, ScopePermission
from app.schemas.permission import ScopePermissionUpsert
from app.services import audit as audit_service
from app.services.audit import AuditContext

logger = logging.getLogger(__name__)

ACTION_FLAGS = ("can_view", "can_create", "can_update", "can_delete", "can_export")


async def get_matrix(
    db: AsyncSession,
    *,
    role_name: str | None = None,
    data_type: str | None = None,
) -> list[ScopePermission]:
    """Get matrix rows, optionally for one role and/or data type."""
    query = select(ScopePermission)
    if role_name:
        query = query.where(ScopePermission.role_name == role_name)
    if data_type:
        query = query.where(ScopePermission.data_type == data_type)
    query = query.order_by(
        ScopePermission.role_name,
        ScopePermission.data_type,
        ScopePermission.scope_level,
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_entry_by_id(db: AsyncSession, entry_id: UUID) -> ScopePermission | None:
    result = await db.execute(select(ScopePermission).where(ScopePermission.id == entry_id))
    return result.scalar_one_or_none()


async def _find_entry(
    db: AsyncSession,
    role_name: str,
    data_type: str,
    scope_level: str,
) -> ScopePermission | None:
    result = await db.execute(
        select(ScopePermission).where(
            ScopePermission.role_name == role_name,
            ScopePermission.data_type == data_type,
            ScopePermission.scope_level == scope_level,
        )
    )
    return result.scalar_one_or_none()


async def set_entry(
    db: AsyncSession,
    ctx: AuditContext,
    data: ScopePermissionUpsert,
) -> ScopePermission:
    """Create or update the row for (role, data type, scope level)."""
    role_name = data.role_name
    data_type = data.data_type.value
    scope_level = data.scope_level.value
    flags = {flag: getattr(data, flag) for flag in ACTION_FLAGS}

    entry = await _find_entry(db, role_name, data_type, scope_level)

    async with atomic(db):
        if entry is None:
            entry = ScopePermission(
                role_name=role_name,
                data_type=data_type,
                scope_level=scope_level,
                **flags,
            )
            db.add(entry)
            await db.flush()
            await audit_service.log(
                db,
                ctx,
                AuditAction.CREATE,
                ScopePermission.__tablename__,
                entry.id,
                new_data=audit_service.snapshot(entry),
                summary=f"Granted {role_name} {scope_level} scope on {data_type}",
            )
        else:
            before = audit_service.snapshot(entry)
            for flag, value in flags.items():
                setattr(entry, flag, value)
            await db.flush()
            await audit_service.log(
                db,
                ctx,
                AuditAction.UPDATE,
                ScopePermission.__tablename__,
                entry.id,
                old_data=before,
                new_data=audit_service.snapshot(entry),
                summary=f"Changed {role_name} {scope_level} scope on {data_type}",
            )

    logger.info("Matrix row %s/%s/%s set by %s", role_name, data_type, scope_level, ctx.actor_id)
    return entry


async def delete_entry(db: AsyncSession, ctx: AuditContext, entry_id: UUID) -> None:
    """Remove a matrix row. The removal itself is kept in the audit log."""
    entry = await get_entry_by_id(db, entry_id)
    if entry is None:
        raise NotFound("Permission entry not found")

    async with atomic(db):
        before = audit_service.snapshot(entry)
        await db.delete(entry)
        await db.flush()
        await audit_service.log(
            db,
            ctx,
            AuditAction.DELETE,
            ScopePermission.__tablename__,
            entry_id,
            old_data=before,
            summary=(
                f"Revoked {before['role_name']} {before['scope_level']} scope "
                f"on {before['data_type']}"
            ),
        )

    logger.info("Matrix row %s deleted by %s", entry_id, ctx.actor_id)


async def seed_defaults(db: AsyncSession) -> tuple[int, int]:
    """Load default role definitions and matrix rows.

    Existing rows are left untouched. Returns (roles added, matrix rows added).
    """
    roles_added = 0
    existing_roles = set((await db.execute(select(RoleDefinition.name))).scalars().all())
    for role, (level, can_manage, depth) in ROLE_DEFINITIONS.items():
        if role.value in existing_roles:
            continue
        db.add(
            RoleDefinition(
                name=role.value,
                hierarchy_level=level,
                can_manage_hierarchy=can_manage,
                max_hierarchy_depth=depth,
            )
        )
        roles_added += 1

    rows_added = 0
    existing_rows = set(
        (
            await db.execute(
                select(
                    ScopePermission.role_name,
                    ScopePermission.data_type,
                    ScopePermission.scope_level,
                )
            )
        ).all()
    )
    for role, data_type, scope_level, flags in DEFAULT_SCOPE_PERMISSIONS:
        key = (role.value, data_type.value, scope_level.value)
        if key in existing_rows:
            continue
        db.add(
            ScopePermission(
                role_name=role.value,
                data_type=data_type.value,
                scope_level=scope_level.value,
                **flags,
            )
        )
        existing_rows.add(key)
        rows_added += 1

    await db.commit()
    logger.info("Seeded %d roles and %d matrix rows", roles_added, rows_added)
    return roles_added, rows_added
