"""Access decision engine.

A request is allowed when any matrix row for the user's role and the data
type grants the action at a scope the user holds. Everything else is denied.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PermissionDenied
from app.core.permissions import Action, DataType, NodeKind, ScopeLevel
from app.core.predicates import NodeColumn
from app.core.scopes import ResourceScope, get_scope
from app.models import ScopePermission
from app.services import hierarchy
from app.services.hierarchy import HierarchyProfile

logger = logging.getLogger(__name__)


def _key(data_type: str | DataType) -> str:
    return data_type.value if isinstance(data_type, DataType) else data_type


async def get_scope_rows(
    db: AsyncSession,
    role: str,
    data_type: str | DataType,
) -> list[ScopePermission]:
    """Matrix rows for a role and data type."""
    result = await db.execute(
        select(ScopePermission).where(
            ScopePermission.role_name == role,
            ScopePermission.data_type == _key(data_type),
        )
    )
    return list(result.scalars().all())


def parse_scope_level(row: ScopePermission) -> ScopeLevel | None:
    try:
        return ScopeLevel(row.scope_level)
    except ValueError:
        logger.warning(
            "Ignoring matrix row %s with unknown scope level %r", row.id, row.scope_level
        )
        return None


async def granting_rows(
    db: AsyncSession,
    profile: HierarchyProfile,
    data_type: str | DataType,
    action: Action,
) -> list[ScopePermission]:
    """Matrix rows of the user's role that grant ``action`` on ``data_type``."""
    rows = await get_scope_rows(db, profile.role, data_type)
    return [row for row in rows if row.allows(action)]


async def resolve_column(
    db: AsyncSession,
    scope: ResourceScope,
    column: NodeColumn,
    resource_id: Any,
) -> Any:
    """Value of a node/owner column for one record, None when unresolvable."""
    result = await db.execute(column.lookup(scope.model, resource_id))
    return result.scalars().first()


async def decide(
    db: AsyncSession,
    profile: HierarchyProfile,
    data_type: str | DataType,
    action: Action | str,
    resource_id: Any = None,
    *,
    record_level: bool = False,
) -> bool:
    """Access decision for an already resolved profile.

    With ``record_level`` a ``self`` row only covers a record whose owner
    column resolves to the user; data types without an owner column get
    nothing from it.
    """
    if profile.is_global:
        return True

    action = Action(action)
    rows = await granting_rows(db, profile, data_type, action)
    if not rows:
        return False

    scope = get_scope(data_type)
    cache: dict[str, Any] = {}

    async def value_of(column: NodeColumn) -> Any:
        if column.key not in cache:
            cache[column.key] = await resolve_column(db, scope, column, resource_id)
        return cache[column.key]

    if resource_id is not None and scope is not None and scope.owner_implicit and scope.owner:
        if await value_of(scope.owner) == profile.user_id:
            return True

    for row in rows:
        level = parse_scope_level(row)
        if level is None or level == ScopeLevel.GLOBAL:
            continue
        if level == ScopeLevel.SELF:
            if not record_level or resource_id is None:
                return True
            if scope is not None and scope.owner is not None:
                if await value_of(scope.owner) == profile.user_id:
                    return True
            continue

        kind: NodeKind = level.node_kind
        if resource_id is None:
            return True
        if scope is None:
            continue
        column = scope.node_column(kind)
        if column is None:
            continue
        node_id = await value_of(column)
        if node_id is not None and node_id in profile.nodes(kind):
            return True

    return False


async def can_access(
    db: AsyncSession,
    user_id: UUID | None,
    data_type: str | DataType,
    action: Action | str,
    resource_id: Any = None,
    *,
    record_level: bool = False,
) -> bool:
    """Check whether a user may perform ``action`` on ``data_type``.

    Without ``resource_id`` this is a listing-level check: holding any scope
    that grants the action is enough, and the filter builder narrows rows.
    With ``resource_id`` the record's owning node must be in the user's set.
    """
    if user_id is None:
        return False
    profile = await hierarchy.resolve(db, user_id)
    if profile is None:
        logger.debug("Access denied: unknown user %s", user_id)
        return False

    allowed = await decide(db, profile, data_type, action, resource_id, record_level=record_level)
    if not allowed:
        logger.debug(
            "Access denied: user=%s role=%s %s %s resource=%s",
            user_id,
            profile.role,
            Action(action).value,
            _key(data_type),
            resource_id,
        )
    return allowed


async def ensure_access(
    db: AsyncSession,
    user_id: UUID | None,
    data_type: str | DataType,
    action: Action | str,
    resource_id: Any = None,
) -> None:
    """Raise PermissionDenied unless allowed."""
    if not await can_access(db, user_id, data_type, action, resource_id):
        raise PermissionDenied()


async def can_access_record(
    db: AsyncSession,
    user_id: UUID | None,
    data_type: str | DataType,
    action: Action | str,
    resource_id: Any,
) -> bool:
    """Check ``action`` on one existing record.

    Node scopes behave as in ``can_access``; a ``self`` row only covers
    records the user owns.
    """
    return await can_access(db, user_id, data_type, action, resource_id, record_level=True)


async def ensure_record_access(
    db: AsyncSession,
    user_id: UUID | None,
    data_type: str | DataType,
    action: Action | str,
    resource_id: Any,
) -> None:
    """Raise PermissionDenied unless allowed on this record."""
    if not await can_access_record(db, user_id, data_type, action, resource_id):
        raise PermissionDenied()
