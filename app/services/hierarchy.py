"""Hierarchy resolver and assignment management."""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import atomic
from app.core.exceptions import NotFound, PermissionDenied
from app.core.permissions import (
    FALLBACK_HIERARCHY_LEVEL,
    AuditAction,
    NodeKind,
    grantable_node_kinds,
)
from app.models import (
    District,
    HierarchyAssignment,
    Province,
    RoleDefinition,
    School,
    SchoolClass,
    User,
    Zone,
)
from app.services import audit as audit_service
from app.services.audit import AuditContext

logger = logging.getLogger(__name__)

NODE_MODELS = {
    NodeKind.ZONE: Zone,
    NodeKind.PROVINCE: Province,
    NodeKind.DISTRICT: District,
    NodeKind.SCHOOL: School,
    NodeKind.CLASS: SchoolClass,
}


@dataclass(frozen=True)
class HierarchyProfile:
    """A user's role metadata and the nodes they can reach."""

    user_id: UUID
    role: str
    hierarchy_level: int
    can_manage_hierarchy: bool
    max_hierarchy_depth: int
    is_global: bool = False
    zones: frozenset[UUID] = field(default_factory=frozenset)
    provinces: frozenset[UUID] = field(default_factory=frozenset)
    districts: frozenset[UUID] = field(default_factory=frozenset)
    schools: frozenset[UUID] = field(default_factory=frozenset)
    classes: frozenset[UUID] = field(default_factory=frozenset)

    def nodes(self, kind: NodeKind) -> frozenset[UUID]:
        """Accessible node ids of one kind."""
        return {
            NodeKind.ZONE: self.zones,
            NodeKind.PROVINCE: self.provinces,
            NodeKind.DISTRICT: self.districts,
            NodeKind.SCHOOL: self.schools,
            NodeKind.CLASS: self.classes,
        }[kind]

    def can_grant(self, target: "HierarchyProfile", kind: NodeKind) -> bool:
        """Check if this user may assign ``kind`` nodes to ``target``."""
        if self.is_global:
            return True
        if target.hierarchy_level <= self.hierarchy_level:
            return False
        return kind in grantable_node_kinds(self.can_manage_hierarchy, self.max_hierarchy_depth)


async def resolve(db: AsyncSession, user_id: UUID) -> HierarchyProfile | None:
    """Load a user's hierarchy profile. Returns None for unknown users.

    Deleted and deactivated users resolve to None as well, so every check
    made on their behalf is denied. Nothing is cached between calls.
    """
    result = await db.execute(
        select(
            User.id,
            User.role,
            RoleDefinition.hierarchy_level,
            RoleDefinition.can_manage_hierarchy,
            RoleDefinition.max_hierarchy_depth,
        )
        .outerjoin(RoleDefinition, RoleDefinition.name == User.role)
        .where(
            User.id == user_id,
            User.is_deleted.is_(False),
            User.is_active.is_(True),
        )
    )
    row = result.one_or_none()
    if row is None:
        return None

    if row.role == settings.ADMIN_ROLE:
        return HierarchyProfile(
            user_id=row.id,
            role=row.role,
            hierarchy_level=row.hierarchy_level or 1,
            can_manage_hierarchy=True,
            max_hierarchy_depth=999,
            is_global=True,
        )

    assignments = await db.execute(
        select(HierarchyAssignment.node_kind, HierarchyAssignment.node_id).where(
            HierarchyAssignment.user_id == user_id,
            HierarchyAssignment.is_active.is_(True),
        )
    )
    nodes: dict[NodeKind, set[UUID]] = {kind: set() for kind in NodeKind}
    for node_kind, node_id in assignments.all():
        try:
            nodes[NodeKind(node_kind)].add(node_id)
        except ValueError:
            logger.warning("Ignoring assignment with unknown node kind %r", node_kind)

    return HierarchyProfile(
        user_id=row.id,
        role=row.role,
        hierarchy_level=(
            row.hierarchy_level if row.hierarchy_level is not None else FALLBACK_HIERARCHY_LEVEL
        ),
        can_manage_hierarchy=bool(row.can_manage_hierarchy),
        max_hierarchy_depth=row.max_hierarchy_depth or 0,
        zones=frozenset(nodes[NodeKind.ZONE]),
        provinces=frozenset(nodes[NodeKind.PROVINCE]),
        districts=frozenset(nodes[NodeKind.DISTRICT]),
        schools=frozenset(nodes[NodeKind.SCHOOL]),
        classes=frozenset(nodes[NodeKind.CLASS]),
    )


async def require_profile(db: AsyncSession, user_id: UUID) -> HierarchyProfile:
    """Resolve or raise NotFound."""
    profile = await resolve(db, user_id)
    if profile is None:
        raise NotFound("User not found")
    return profile


async def get_assignment_by_id(db: AsyncSession, assignment_id: UUID) -> HierarchyAssignment | None:
    """Get assignment by ID."""
    result = await db.execute(
        select(HierarchyAssignment).where(HierarchyAssignment.id == assignment_id)
    )
    return result.scalar_one_or_none()


async def list_assignments(
    db: AsyncSession,
    user_id: UUID,
    *,
    include_inactive: bool = False,
) -> list[HierarchyAssignment]:
    """Get a user's assignments, newest first."""
    query = select(HierarchyAssignment).where(HierarchyAssignment.user_id == user_id)
    if not include_inactive:
        query = query.where(HierarchyAssignment.is_active.is_(True))
    result = await db.execute(query.order_by(HierarchyAssignment.assigned_at.desc()))
    return list(result.scalars().all())


async def _node_exists(db: AsyncSession, kind: NodeKind, node_id: UUID) -> bool:
    model = NODE_MODELS[kind]
    query = select(model.id).where(model.id == node_id)
    if hasattr(model, "is_deleted"):
        query = query.where(model.is_deleted.is_(False))
    result = await db.execute(query)
    return result.scalar_one_or_none() is not None


async def assign(
    db: AsyncSession,
    ctx: AuditContext,
    user_id: UUID,
    node_kind: NodeKind,
    node_id: UUID,
) -> HierarchyAssignment:
    """Grant a user access to a node, reactivating a previous grant if any."""
    actor = await resolve(db, ctx.actor_id)
    if actor is None:
        raise PermissionDenied()
    target = await require_profile(db, user_id)
    if not actor.can_grant(target, node_kind):
        raise PermissionDenied()
    if not await _node_exists(db, node_kind, node_id):
        raise NotFound(f"{node_kind.value.capitalize()} not found")

    result = await db.execute(
        select(HierarchyAssignment).where(
            HierarchyAssignment.user_id == user_id,
            HierarchyAssignment.node_kind == node_kind.value,
            HierarchyAssignment.node_id == node_id,
        )
    )
    assignment = result.scalar_one_or_none()

    async with atomic(db):
        if assignment is None:
            assignment = HierarchyAssignment(
                user_id=user_id,
                node_kind=node_kind.value,
                node_id=node_id,
                assigned_by=ctx.actor_id,
                is_active=True,
            )
            db.add(assignment)
            await db.flush()
            await audit_service.log(
                db,
                ctx,
                AuditAction.CREATE,
                HierarchyAssignment.__tablename__,
                assignment.id,
                new_data=audit_service.snapshot(assignment),
                summary=f"Assigned user {user_id} to {node_kind.value} {node_id}",
            )
        elif not assignment.is_active:
            before = audit_service.snapshot(assignment)
            assignment.is_active = True
            assignment.assigned_by = ctx.actor_id
            await db.flush()
            await audit_service.log(
                db,
                ctx,
                AuditAction.UPDATE,
                HierarchyAssignment.__tablename__,
                assignment.id,
                old_data=before,
                new_data=audit_service.snapshot(assignment),
                summary=f"Reactivated assignment of user {user_id} to {node_kind.value} {node_id}",
            )

    logger.info("User %s assigned to %s %s by %s", user_id, node_kind.value, node_id, ctx.actor_id)
    return assignment


async def revoke(
    db: AsyncSession,
    ctx: AuditContext,
    assignment_id: UUID,
) -> HierarchyAssignment:
    """Deactivate an assignment. The row is kept for history."""
    assignment = await get_assignment_by_id(db, assignment_id)
    if assignment is None:
        raise NotFound("Assignment not found")

    actor = await resolve(db, ctx.actor_id)
    target = await resolve(db, assignment.user_id)
    if actor is None:
        raise PermissionDenied()
    # Assignments of deactivated users can only be cleaned up by admins
    if target is None:
        if not actor.is_global:
            raise PermissionDenied()
    elif not actor.can_grant(target, NodeKind(assignment.node_kind)):
        raise PermissionDenied()

    if not assignment.is_active:
        return assignment

    async with atomic(db):
        before = audit_service.snapshot(assignment)
        assignment.is_active = False
        await db.flush()
        await audit_service.log(
            db,
            ctx,
            AuditAction.UPDATE,
            HierarchyAssignment.__tablename__,
            assignment.id,
            old_data=before,
            new_data=audit_service.snapshot(assignment),
            summary=(
                f"Revoked assignment of user {assignment.user_id} "
                f"to {assignment.node_kind} {assignment.node_id}"
            ),
        )

    logger.info("Assignment %s revoked by %s", assignment_id, ctx.actor_id)
    return assignment


async def role_level(db: AsyncSession, role_name: str) -> int:
    """Hierarchy level of a role name, with the fallback for unknown roles."""
    result = await db.execute(
        select(RoleDefinition.hierarchy_level).where(RoleDefinition.name == role_name)
    )
    level = result.scalar_one_or_none()
    return level if level is not None else FALLBACK_HIERARCHY_LEVEL
