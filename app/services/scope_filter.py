"""Query filter builder.

Derives a row predicate from the same matrix rows and registry entries the
access engine uses, so a listing shows exactly the rows the engine allows
record by record.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Action, DataType, NodeKind, ScopeLevel
from app.core.predicates import Always, InSet, Never, Predicate, any_of
from app.core.scopes import ResourceScope, get_scope
from app.services import hierarchy
from app.services.access import granting_rows, parse_scope_level
from app.services.hierarchy import HierarchyProfile


@dataclass
class ScopeFilter:
    """Predicate restricting a data type's rows to what a user may see."""

    predicate: Predicate
    scope: ResourceScope | None = None

    @property
    def matches_nothing(self) -> bool:
        return isinstance(self.predicate, Never)

    @property
    def matches_everything(self) -> bool:
        return isinstance(self.predicate, Always)

    def apply(self, query: Select[Any]) -> Select[Any]:
        """AND the predicate into a select."""
        if self.matches_everything:
            return query
        return query.where(self.predicate.to_sql())


async def build_filter_for(
    db: AsyncSession,
    profile: HierarchyProfile,
    data_type: str | DataType,
    action: Action = Action.VIEW,
) -> ScopeFilter:
    scope = get_scope(data_type)
    if profile.is_global:
        return ScopeFilter(Always(), scope)
    if scope is None:
        return ScopeFilter(Never(), scope)

    rows = await granting_rows(db, profile, data_type, action)
    clauses: dict[str, Predicate] = {}

    if rows and scope.owner_implicit and scope.owner is not None:
        clauses["owner"] = InSet(scope.owner, frozenset({profile.user_id}))

    for row in rows:
        level = parse_scope_level(row)
        if level is None or level == ScopeLevel.GLOBAL:
            continue
        if level == ScopeLevel.SELF:
            if scope.owner is not None:
                clauses["owner"] = InSet(scope.owner, frozenset({profile.user_id}))
            continue

        kind: NodeKind = level.node_kind
        column = scope.node_column(kind)
        nodes = profile.nodes(kind)
        if column is None or not nodes:
            continue
        clauses[kind.value] = InSet(column, nodes)

    return ScopeFilter(any_of(list(clauses.values())), scope)


async def build_filter(
    db: AsyncSession,
    user_id: UUID,
    data_type: str | DataType,
    action: Action = Action.VIEW,
) -> ScopeFilter:
    """Filter for a user's listing of ``data_type``. Unknown users see nothing."""
    profile = await hierarchy.resolve(db, user_id)
    if profile is None:
        return ScopeFilter(Never(), get_scope(data_type))
    return await build_filter_for(db, profile, data_type, action)
