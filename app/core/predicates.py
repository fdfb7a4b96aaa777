"""Structured filter predicates.

Scope filters are built as a small tree of tagged nodes and only turned into
SQL at the edge, with bound parameters. The same tree can be evaluated in
Python against a record's resolved column values.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import ColumnElement, and_, false, or_, select, true


@dataclass(frozen=True, eq=False)
class NodeColumn:
    """A column that holds a node id for a resource.

    ``via`` lists foreign keys followed from the resource table outward to
    the table that owns ``column``. Empty means ``column`` is on the resource
    table itself.
    """

    column: Any
    via: tuple[Any, ...] = ()

    @property
    def key(self) -> str:
        hops = "".join(f"{fk.class_.__tablename__}.{fk.key}>" for fk in self.via)
        return f"{hops}{self.column.class_.__tablename__}.{self.column.key}"

    def _targets(self) -> list[Any]:
        """Mapped class each ``via`` hop points at."""
        return [fk.class_ for fk in self.via[1:]] + [self.column.class_]

    def in_(self, ids: Iterable[Any]) -> ColumnElement[bool]:
        """Render ``resource IN ids`` following the ``via`` chain with subqueries."""
        condition = self.column.in_(list(ids))
        for fk, target in reversed(list(zip(self.via, self._targets()))):
            condition = fk.in_(select(target.id).where(condition))
        return condition

    def lookup(self, model: Any, record_id: Any):
        """Select the node value for one resource row."""
        if not self.via:
            return select(self.column).where(model.id == record_id)
        current = select(self.via[0]).where(model.id == record_id).scalar_subquery()
        for fk, target in zip(self.via[1:], self._targets()[:-1]):
            current = select(fk).where(target.id == current).scalar_subquery()
        return select(self.column).where(self.column.class_.id == current)


class Predicate:
    """Base class for filter predicates."""

    def to_sql(self) -> ColumnElement[bool]:
        raise NotImplementedError

    def evaluate(self, resolve: Callable[[NodeColumn], Any]) -> bool:
        raise NotImplementedError


@dataclass(eq=False)
class Always(Predicate):
    def to_sql(self) -> ColumnElement[bool]:
        return true()

    def evaluate(self, resolve: Callable[[NodeColumn], Any]) -> bool:
        return True


@dataclass(eq=False)
class Never(Predicate):
    def to_sql(self) -> ColumnElement[bool]:
        return false()

    def evaluate(self, resolve: Callable[[NodeColumn], Any]) -> bool:
        return False


@dataclass(eq=False)
class InSet(Predicate):
    target: NodeColumn
    ids: frozenset[Any]

    def to_sql(self) -> ColumnElement[bool]:
        if not self.ids:
            return false()
        return self.target.in_(sorted(self.ids, key=str))

    def evaluate(self, resolve: Callable[[NodeColumn], Any]) -> bool:
        value = resolve(self.target)
        return value is not None and value in self.ids


@dataclass(eq=False)
class Or(Predicate):
    preds: list[Predicate] = field(default_factory=list)

    def to_sql(self) -> ColumnElement[bool]:
        if not self.preds:
            return false()
        return or_(*(p.to_sql() for p in self.preds))

    def evaluate(self, resolve: Callable[[NodeColumn], Any]) -> bool:
        return any(p.evaluate(resolve) for p in self.preds)


@dataclass(eq=False)
class And(Predicate):
    preds: list[Predicate] = field(default_factory=list)

    def to_sql(self) -> ColumnElement[bool]:
        if not self.preds:
            return true()
        return and_(*(p.to_sql() for p in self.preds))

    def evaluate(self, resolve: Callable[[NodeColumn], Any]) -> bool:
        return all(p.evaluate(resolve) for p in self.preds)


def any_of(preds: list[Predicate]) -> Predicate:
    """OR-combine, collapsing the trivial cases."""
    preds = [p for p in preds if not isinstance(p, Never)]
    if not preds:
        return Never()
    if any(isinstance(p, Always) for p in preds):
        return Always()
    if len(preds) == 1:
        return preds[0]
    return Or(preds)
