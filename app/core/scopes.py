"""Resource scope registry.

Each data type declares once how its rows map onto the organizational
hierarchy: which column holds the owning node of each kind, which column
identifies the record's owner for ``self`` scope, and how long a deleted row
stays restorable. The access engine, the filter builder and the soft-delete
workflow all read from here.
"""

from dataclasses import dataclass, field
from typing import Any

from app.core.config import settings
from app.core.permissions import DataType, NodeKind
from app.core.predicates import NodeColumn
from app.models import (
    Observation,
    School,
    SchoolClass,
    Student,
    TrainingParticipant,
    TrainingSession,
    User,
)


@dataclass(frozen=True)
class ResourceScope:
    """How one data type resolves its owning nodes."""

    data_type: DataType
    model: Any
    node_columns: dict[NodeKind, NodeColumn] = field(default_factory=dict)
    owner: NodeColumn | None = None
    # Owner may always see its own row when any matrix row grants the action
    owner_implicit: bool = False
    # (foreign key, parent data type) pairs that must be live for a restore
    parents: tuple[tuple[Any, DataType], ...] = ()
    retention_days: int | None = None

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    def node_column(self, kind: NodeKind) -> NodeColumn | None:
        return self.node_columns.get(kind)

    @property
    def retention_period_days(self) -> int:
        """Default retention for rows of this table, settings override first."""
        override = settings.RETENTION_OVERRIDES.get(self.table_name)
        if override is not None:
            return override
        return self.retention_days or settings.DEFAULT_RETENTION_DAYS


def _via_school(fk: Any) -> dict[NodeKind, NodeColumn]:
    """Zone, province and district reached through a school foreign key."""
    return {
        NodeKind.ZONE: NodeColumn(School.zone_id, via=(fk,)),
        NodeKind.PROVINCE: NodeColumn(School.province_id, via=(fk,)),
        NodeKind.DISTRICT: NodeColumn(School.district_id, via=(fk,)),
        NodeKind.SCHOOL: NodeColumn(fk),
    }


_REGISTRY: dict[str, ResourceScope] = {}


def register(scope: ResourceScope) -> ResourceScope:
    _REGISTRY[scope.data_type.value] = scope
    return scope


register(
    ResourceScope(
        data_type=DataType.SCHOOLS,
        model=School,
        node_columns={
            NodeKind.ZONE: NodeColumn(School.zone_id),
            NodeKind.PROVINCE: NodeColumn(School.province_id),
            NodeKind.DISTRICT: NodeColumn(School.district_id),
            NodeKind.SCHOOL: NodeColumn(School.id),
        },
        retention_days=90,
    )
)

register(
    ResourceScope(
        data_type=DataType.CLASSES,
        model=SchoolClass,
        node_columns={
            **_via_school(SchoolClass.school_id),
            NodeKind.CLASS: NodeColumn(SchoolClass.id),
        },
        owner=NodeColumn(SchoolClass.teacher_id),
        parents=((SchoolClass.school_id, DataType.SCHOOLS),),
        retention_days=60,
    )
)

register(
    ResourceScope(
        data_type=DataType.USERS,
        model=User,
        node_columns=_via_school(User.school_id),
        owner=NodeColumn(User.id),
        owner_implicit=True,
        parents=((User.school_id, DataType.SCHOOLS),),
        retention_days=90,
    )
)

register(
    ResourceScope(
        data_type=DataType.STUDENTS,
        model=Student,
        node_columns={
            **_via_school(Student.school_id),
            NodeKind.CLASS: NodeColumn(Student.class_id),
        },
        parents=((Student.school_id, DataType.SCHOOLS), (Student.class_id, DataType.CLASSES)),
        retention_days=60,
    )
)

register(
    ResourceScope(
        data_type=DataType.OBSERVATIONS,
        model=Observation,
        node_columns={
            **_via_school(Observation.school_id),
            NodeKind.CLASS: NodeColumn(Observation.class_id),
        },
        owner=NodeColumn(Observation.created_by),
        parents=(
            (Observation.school_id, DataType.SCHOOLS),
            (Observation.class_id, DataType.CLASSES),
        ),
        retention_days=60,
    )
)

register(
    ResourceScope(
        data_type=DataType.TRAINING_SESSIONS,
        model=TrainingSession,
        node_columns=_via_school(TrainingSession.school_id),
        owner=NodeColumn(TrainingSession.created_by),
        parents=((TrainingSession.school_id, DataType.SCHOOLS),),
        retention_days=30,
    )
)

_session = TrainingParticipant.session_id
register(
    ResourceScope(
        data_type=DataType.TRAINING_PARTICIPANTS,
        model=TrainingParticipant,
        node_columns={
            NodeKind.ZONE: NodeColumn(School.zone_id, via=(_session, TrainingSession.school_id)),
            NodeKind.PROVINCE: NodeColumn(School.province_id, via=(_session, TrainingSession.school_id)),
            NodeKind.DISTRICT: NodeColumn(School.district_id, via=(_session, TrainingSession.school_id)),
            NodeKind.SCHOOL: NodeColumn(TrainingSession.school_id, via=(_session,)),
        },
        parents=((_session, DataType.TRAINING_SESSIONS),),
        retention_days=30,
    )
)


def get_scope(data_type: str | DataType) -> ResourceScope | None:
    """Look up the registry entry for a data type / table name."""
    key = data_type.value if isinstance(data_type, DataType) else data_type
    return _REGISTRY.get(key)

