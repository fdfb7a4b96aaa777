"""Roles, data types, scope levels and the default scope permission matrix."""

from enum import Enum


class Role(str, Enum):
    """User roles in the system."""

    ADMIN = "admin"  # Global access, bypasses the matrix
    DIRECTOR = "director"  # Regional management
    PARTNER = "partner"  # Same reach as director
    COORDINATOR = "coordinator"  # School-level program staff
    TEACHER = "teacher"  # Class-level access
    COLLECTOR = "collector"  # Field data collection
    INTERN = "intern"  # Read-only, limited


class NodeKind(str, Enum):
    """Organizational node kinds, top to bottom."""

    ZONE = "zone"
    PROVINCE = "province"
    DISTRICT = "district"
    SCHOOL = "school"
    CLASS = "class"


# Top of the hierarchy first
NODE_KIND_ORDER: list[NodeKind] = [
    NodeKind.ZONE,
    NodeKind.PROVINCE,
    NodeKind.DISTRICT,
    NodeKind.SCHOOL,
    NodeKind.CLASS,
]


class ScopeLevel(str, Enum):
    """Granularity at which a scope permission applies."""

    GLOBAL = "global"
    SELF = "self"
    ZONE = "zone"
    PROVINCE = "province"
    DISTRICT = "district"
    SCHOOL = "school"
    CLASS = "class"

    @property
    def node_kind(self) -> NodeKind | None:
        """Node kind this scope is evaluated against, if any."""
        try:
            return NodeKind(self.value)
        except ValueError:
            return None


class Action(str, Enum):
    """Actions checked against the matrix."""

    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    EXPORT = "export"

    @property
    def column(self) -> str:
        """Name of the matrix flag for this action."""
        return f"can_{self.value}"


class DataType(str, Enum):
    """Logical data types. Values are the backing table names."""

    SCHOOLS = "schools"
    CLASSES = "classes"
    USERS = "users"
    STUDENTS = "students"
    OBSERVATIONS = "observations"
    TRAINING_SESSIONS = "training_sessions"
    TRAINING_PARTICIPANTS = "training_participants"


class AuditAction(str, Enum):
    """Kinds of audit entries."""

    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RESTORE = "RESTORE"


# name -> (hierarchy_level, can_manage_hierarchy, max_hierarchy_depth)
ROLE_DEFINITIONS: dict[Role, tuple[int, bool, int]] = {
    Role.ADMIN: (1, True, 999),
    Role.DIRECTOR: (2, True, 3),
    Role.PARTNER: (2, True, 3),
    Role.TEACHER: (3, False, 1),
    Role.COLLECTOR: (3, False, 0),
    Role.COORDINATOR: (3, False, 1),
    Role.INTERN: (4, False, 0),
}

# Applied when a user's role has no row in the roles table
FALLBACK_HIERARCHY_LEVEL = 3


def _flags(view=False, create=False, update=False, delete=False, export=False) -> dict[str, bool]:
    return {
        "can_view": view,
        "can_create": create,
        "can_update": update,
        "can_delete": delete,
        "can_export": export,
    }


_REGIONAL = (ScopeLevel.ZONE, ScopeLevel.PROVINCE, ScopeLevel.DISTRICT)
_MANAGE = _flags(view=True, create=True, update=True, export=True)
_MANAGE_NO_CREATE = _flags(view=True, update=True, export=True)
_OWN_PROFILE = _flags(view=True, update=True)

# (role, data_type, scope_level) -> action flags
DEFAULT_SCOPE_PERMISSIONS: list[tuple[Role, DataType, ScopeLevel, dict[str, bool]]] = [
    # Director - regional management
    *[(Role.DIRECTOR, DataType.SCHOOLS, level, _MANAGE) for level in _REGIONAL],
    *[(Role.DIRECTOR, DataType.USERS, level, _MANAGE) for level in _REGIONAL],
    *[(Role.DIRECTOR, DataType.STUDENTS, level, _MANAGE_NO_CREATE) for level in _REGIONAL],
    *[(Role.DIRECTOR, DataType.CLASSES, level, _MANAGE) for level in _REGIONAL],
    *[(Role.DIRECTOR, DataType.TRAINING_SESSIONS, level, _flags(True, True, True, True, True)) for level in _REGIONAL],
    # Partner - like director, without students
    *[(Role.PARTNER, DataType.SCHOOLS, level, _MANAGE) for level in _REGIONAL],
    *[(Role.PARTNER, DataType.USERS, level, _MANAGE) for level in _REGIONAL],
    # Teacher - class level
    (Role.TEACHER, DataType.STUDENTS, ScopeLevel.CLASS, _MANAGE),
    (Role.TEACHER, DataType.OBSERVATIONS, ScopeLevel.CLASS, _flags(view=True, create=True, update=True)),
    (Role.TEACHER, DataType.USERS, ScopeLevel.SELF, _OWN_PROFILE),
    # Collector - data collection
    (Role.COLLECTOR, DataType.OBSERVATIONS, ScopeLevel.SCHOOL, _MANAGE),
    (Role.COLLECTOR, DataType.OBSERVATIONS, ScopeLevel.SELF, _flags(view=True, update=True)),
    (Role.COLLECTOR, DataType.SCHOOLS, ScopeLevel.SCHOOL, _flags(view=True)),
    (Role.COLLECTOR, DataType.USERS, ScopeLevel.SELF, _OWN_PROFILE),
    # Coordinator - school level
    (Role.COORDINATOR, DataType.STUDENTS, ScopeLevel.SCHOOL, _MANAGE),
    (Role.COORDINATOR, DataType.OBSERVATIONS, ScopeLevel.SCHOOL, _MANAGE),
    (Role.COORDINATOR, DataType.CLASSES, ScopeLevel.SCHOOL, _flags(view=True)),
    (Role.COORDINATOR, DataType.TRAINING_SESSIONS, ScopeLevel.SCHOOL, _MANAGE),
    (Role.COORDINATOR, DataType.TRAINING_PARTICIPANTS, ScopeLevel.SCHOOL, _MANAGE),
    (Role.COORDINATOR, DataType.USERS, ScopeLevel.SELF, _OWN_PROFILE),
    # Intern - limited
    (Role.INTERN, DataType.OBSERVATIONS, ScopeLevel.SCHOOL, _flags(view=True)),
    (Role.INTERN, DataType.USERS, ScopeLevel.SELF, _OWN_PROFILE),
]


def grantable_node_kinds(can_manage_hierarchy: bool, max_hierarchy_depth: int) -> list[NodeKind]:
    """Node kinds a manager may assign: the lowest ``max_hierarchy_depth`` kinds."""
    if not can_manage_hierarchy or max_hierarchy_depth <= 0:
        return []
    return NODE_KIND_ORDER[-max_hierarchy_depth:]
