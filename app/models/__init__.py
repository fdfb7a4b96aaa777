# Database models

from app.models.geography import District, Province, Zone
from app.models.school import School
from app.models.school_class import SchoolClass
from app.models.user import User
from app.models.student import Student
from app.models.observation import Observation
from app.models.training import TrainingParticipant, TrainingSession
from app.models.role import RoleDefinition
from app.models.assignment import HierarchyAssignment
from app.models.scope_permission import ScopePermission
from app.models.audit import AuditEntry, DeletedRecord

__all__ = [
    "Zone",
    "Province",
    "District",
    "School",
    "SchoolClass",
    "User",
    "Student",
    "Observation",
    "TrainingSession",
    "TrainingParticipant",
    "RoleDefinition",
    "HierarchyAssignment",
    "ScopePermission",
    "AuditEntry",
    "DeletedRecord",
]
