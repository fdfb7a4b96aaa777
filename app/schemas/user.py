"""User schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.permissions import NodeKind, Role
from app.schemas.validators import PhoneNumber


class UserCreate(BaseModel):
    """Schema for creating a new user."""

    phone_number: PhoneNumber
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: Role = Role.INTERN
    school_id: UUID | None = None


class UserUpdate(BaseModel):
    """Schema for updating a user."""

    phone_number: PhoneNumber | None = None
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    role: Role | None = None
    school_id: UUID | None = None
    is_active: bool | None = None


class UserResponse(BaseModel):
    """User response schema."""

    id: UUID
    phone_number: str
    first_name: str
    last_name: str
    role: str
    school_id: UUID | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    """Paginated list of users."""

    items: list[UserResponse]
    total: int
    skip: int
    limit: int


class AssignmentCreate(BaseModel):
    """Grant a user access to one node."""

    node_kind: NodeKind
    node_id: UUID


class AssignmentResponse(BaseModel):
    """Hierarchy assignment response schema."""

    id: UUID
    user_id: UUID
    node_kind: NodeKind
    node_id: UUID
    assigned_by: UUID | None
    assigned_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}


class HierarchyResponse(BaseModel):
    """Role metadata and reachable nodes of a user."""

    user_id: UUID
    role: str
    hierarchy_level: int
    can_manage_hierarchy: bool
    max_hierarchy_depth: int
    is_global: bool
    zones: list[UUID]
    provinces: list[UUID]
    districts: list[UUID]
    schools: list[UUID]
    classes: list[UUID]
    grantable_node_kinds: list[NodeKind]
