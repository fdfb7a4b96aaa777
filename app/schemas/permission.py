"""Scope permission matrix schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.permissions import Action, DataType, ScopeLevel


class ScopePermissionUpsert(BaseModel):
    """One matrix row, identified by role, data type and scope level."""

    role_name: str = Field(..., min_length=1, max_length=50)
    data_type: DataType
    scope_level: ScopeLevel
    can_view: bool = False
    can_create: bool = False
    can_update: bool = False
    can_delete: bool = False
    can_export: bool = False


class ScopePermissionResponse(BaseModel):
    """Matrix row response schema."""

    id: UUID
    role_name: str
    data_type: str
    scope_level: str
    can_view: bool
    can_create: bool
    can_update: bool
    can_delete: bool
    can_export: bool
    updated_at: datetime

    model_config = {"from_attributes": True}


class AccessCheckRequest(BaseModel):
    """Ask whether the current user may act on a data type or record."""

    data_type: DataType
    action: Action
    resource_id: UUID | None = None


class AccessCheckResponse(BaseModel):
    allowed: bool
