"""School schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class SchoolCreate(BaseModel):
    """Schema for creating a new school."""

    name: str = Field(..., min_length=1, max_length=255)
    code: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=50)
    zone_id: UUID | None = None
    province_id: UUID | None = None
    district_id: UUID | None = None


class SchoolUpdate(BaseModel):
    """Schema for updating a school."""

    name: str | None = Field(None, min_length=1, max_length=255)
    code: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=50)
    zone_id: UUID | None = None
    province_id: UUID | None = None
    district_id: UUID | None = None
    is_active: bool | None = None


class SchoolResponse(BaseModel):
    """School response schema."""

    id: UUID
    name: str
    code: str | None
    address: str | None
    phone: str | None
    zone_id: UUID | None
    province_id: UUID | None
    district_id: UUID | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SchoolListResponse(BaseModel):
    """Paginated list of schools."""

    items: list[SchoolResponse]
    total: int
    skip: int
    limit: int
