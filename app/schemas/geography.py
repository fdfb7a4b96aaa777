"""Geography schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ZoneCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ProvinceCreate(BaseModel):
    zone_id: UUID | None = None
    name: str = Field(..., min_length=1, max_length=255)


class DistrictCreate(BaseModel):
    province_id: UUID
    name: str = Field(..., min_length=1, max_length=255)


class ZoneResponse(BaseModel):
    id: UUID
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ProvinceResponse(BaseModel):
    id: UUID
    zone_id: UUID | None
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class DistrictResponse(BaseModel):
    id: UUID
    province_id: UUID
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}
