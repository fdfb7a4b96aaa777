"""Observation schemas."""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

Subject = Literal["language", "math"]


class ObservationCreate(BaseModel):
    """Schema for recording an observation."""

    school_id: UUID
    class_id: UUID | None = None
    visit_date: date
    subject: Subject
    notes: str | None = Field(None, max_length=5000)


class ObservationUpdate(BaseModel):
    """Schema for updating an observation."""

    class_id: UUID | None = None
    visit_date: date | None = None
    subject: Subject | None = None
    notes: str | None = Field(None, max_length=5000)


class ObservationResponse(BaseModel):
    """Observation response schema."""

    id: UUID
    school_id: UUID
    class_id: UUID | None
    created_by: UUID | None
    visit_date: date
    subject: str
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ObservationListResponse(BaseModel):
    """Paginated list of observations."""

    items: list[ObservationResponse]
    total: int
    skip: int
    limit: int
