"""Training session schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.validators import PhoneNumber


class TrainingSessionCreate(BaseModel):
    """Schema for scheduling a training session."""

    title: str = Field(..., min_length=1, max_length=255)
    school_id: UUID | None = None
    venue: str | None = Field(None, max_length=255)
    starts_at: datetime
    max_participants: int = Field(default=50, ge=1, le=1000)


class TrainingSessionResponse(BaseModel):
    """Training session response schema."""

    id: UUID
    title: str
    school_id: UUID | None
    venue: str | None
    starts_at: datetime
    max_participants: int
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TrainingSessionListResponse(BaseModel):
    """Paginated list of training sessions."""

    items: list[TrainingSessionResponse]
    total: int
    skip: int
    limit: int


class ParticipantCreate(BaseModel):
    """Schema for registering a participant."""

    full_name: str = Field(..., min_length=1, max_length=200)
    phone: PhoneNumber | None = None
    organization: str | None = Field(None, max_length=255)


class ParticipantResponse(BaseModel):
    """Training participant response schema."""

    id: UUID
    session_id: UUID
    full_name: str
    phone: str | None
    organization: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
