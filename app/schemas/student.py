"""Student schemas."""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.validators import PhoneNumber

Gender = Literal["male", "female", "other"]


class StudentCreate(BaseModel):
    """Schema for creating a new student."""

    school_id: UUID
    class_id: UUID | None = None
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    gender: Gender | None = None
    date_of_birth: date | None = None

    # Guardian information
    guardian_name: str | None = Field(None, max_length=200)
    guardian_phone: PhoneNumber | None = None

    enrolled_at: date | None = None


class StudentUpdate(BaseModel):
    """Schema for updating a student."""

    class_id: UUID | None = None
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    gender: Gender | None = None
    date_of_birth: date | None = None
    guardian_name: str | None = Field(None, max_length=200)
    guardian_phone: PhoneNumber | None = None
    is_active: bool | None = None


class StudentResponse(BaseModel):
    """Student response schema."""

    id: UUID
    school_id: UUID
    class_id: UUID | None
    first_name: str
    last_name: str
    gender: str | None
    date_of_birth: date | None
    guardian_name: str | None
    guardian_phone: str | None
    enrolled_at: date | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StudentListResponse(BaseModel):
    """Paginated list of students."""

    items: list[StudentResponse]
    total: int
    skip: int
    limit: int
