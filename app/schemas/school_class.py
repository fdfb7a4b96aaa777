"""Schemas for school classes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class SchoolClassCreate(BaseModel):
    """Schema for creating a new school class."""

    school_id: UUID
    teacher_id: UUID | None = None
    grade: int = Field(..., ge=1, le=12)
    section: str = Field(..., min_length=1, max_length=10)
    academic_year: str | None = Field(None, max_length=20)


class SchoolClassUpdate(BaseModel):
    """Schema for updating a school class."""

    teacher_id: UUID | None = None
    grade: int | None = Field(None, ge=1, le=12)
    section: str | None = Field(None, min_length=1, max_length=10)
    academic_year: str | None = Field(None, max_length=20)
    is_active: bool | None = None


class SchoolClassResponse(BaseModel):
    """School class response schema."""

    id: UUID
    school_id: UUID
    teacher_id: UUID | None
    grade: int
    section: str
    academic_year: str | None
    name: str  # Computed property like "Grade 1A"
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SchoolClassListResponse(BaseModel):
    """Paginated list of school classes."""

    items: list[SchoolClassResponse]
    total: int
    skip: int
    limit: int
