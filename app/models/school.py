"""School model."""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import BaseModel, SoftDeleteMixin


class School(SoftDeleteMixin, BaseModel):
    """School - the main organizational node below a district.

    Zone and province are denormalized from the district so scope checks and
    listing filters never need to walk the geography tables.
    """

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), unique=True)
    address: Mapped[str | None] = mapped_column(String(500))
    phone: Mapped[str | None] = mapped_column(String(50))

    zone_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("zones.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    province_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("provinces.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    district_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("districts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
    )

    # Relationships
    classes: Mapped[list["SchoolClass"]] = relationship("SchoolClass", back_populates="school")
    students: Mapped[list["Student"]] = relationship("Student", back_populates="school")

    def __repr__(self) -> str:
        return f"<School(id={self.id}, name={self.name})>"
