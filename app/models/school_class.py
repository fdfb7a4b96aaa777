"""SchoolClass model."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import BaseModel, SoftDeleteMixin


class SchoolClass(SoftDeleteMixin, BaseModel):
    """SchoolClass model - the lowest node of the hierarchy."""

    __tablename__ = "classes"
    __table_args__ = (
        UniqueConstraint("school_id", "grade", "section", name="uq_school_grade_section"),
    )

    school_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    grade: Mapped[int] = mapped_column(nullable=False)  # 1-6
    section: Mapped[str] = mapped_column(String(10), nullable=False)  # A, B, C, etc.
    academic_year: Mapped[str | None] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(default=True)

    # Relationships
    school: Mapped["School"] = relationship("School", back_populates="classes")
    students: Mapped[list["Student"]] = relationship("Student", back_populates="school_class")

    @property
    def name(self) -> str:
        """Return class name like 'Grade 1A'."""
        return f"Grade {self.grade}{self.section}"


from app.models.school import School
from app.models.student import Student
