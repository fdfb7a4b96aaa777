"""User model."""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column

from app.core.config import settings
from app.core.database import BaseModel, SoftDeleteMixin
from app.core.permissions import Role


class User(SoftDeleteMixin, BaseModel):
    """User model for authentication and authorization."""

    __tablename__ = "users"

    phone_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=Role.INTERN.value,
        index=True,
    )
    school_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("schools.id", ondelete="SET NULL"),
        nullable=True,  # NULL for regional staff and admins
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
    )

    @property
    def full_name(self) -> str:
        """Return the user's full name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def username(self) -> str:
        """Display name recorded in audit entries."""
        return self.full_name

    @property
    def is_admin(self) -> bool:
        """Check if user holds the global administrator role."""
        return self.role == settings.ADMIN_ROLE

    def __repr__(self) -> str:
        return f"<User(id={self.id}, phone={self.phone_number}, role={self.role})>"
