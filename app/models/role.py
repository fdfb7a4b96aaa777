"""Role metadata model."""

from sqlalchemy import Boolean, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import BaseModel


class RoleDefinition(BaseModel):
    """Hierarchy metadata for a role name. One row per role."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    hierarchy_level: Mapped[int] = mapped_column(Integer, nullable=False)  # lower = more authority
    can_manage_hierarchy: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
    )
    max_hierarchy_depth: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    def __repr__(self) -> str:
        return f"<RoleDefinition(name={self.name}, level={self.hierarchy_level})>"
