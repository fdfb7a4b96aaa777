"""Scope permission matrix model."""

from sqlalchemy import Boolean, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import BaseModel
from app.core.permissions import Action


class ScopePermission(BaseModel):
    """One row of the (role, data type, scope level) permission matrix."""

    __tablename__ = "role_data_scopes"
    __table_args__ = (
        UniqueConstraint("role_name", "data_type", "scope_level", name="uq_role_data_scope"),
    )

    role_name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    data_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    scope_level: Mapped[str] = mapped_column(String(20), nullable=False)
    can_view: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    can_create: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    can_update: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    can_delete: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    can_export: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())

    def allows(self, action: Action) -> bool:
        """Check the flag for an action."""
        return bool(getattr(self, action.column))

    def __repr__(self) -> str:
        return f"<ScopePermission({self.role_name}, {self.data_type}, {self.scope_level})>"
