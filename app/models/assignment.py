"""Hierarchy assignment model."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint, Uuid, func, true
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import BaseModel


class HierarchyAssignment(BaseModel):
    """Grants one user access to one organizational node.

    Rows are never deleted: revoking sets ``is_active`` to False and
    re-granting flips it back.
    """

    __tablename__ = "hierarchy_assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "node_kind", "node_id", name="uq_assignment_user_node"),
    )

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    node_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    node_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    assigned_by: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<HierarchyAssignment(user={self.user_id}, {self.node_kind}={self.node_id})>"
