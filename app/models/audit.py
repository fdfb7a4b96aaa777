"""Audit ledger models."""

from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from app.core.clock import as_utc
from app.core.database import BaseModel, JSONType


class AuditEntry(BaseModel):
    """Append-only record of one state-changing (or notable read) action."""

    __tablename__ = "audit_entries"

    actor_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True, index=True)
    actor_username: Mapped[str | None] = mapped_column(String(200))
    actor_role: Mapped[str | None] = mapped_column(String(50))
    action: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    table_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    record_id: Mapped[str | None] = mapped_column(String(64), index=True)
    old_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    new_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    changes_summary: Mapped[str] = mapped_column(Text, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(500))

    def __repr__(self) -> str:
        return f"<AuditEntry({self.action} {self.table_name}:{self.record_id})>"


class DeletedRecord(BaseModel):
    """Tombstone of a soft-deleted row. Written once, stamped once on restore."""

    __tablename__ = "deleted_records"

    table_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    record_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    original_data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    deleted_by: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    deleted_by_username: Mapped[str | None] = mapped_column(String(200))
    delete_reason: Mapped[str | None] = mapped_column(Text)
    deleted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    retention_period_days: Mapped[int] = mapped_column(Integer, nullable=False)
    restored_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    restored_by: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    is_restored: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
    )

    @property
    def expires_at(self) -> datetime:
        """Moment after which the record can no longer be restored."""
        return as_utc(self.deleted_at) + timedelta(days=self.retention_period_days)

    def is_still_restorable(self, now: datetime) -> bool:
        """Check restorability at ``now``. Computed on read, never swept."""
        return not self.is_restored and as_utc(now) < self.expires_at

    def __repr__(self) -> str:
        return f"<DeletedRecord({self.table_name}:{self.record_id}, restored={self.is_restored})>"
