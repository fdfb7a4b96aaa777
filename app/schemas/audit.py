"""Audit log and deleted-record schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class AuditEntryResponse(BaseModel):
    """Audit entry response schema."""

    id: UUID
    actor_id: UUID | None
    actor_username: str | None
    actor_role: str | None
    action: str
    table_name: str
    record_id: str | None
    old_data: dict[str, Any] | None
    new_data: dict[str, Any] | None
    changes_summary: str
    ip_address: str | None
    user_agent: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditEntryListResponse(BaseModel):
    """Paginated list of audit entries."""

    items: list[AuditEntryResponse]
    total: int
    skip: int
    limit: int


class AuditSummaryResponse(BaseModel):
    days: int
    total: int
    by_action: dict[str, int]
    by_table: dict[str, int]
    unique_actors: int


class DeletedRecordResponse(BaseModel):
    """Deleted-record entry with its computed restore window."""

    id: UUID
    table_name: str
    record_id: UUID
    original_data: dict[str, Any]
    deleted_by: UUID | None
    deleted_by_username: str | None
    delete_reason: str | None
    deleted_at: datetime
    retention_period_days: int
    expires_at: datetime
    is_restored: bool
    restored_at: datetime | None
    restored_by: UUID | None
    state: str
    is_still_restorable: bool

    model_config = {"from_attributes": True}


class DeletedRecordListResponse(BaseModel):
    items: list[DeletedRecordResponse]
    total: int


class DeletionStatsResponse(BaseModel):
    total: int
    pending: int
    restored: int
    expired: int
    affected_tables: int
    by_table: dict[str, dict[str, int]]


class RestoreRequest(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class RestoreResponse(BaseModel):
    """Outcome of a restore, with the row as it now stands."""

    deleted_record_id: UUID
    table_name: str
    record_id: UUID
    restored_data: dict[str, Any]
