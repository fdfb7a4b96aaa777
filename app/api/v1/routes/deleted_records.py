"""Deleted-record and restore routes."""

from uuid import UUID

from fastapi import APIRouter, Query

from app.core.deps import AdminUser, Audit, DbSession, SystemClock
from app.core.permissions import DataType
from app.schemas.audit import (
    DeletedRecordListResponse,
    DeletedRecordResponse,
    DeletionStatsResponse,
    RestoreRequest,
    RestoreResponse,
)
from app.services import deleted_records as deleted_records_service
from app.services.deleted_records import DeletionState

router = APIRouter(prefix="/deleted-records", tags=["Deleted records"])


def _to_response(entry, state: DeletionState) -> DeletedRecordResponse:
    return DeletedRecordResponse(
        id=entry.id,
        table_name=entry.table_name,
        record_id=entry.record_id,
        original_data=entry.original_data,
        deleted_by=entry.deleted_by,
        deleted_by_username=entry.deleted_by_username,
        delete_reason=entry.delete_reason,
        deleted_at=entry.deleted_at,
        retention_period_days=entry.retention_period_days,
        expires_at=entry.expires_at,
        is_restored=entry.is_restored,
        restored_at=entry.restored_at,
        restored_by=entry.restored_by,
        state=state.value,
        is_still_restorable=state == DeletionState.RESTORABLE,
    )


# ============== Endpoints ==============


@router.get("", response_model=DeletedRecordListResponse)
async def list_deleted_records(
    db: DbSession,
    admin: AdminUser,
    clock: SystemClock,
    table_name: DataType | None = Query(None, description="Filter by table"),
    show_expired: bool = Query(False, description="Include entries past retention"),
    include_restored: bool = Query(False, description="Include restored entries"),
    limit: int = Query(50, ge=1, le=200, description="Max number of records"),
) -> DeletedRecordListResponse:
    """List deleted records with their restore window (admin only)."""
    entries = await deleted_records_service.list_deleted(
        db,
        table_name=table_name.value if table_name else None,
        show_expired=show_expired,
        include_restored=include_restored,
        limit=limit,
        clock=clock,
    )
    items = [_to_response(entry, state) for entry, state in entries]
    return DeletedRecordListResponse(items=items, total=len(items))


@router.get("/stats", response_model=DeletionStatsResponse)
async def deletion_stats(
    db: DbSession,
    admin: AdminUser,
    clock: SystemClock,
) -> DeletionStatsResponse:
    """Counts of deleted records by state and table (admin only)."""
    stats = await deleted_records_service.deletion_stats(db, clock=clock)
    return DeletionStatsResponse(**stats)


@router.post("/{deleted_record_id}/restore", response_model=RestoreResponse)
async def restore_record(
    deleted_record_id: UUID,
    db: DbSession,
    ctx: Audit,
    clock: SystemClock,
    restore_data: RestoreRequest | None = None,
) -> RestoreResponse:
    """
    Restore a soft-deleted record.

    - 404 if the entry does not exist
    - 409 if it was already restored or its retention period has ended
    - 403 unless the user may update records of that table
    """
    reason = restore_data.reason if restore_data else None
    restored = await deleted_records_service.restore(
        db, ctx, deleted_record_id, reason, clock=clock
    )
    entry = await deleted_records_service.get_deleted_record_by_id(db, deleted_record_id)
    return RestoreResponse(
        deleted_record_id=deleted_record_id,
        table_name=entry.table_name,
        record_id=entry.record_id,
        restored_data=restored,
    )
