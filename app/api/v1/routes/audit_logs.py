"""Audit log routes."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query

from app.core.deps import AdminUser, DbSession, SystemClock
from app.core.permissions import AuditAction
from app.schemas.audit import AuditEntryListResponse, AuditEntryResponse, AuditSummaryResponse
from app.services import audit as audit_service

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


# ============== Endpoints ==============


@router.get("", response_model=AuditEntryListResponse)
async def list_audit_logs(
    db: DbSession,
    admin: AdminUser,
    actor_id: UUID | None = Query(None, description="Filter by acting user"),
    table_name: str | None = Query(None, description="Filter by table"),
    action: AuditAction | None = Query(None, description="Filter by action"),
    record_id: str | None = Query(None, description="Filter by record"),
    date_from: datetime | None = Query(None, description="Entries at or after"),
    date_to: datetime | None = Query(None, description="Entries at or before"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(50, ge=1, le=200, description="Max number of records"),
) -> AuditEntryListResponse:
    """List audit entries, newest first (admin only)."""
    entries, total = await audit_service.get_entries(
        db,
        skip=skip,
        limit=limit,
        actor_id=actor_id,
        table_name=table_name,
        action=action,
        record_id=record_id,
        date_from=date_from,
        date_to=date_to,
    )
    return AuditEntryListResponse(
        items=[AuditEntryResponse.model_validate(e) for e in entries],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/summary", response_model=AuditSummaryResponse)
async def audit_summary(
    db: DbSession,
    admin: AdminUser,
    clock: SystemClock,
    days: int = Query(7, ge=1, le=365, description="Window size in days"),
) -> AuditSummaryResponse:
    """Activity counts over the last few days (admin only)."""
    summary = await audit_service.get_summary(db, days, clock=clock)
    return AuditSummaryResponse(**summary)
