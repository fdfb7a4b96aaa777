"""Scope permission matrix routes."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.core.deps import AdminUser, Audit, CurrentUser, DbSession
from app.core.permissions import DataType
from app.schemas.permission import (
    AccessCheckRequest,
    AccessCheckResponse,
    ScopePermissionResponse,
    ScopePermissionUpsert,
)
from app.services import access as access_service
from app.services import permission as permission_service

router = APIRouter(prefix="/permissions", tags=["Permissions"])


# ============== Endpoints ==============


@router.get("/matrix", response_model=list[ScopePermissionResponse])
async def get_matrix(
    db: DbSession,
    admin: AdminUser,
    role_name: str | None = Query(None, description="Filter by role"),
    data_type: DataType | None = Query(None, description="Filter by data type"),
) -> list[ScopePermissionResponse]:
    """Get the scope permission matrix (admin only)."""
    entries = await permission_service.get_matrix(
        db,
        role_name=role_name,
        data_type=data_type.value if data_type else None,
    )
    return [ScopePermissionResponse.model_validate(e) for e in entries]


@router.put("/matrix", response_model=ScopePermissionResponse)
async def set_matrix_entry(
    entry_data: ScopePermissionUpsert,
    db: DbSession,
    admin: AdminUser,
    ctx: Audit,
) -> ScopePermissionResponse:
    """Create or replace the row for a role, data type and scope level (admin only)."""
    entry = await permission_service.set_entry(db, ctx, entry_data)
    return ScopePermissionResponse.model_validate(entry)


@router.delete("/matrix/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_matrix_entry(
    entry_id: UUID,
    db: DbSession,
    admin: AdminUser,
    ctx: Audit,
) -> None:
    """Remove a matrix row (admin only)."""
    await permission_service.delete_entry(db, ctx, entry_id)


@router.post("/check", response_model=AccessCheckResponse)
async def check_access(
    check: AccessCheckRequest,
    db: DbSession,
    current_user: CurrentUser,
) -> AccessCheckResponse:
    """Ask whether the current user may perform an action."""
    allowed = await access_service.can_access(
        db,
        current_user.id,
        check.data_type,
        check.action,
        check.resource_id,
        record_level=True,
    )
    return AccessCheckResponse(allowed=allowed)
