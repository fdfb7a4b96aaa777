"""Dependencies for FastAPI routes."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, get_clock
from app.core.database import get_db
from app.core.exceptions import PermissionDenied
from app.core.permissions import Action, DataType
from app.core.security import decode_access_token
from app.models.user import User
from app.services import access as access_service
from app.services.audit import AuditContext

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login/form")


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get current authenticated user from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None or payload.get("type") != "access":
        raise credentials_exception

    user_id: str | None = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    try:
        uuid_id = UUID(user_id)
    except ValueError:
        raise credentials_exception

    result = await db.execute(
        select(User).where(User.id == uuid_id, User.is_deleted.is_(False))
    )
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
        )

    return user


# Common dependency aliases
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
SystemClock = Annotated[Clock, Depends(get_clock)]


async def get_audit_context(request: Request, current_user: CurrentUser) -> AuditContext:
    """Actor identity and client details for audit entries."""
    return AuditContext(
        actor_id=current_user.id,
        actor_username=current_user.username,
        actor_role=current_user.role,
        ip_address=client_ip(request),
        user_agent=(request.headers.get("user-agent") or "")[:500] or None,
    )


Audit = Annotated[AuditContext, Depends(get_audit_context)]


def client_ip(request: Request) -> str | None:
    """Client address, honoring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


def require_access(data_type: DataType, action: Action):
    """Dependency factory: listing-level check of the scope matrix."""

    async def access_checker(
        current_user: CurrentUser,
        db: DbSession,
    ) -> User:
        if not await access_service.can_access(db, current_user.id, data_type, action):
            raise PermissionDenied()
        return current_user

    return access_checker


async def require_admin(current_user: CurrentUser) -> User:
    """Only the global administrator role."""
    if not current_user.is_admin:
        raise PermissionDenied()
    return current_user


AdminUser = Annotated[User, Depends(require_admin)]
