"""User service."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.permissions import DataType, Role
from app.core.security import get_password_hash
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate
from app.services import audit as audit_service
from app.services import records
from app.services.audit import AuditContext
from app.services.scope_filter import ScopeFilter


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    """Get user by ID."""
    return await records.get_active(db, User, user_id)


async def get_user_by_phone(db: AsyncSession, phone_number: str) -> User | None:
    """Get user by phone number, including deleted ones."""
    result = await db.execute(
        select(User).where(User.phone_number == phone_number)
    )
    return result.scalar_one_or_none()


async def get_users(
    db: AsyncSession,
    scope_filter: ScopeFilter,
    *,
    school_id: UUID | None = None,
    role: Role | None = None,
    is_active: bool | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[User], int]:
    """Get list of users visible through ``scope_filter``."""
    query = select(User).where(User.is_deleted.is_(False))

    # Apply filters
    if school_id is not None:
        query = query.where(User.school_id == school_id)
    if role is not None:
        query = query.where(User.role == role.value)
    if is_active is not None:
        query = query.where(User.is_active == is_active)
    if search:
        query = query.where(
            User.first_name.ilike(f"%{search}%")
            | User.last_name.ilike(f"%{search}%")
            | User.phone_number.ilike(f"%{search}%")
        )

    return await records.paginate(
        db, query, scope_filter, order_by=[User.created_at.desc()], skip=skip, limit=limit
    )


async def create_user(db: AsyncSession, ctx: AuditContext, user_data: UserCreate) -> User:
    """Create a new user."""
    user = User(
        phone_number=user_data.phone_number,
        password_hash=get_password_hash(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        role=user_data.role.value,
        school_id=user_data.school_id,
    )
    return await records.create_scoped(
        db, ctx, DataType.USERS, user, f"Created {user.role} {user.full_name}"
    )


async def update_user(
    db: AsyncSession,
    ctx: AuditContext,
    user: User,
    user_data: UserUpdate,
) -> User:
    """Update a user."""
    changes = user_data.model_dump(exclude_unset=True)
    if changes.get("role") is not None:
        changes["role"] = Role(changes["role"]).value
    return await records.update_scoped(
        db, ctx, DataType.USERS, user, changes, f"Updated user {user.full_name}"
    )


async def delete_user(
    db: AsyncSession,
    ctx: AuditContext,
    user: User,
    *,
    reason: str | None = None,
    clock: Clock = system_clock,
) -> bool:
    """Soft-delete a user. Their assignments stay but no longer resolve."""
    return await audit_service.soft_delete(
        db, ctx, User.__tablename__, user.id, reason, clock=clock
    )
