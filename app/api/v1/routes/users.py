"""User routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.deps import Audit, CurrentUser, DbSession, SystemClock, require_access
from app.core.exceptions import NotFound, PermissionDenied
from app.core.permissions import Action, DataType, Role, grantable_node_kinds
from app.schemas.user import (
    AssignmentCreate,
    AssignmentResponse,
    HierarchyResponse,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from app.services import access as access_service
from app.services import audit as audit_service
from app.services import hierarchy as hierarchy_service
from app.services import scope_filter as scope_filter_service
from app.services import user as user_service

router = APIRouter(prefix="/users", tags=["Users"])

# Fields a user may not change on their own account
SELF_LOCKED_FIELDS = {"role", "is_active", "school_id"}


# ============== Helper Functions ==============


async def ensure_can_grant_role(
    db, actor_id: UUID, role: Role, current_role: str | None = None
) -> None:
    """Non-admins may only hand out roles below their own level.

    When changing an existing user, that user must also rank below the actor.
    """
    actor = await hierarchy_service.require_profile(db, actor_id)
    if actor.is_global:
        return
    if await hierarchy_service.role_level(db, role.value) <= actor.hierarchy_level:
        raise PermissionDenied()
    if current_role is not None:
        if await hierarchy_service.role_level(db, current_role) <= actor.hierarchy_level:
            raise PermissionDenied()


async def _get_user_or_404(db, user_id: UUID):
    user = await user_service.get_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user


# ============== Endpoints ==============


@router.get(
    "",
    response_model=UserListResponse,
    dependencies=[Depends(require_access(DataType.USERS, Action.VIEW))],
)
async def list_users(
    db: DbSession,
    current_user: CurrentUser,
    ctx: Audit,
    school_id: UUID | None = Query(None, description="Filter by school ID"),
    role: Role | None = Query(None, description="Filter by role"),
    is_active: bool | None = Query(None, description="Filter by active status"),
    search: str | None = Query(None, description="Search by name or phone"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> UserListResponse:
    """
    List users inside the current user's scope.

    - Regional staff see users of schools in their zones, provinces and districts
    - Everyone sees their own account
    """
    scope_filter = await scope_filter_service.build_filter(db, current_user.id, DataType.USERS)
    users, total = await user_service.get_users(
        db,
        scope_filter,
        school_id=school_id,
        role=role,
        is_active=is_active,
        search=search,
        skip=skip,
        limit=limit,
    )
    response = UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        skip=skip,
        limit=limit,
    )
    await audit_service.log_read(db, ctx, "users", f"Listed {len(users)} of {total} users")
    return response


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: CurrentUser) -> UserResponse:
    """Get current user's information."""
    return UserResponse.model_validate(current_user)


@router.get("/me/hierarchy", response_model=HierarchyResponse)
async def get_my_hierarchy(
    db: DbSession,
    current_user: CurrentUser,
) -> HierarchyResponse:
    """Role metadata and the nodes the current user can reach."""
    profile = await hierarchy_service.require_profile(db, current_user.id)
    return HierarchyResponse(
        user_id=profile.user_id,
        role=profile.role,
        hierarchy_level=profile.hierarchy_level,
        can_manage_hierarchy=profile.can_manage_hierarchy,
        max_hierarchy_depth=profile.max_hierarchy_depth,
        is_global=profile.is_global,
        zones=sorted(profile.zones, key=str),
        provinces=sorted(profile.provinces, key=str),
        districts=sorted(profile.districts, key=str),
        schools=sorted(profile.schools, key=str),
        classes=sorted(profile.classes, key=str),
        grantable_node_kinds=grantable_node_kinds(
            profile.can_manage_hierarchy, profile.max_hierarchy_depth
        ),
    )


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_access(DataType.USERS, Action.CREATE))],
)
async def create_user(
    user_data: UserCreate,
    db: DbSession,
    ctx: Audit,
) -> UserResponse:
    """
    Create a new user.

    - The new user's role must rank below the creator's (admins excepted)
    - The new user's school must be inside the creator's scope
    """
    await ensure_can_grant_role(db, ctx.actor_id, user_data.role)

    existing = await user_service.get_user_by_phone(db, user_data.phone_number)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phone number already registered",
        )

    user = await user_service.create_user(db, ctx, user_data)
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
) -> UserResponse:
    """Get a specific user by ID."""
    user = await _get_user_or_404(db, user_id)
    await access_service.ensure_record_access(
        db, current_user.id, DataType.USERS, Action.VIEW, user_id
    )
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    db: DbSession,
    current_user: CurrentUser,
    ctx: Audit,
) -> UserResponse:
    """Update a user. Users may edit their own profile but not their role or status."""
    user = await _get_user_or_404(db, user_id)
    await access_service.ensure_record_access(
        db, current_user.id, DataType.USERS, Action.UPDATE, user_id
    )

    changes = user_data.model_dump(exclude_unset=True)
    if user_id == current_user.id and not current_user.is_admin:
        if SELF_LOCKED_FIELDS & changes.keys():
            raise PermissionDenied()
    if user_data.role is not None:
        await ensure_can_grant_role(db, current_user.id, user_data.role, user.role)

    if user_data.phone_number and user_data.phone_number != user.phone_number:
        existing = await user_service.get_user_by_phone(db, user_data.phone_number)
        if existing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Phone number already registered",
            )

    updated = await user_service.update_user(db, ctx, user, user_data)
    return UserResponse.model_validate(updated)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
    ctx: Audit,
    clock: SystemClock,
    reason: str | None = Query(None, max_length=1000, description="Why the user is removed"),
) -> None:
    """Soft-delete a user. Users cannot delete themselves."""
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete yourself",
        )
    user = await _get_user_or_404(db, user_id)
    await access_service.ensure_record_access(
        db, current_user.id, DataType.USERS, Action.DELETE, user_id
    )
    await user_service.delete_user(db, ctx, user, reason=reason, clock=clock)


@router.get("/{user_id}/assignments", response_model=list[AssignmentResponse])
async def list_assignments(
    user_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
    include_inactive: bool = Query(False, description="Include revoked assignments"),
) -> list[AssignmentResponse]:
    """List a user's hierarchy assignments."""
    await _get_user_or_404(db, user_id)
    await access_service.ensure_record_access(
        db, current_user.id, DataType.USERS, Action.VIEW, user_id
    )
    assignments = await hierarchy_service.list_assignments(
        db, user_id, include_inactive=include_inactive
    )
    return [AssignmentResponse.model_validate(a) for a in assignments]


@router.post(
    "/{user_id}/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_assignment(
    user_id: UUID,
    assignment_data: AssignmentCreate,
    db: DbSession,
    ctx: Audit,
) -> AssignmentResponse:
    """
    Assign a user to a hierarchy node.

    - Admins can assign anything
    - Managers can assign users ranked below them, at the node kinds their
      role's depth allows
    """
    assignment = await hierarchy_service.assign(
        db, ctx, user_id, assignment_data.node_kind, assignment_data.node_id
    )
    return AssignmentResponse.model_validate(assignment)


@router.delete(
    "/{user_id}/assignments/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def revoke_assignment(
    user_id: UUID,
    assignment_id: UUID,
    db: DbSession,
    ctx: Audit,
) -> None:
    """Deactivate an assignment. The row is kept for history."""
    assignment = await hierarchy_service.get_assignment_by_id(db, assignment_id)
    if assignment is None or assignment.user_id != user_id:
        raise NotFound("Assignment not found")
    await hierarchy_service.revoke(db, ctx, assignment_id)
