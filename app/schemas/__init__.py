"""Pydantic schemas."""

from app.schemas.auth import (
    Token,
    TokenData,
    LoginRequest,
    RefreshRequest,
)
from app.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserListResponse,
    AssignmentCreate,
    AssignmentResponse,
    HierarchyResponse,
)

__all__ = [
    # Auth
    "Token",
    "TokenData",
    "LoginRequest",
    "RefreshRequest",
    # User
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserListResponse",
    "AssignmentCreate",
    "AssignmentResponse",
    "HierarchyResponse",
]
