"""
Pydantic schemas for API responses and requests
"""
from app.models.user import UserBase  # Re-export from models
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LoginResult,
    MessageResponse,
    RegisterRequest,
    RegistrationResult,
    SessionListResponse,
    SessionResponse,
    TokenPair,
)
from app.schemas.user import (
    ChangeRoleRequest,
    ModerationRequest,
    StatusChangeResponse,
    UserResponse,
)

__all__ = [
    # Auth schemas
    "LoginRequest",
    "LoginResponse",
    "LoginResult",
    "MessageResponse",
    "RegisterRequest",
    "RegistrationResult",
    "SessionListResponse",
    "SessionResponse",
    "TokenPair",
    # User schemas
    "UserBase",
    "UserResponse",
    "ChangeRoleRequest",
    "ModerationRequest",
    "StatusChangeResponse",
]
