"""
User moderation API endpoints.

Role changes and bans are admin-only; suspension and reactivation require the
user:suspend permission (moderators and admins). In every case the actor must
outrank the target.
"""

from fastapi import APIRouter

from app.core.auth import CurrentUser, Moderation
from app.core.permission_deps import RequireAdmin, RequireUserSuspend
from app.schemas.user import (
    ChangeRoleRequest,
    ModerationRequest,
    StatusChangeResponse,
    UserResponse,
)

router = APIRouter(prefix="/users", tags=["Users"])


@router.patch("/{user_id}/role", response_model=StatusChangeResponse)
async def change_user_role(
    user_id: int,
    body: ChangeRoleRequest,
    current_user: CurrentUser,
    moderation: Moderation,
    _: RequireAdmin,
) -> StatusChangeResponse:
    user = await moderation.change_role(user_id, body.role, current_user)
    return StatusChangeResponse(
        user=UserResponse.model_validate(user),
        message=f"User role changed to {user.role}",
    )


@router.post("/{user_id}/suspend", response_model=StatusChangeResponse)
async def suspend_user(
    user_id: int,
    current_user: CurrentUser,
    moderation: Moderation,
    _: RequireUserSuspend,
    body: ModerationRequest | None = None,
) -> StatusChangeResponse:
    """Suspend a user and revoke all of their sessions."""
    user = await moderation.suspend_user(user_id, current_user, body.reason if body else None)
    return StatusChangeResponse(user=UserResponse.model_validate(user), message="User suspended")


@router.post("/{user_id}/ban", response_model=StatusChangeResponse)
async def ban_user(
    user_id: int,
    current_user: CurrentUser,
    moderation: Moderation,
    _: RequireAdmin,
    body: ModerationRequest | None = None,
) -> StatusChangeResponse:
    """Ban a user and revoke all of their sessions. Admins cannot be banned."""
    user = await moderation.ban_user(user_id, current_user, body.reason if body else None)
    return StatusChangeResponse(user=UserResponse.model_validate(user), message="User banned")


@router.post("/{user_id}/activate", response_model=StatusChangeResponse)
async def activate_user(
    user_id: int,
    current_user: CurrentUser,
    moderation: Moderation,
    _: RequireUserSuspend,
) -> StatusChangeResponse:
    user = await moderation.activate_user(user_id, current_user)
    return StatusChangeResponse(user=UserResponse.model_validate(user), message="User activated")
