"""
Moderation actions on user accounts.

Role and status changes require an actor of strictly higher role than the
target and are never allowed on oneself. Suspending or banning a user revokes
all of their refresh tokens.
"""

from app.config import UserStatus
from app.core.errors import AuthorizationError, NotFoundError
from app.core.logging import get_logger
from app.core.permissions import Role, is_higher_role
from app.models.user import Users
from app.services.token_ledger import RefreshTokenLedger
from app.services.user_store import UserStore

logger = get_logger(__name__)


class ModerationService:
    def __init__(self, users: UserStore, tokens: RefreshTokenLedger):
        self.users = users
        self.tokens = tokens

    async def _load_target(self, user_id: int, actor: Users, self_message: str) -> Users:
        if user_id == actor.user_id:
            raise AuthorizationError(self_message)

        target = await self.users.find_by_id(user_id)
        if target is None:
            raise NotFoundError("User")
        return target

    async def change_role(self, user_id: int, new_role: Role, actor: Users) -> Users:
        """
        Assign a new role to a user.

        Raises:
            AuthorizationError: Self-change, or target role not strictly lower
            NotFoundError: Target does not exist
        """
        target = await self._load_target(user_id, actor, "You cannot change your own role")

        if not is_higher_role(actor.role, target.role):
            raise AuthorizationError("Cannot modify user with equal or higher role")

        updated = await self.users.update(user_id, role=Role(new_role).value)

        logger.info(
            "user_role_changed",
            user_id=user_id,
            old_role=target.role,
            new_role=Role(new_role).value,
            changed_by=actor.user_id,
        )
        return updated  # type: ignore[return-value]

    async def suspend_user(self, user_id: int, actor: Users, reason: str | None = None) -> Users:
        target = await self._load_target(user_id, actor, "You cannot suspend yourself")

        if not is_higher_role(actor.role, target.role):
            raise AuthorizationError("Cannot suspend user with equal or higher role")

        updated = await self.users.update(user_id, status=UserStatus.SUSPENDED.value)
        revoked = await self.tokens.revoke_all_for_user(user_id)

        logger.info(
            "user_suspended",
            user_id=user_id,
            suspended_by=actor.user_id,
            reason=reason,
            sessions_revoked=revoked,
        )
        return updated  # type: ignore[return-value]

    async def ban_user(self, user_id: int, actor: Users, reason: str | None = None) -> Users:
        """
        Ban a user. Admins can never be banned.

        Raises:
            AuthorizationError: Self-ban, target is an admin, or target role not
                strictly lower
            NotFoundError: Target does not exist
        """
        target = await self._load_target(user_id, actor, "You cannot ban yourself")

        if target.role == Role.ADMIN:
            raise AuthorizationError("Cannot ban an admin")
        if not is_higher_role(actor.role, target.role):
            raise AuthorizationError("Cannot ban user with equal or higher role")

        updated = await self.users.update(user_id, status=UserStatus.BANNED.value)
        revoked = await self.tokens.revoke_all_for_user(user_id)

        logger.info(
            "user_banned",
            user_id=user_id,
            banned_by=actor.user_id,
            reason=reason,
            sessions_revoked=revoked,
        )
        return updated  # type: ignore[return-value]

    async def activate_user(self, user_id: int, actor: Users) -> Users:
        """Lift a suspension or ban."""
        target = await self._load_target(user_id, actor, "You cannot activate yourself")

        if not is_higher_role(actor.role, target.role):
            raise AuthorizationError("Cannot modify user with equal or higher role")

        updated = await self.users.update(user_id, status=UserStatus.ACTIVE.value)

        logger.info("user_activated", user_id=user_id, activated_by=actor.user_id)
        return updated  # type: ignore[return-value]
