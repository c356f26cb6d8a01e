"""Tests for moderation actions (role change, suspend, ban, activate)."""

import pytest

from app.core.errors import AuthorizationError, NotFoundError
from app.core.permissions import Role
from app.services.moderation import ModerationService
from app.services.session import SessionManager
from app.services.token_ledger import RefreshTokenLedger
from app.services.user_store import UserStore


@pytest.fixture
def moderation(user_store: UserStore, token_ledger: RefreshTokenLedger) -> ModerationService:
    return ModerationService(user_store, token_ledger)


@pytest.fixture
async def admin(make_user):
    return await make_user("admin@example.com", "admin", role="ADMIN")


@pytest.fixture
async def moderator(make_user):
    return await make_user("mod@example.com", "moderator", role="MODERATOR")


@pytest.fixture
async def member(make_user):
    return await make_user("member@example.com", "member")


class TestChangeRole:
    async def test_admin_promotes_user(self, moderation: ModerationService, admin, member):
        updated = await moderation.change_role(member.user_id, Role.MODERATOR, admin)

        assert updated.role == "MODERATOR"

    async def test_cannot_change_own_role(self, moderation: ModerationService, admin):
        with pytest.raises(AuthorizationError, match="You cannot change your own role"):
            await moderation.change_role(admin.user_id, Role.USER, admin)

    async def test_cannot_change_equal_role(self, moderation: ModerationService, admin, make_user):
        other_admin = await make_user("admin2@example.com", "admin2", role="ADMIN")

        with pytest.raises(AuthorizationError, match="equal or higher role"):
            await moderation.change_role(other_admin.user_id, Role.USER, admin)

    async def test_missing_target(self, moderation: ModerationService, admin):
        with pytest.raises(NotFoundError, match="User not found"):
            await moderation.change_role(9999, Role.USER, admin)


class TestSuspendAndBan:
    async def test_suspend_revokes_sessions(
        self,
        moderation: ModerationService,
        session_manager: SessionManager,
        token_ledger: RefreshTokenLedger,
        moderator,
        member,
    ):
        await session_manager.login("member@example.com", "Password123")

        updated = await moderation.suspend_user(member.user_id, moderator, reason="spam")

        assert updated.status == "SUSPENDED"
        assert await token_ledger.get_active_sessions(member.user_id) == []

    async def test_moderator_cannot_suspend_moderator(
        self, moderation: ModerationService, moderator, make_user
    ):
        other = await make_user("mod2@example.com", "moderator2", role="MODERATOR")

        with pytest.raises(AuthorizationError, match="equal or higher role"):
            await moderation.suspend_user(other.user_id, moderator)

    async def test_cannot_suspend_self(self, moderation: ModerationService, moderator):
        with pytest.raises(AuthorizationError, match="You cannot suspend yourself"):
            await moderation.suspend_user(moderator.user_id, moderator)

    async def test_ban_revokes_sessions(
        self,
        moderation: ModerationService,
        session_manager: SessionManager,
        token_ledger: RefreshTokenLedger,
        admin,
        member,
    ):
        await session_manager.login("member@example.com", "Password123")

        updated = await moderation.ban_user(member.user_id, admin)

        assert updated.status == "BANNED"
        assert await token_ledger.get_active_sessions(member.user_id) == []

    async def test_admin_cannot_be_banned(self, moderation: ModerationService, admin, make_user):
        other_admin = await make_user("admin3@example.com", "admin3", role="ADMIN")

        with pytest.raises(AuthorizationError, match="Cannot ban an admin"):
            await moderation.ban_user(other_admin.user_id, admin)

    async def test_activate_lifts_ban(
        self, moderation: ModerationService, session_manager: SessionManager, admin, member
    ):
        await moderation.ban_user(member.user_id, admin)

        updated = await moderation.activate_user(member.user_id, admin)

        assert updated.status == "ACTIVE"
        assert await session_manager.login("member@example.com", "Password123")
