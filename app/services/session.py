"""
Session manager: registration, login, refresh-token rotation and logout.

The manager is constructed with an explicit credential store and token ledger
(both wrapping the request's database session), keeps no state between calls
and re-reads the store for every decision. It raises typed errors from
app.core.errors and never builds HTTP responses.

Refresh token lifecycle:
    LIVE -> REVOKED   (logout, rotation, password change, reuse detection)
    LIVE -> EXPIRED   (computed: expires_at < now)
Neither terminal state can be left. Presenting a REVOKED token is treated as
evidence of theft and revokes every live token of its owner.
"""

import math
from datetime import UTC, datetime, timedelta

from app.config import DISABLED_STATUSES, UserStatus, settings
from app.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.security import (
    check_password,
    create_access_token,
    create_refresh_token,
    create_reset_token,
    create_verification_token,
    get_password_strength_feedback,
    hash_password,
    hash_token,
    is_valid_email,
    is_valid_username,
)
from app.models.refresh_token import RefreshTokens
from app.models.user import Users
from app.schemas.auth import LoginResult, RegistrationResult, TokenPair
from app.schemas.user import UserResponse
from app.services.token_ledger import RefreshTokenLedger
from app.services.user_store import UserStore

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
PASSWORD_RESET_REQUESTED = "If the email exists, a reset link has been sent"


def _now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _validate_new_password(password: str) -> None:
    feedback = get_password_strength_feedback(password)
    if feedback:
        raise ValidationError("Password does not meet requirements", feedback)


def _status_error(status: str) -> AuthenticationError | None:
    if status == UserStatus.BANNED:
        return AuthenticationError("Your account has been banned")
    if status == UserStatus.SUSPENDED:
        return AuthenticationError("Your account is currently suspended")
    return None


class SessionManager:
    """Orchestrates the authentication and session lifecycle."""

    def __init__(self, users: UserStore, tokens: RefreshTokenLedger):
        self.users = users
        self.tokens = tokens

    async def register(
        self,
        email: str,
        username: str,
        password: str,
        display_name: str | None = None,
    ) -> RegistrationResult:
        """
        Create a PENDING_VERIFICATION account.

        No session tokens are issued; the caller delivers the verification token
        out of band.

        Raises:
            ValidationError: Malformed email/username or weak password
            ConflictError: Email or username already registered
        """
        if not is_valid_email(email):
            raise ValidationError("Invalid email format")
        if not is_valid_username(username):
            raise ValidationError(
                "Username must be 3-30 characters, start with a letter, and contain "
                "only letters, numbers, underscores, or hyphens"
            )
        _validate_new_password(password)

        if await self.users.email_exists(email):
            raise ConflictError("Email is already registered")
        if await self.users.username_exists(username):
            raise ConflictError("Username is already taken")

        password_hash = await hash_password(password)
        user = await self.users.create(
            email=email,
            username=username,
            password_hash=password_hash,
            display_name=(display_name or "").strip() or username,
            verify_token=create_verification_token(),
        )

        logger.info("user_registered", user_id=user.user_id, email=user.email)

        return RegistrationResult(
            user=UserResponse.model_validate(user),
            message="Registration successful. Please verify your email.",
        )

    async def login(
        self,
        email: str,
        password: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> LoginResult:
        """
        Authenticate with email and password and open a new session.

        Flow:
        1. Unknown email fails with the same message as a wrong password
        2. A locked account fails before the password is compared
        3. A wrong password bumps the failure counter, locking at the threshold
        4. Only after a correct password is the account status checked
        5. Counters are reset and an access/refresh pair is issued

        Raises:
            AuthenticationError: On any of the failures above
        """
        user = await self.users.find_by_email(email)
        if user is None or user.user_id is None:
            raise AuthenticationError(INVALID_CREDENTIALS)

        now = _now()
        if user.lockout_until and user.lockout_until > now:
            minutes_left = math.ceil((user.lockout_until - now).total_seconds() / 60)
            raise AuthenticationError(
                f"Account locked. Please try again in {minutes_left} minutes."
            )

        if not await check_password(password, user.password_hash):
            failed = await self.users.increment_failed_logins(user.user_id)
            if failed >= settings.MAX_FAILED_LOGINS:
                await self.users.lock(user.user_id, now + timedelta(minutes=settings.LOCKOUT_MINUTES))
                logger.warning("account_locked", user_id=user.user_id, failed_attempts=failed)
            raise AuthenticationError(INVALID_CREDENTIALS)

        status_error = _status_error(user.status)
        if status_error is not None:
            raise status_error

        logged_in = await self.users.record_login(user.user_id, ip_address)
        if logged_in is None:
            raise AuthenticationError(INVALID_CREDENTIALS)
        user = logged_in
        access_token, refresh_token, _ = await self._issue_tokens(user, user_agent, ip_address)

        logger.info("user_logged_in", user_id=user.user_id, ip_address=ip_address)

        return LoginResult(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        )

    async def refresh(
        self,
        refresh_token: str | None,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenPair:
        """
        Exchange a refresh token for a new access/refresh pair (rotation).

        The presented token is revoked with replaced_by pointing at its
        successor. If the token was already revoked, or a concurrent request
        revokes it first, all of the owner's sessions are revoked.

        Raises:
            AuthenticationError: Missing, unknown, revoked, expired token or
                inactive owner
        """
        if not refresh_token:
            raise AuthenticationError("Refresh token not provided")

        token_hash = hash_token(refresh_token)
        stored = await self.tokens.find_by_hash(token_hash)
        if stored is None:
            raise AuthenticationError("Invalid refresh token")

        if stored.revoked_at is not None:
            await self._handle_reuse(stored)

        if stored.expires_at < _now():
            raise AuthenticationError("Refresh token expired")

        user = await self.users.find_by_id(stored.user_id)
        if user is None or user.status in DISABLED_STATUSES:
            raise AuthenticationError("Account is not active")

        access_token = create_access_token(user.user_id, user.email, user.role)  # type: ignore[arg-type]
        new_refresh_token = create_refresh_token()
        new_hash = hash_token(new_refresh_token)

        # Successor is persisted before the revoke so a losing rotation's
        # revoke-all also covers it
        await self.tokens.create(
            token_hash=new_hash,
            user_id=stored.user_id,
            user_agent=user_agent,
            ip_address=ip_address,
            expires_at=_now() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

        # Conditional revoke decides the winner among concurrent rotations
        if not await self.tokens.revoke(token_hash, replaced_by=new_hash):
            await self._handle_reuse(stored)

        logger.debug("token_refreshed", user_id=user.user_id)

        return TokenPair(access_token=access_token, refresh_token=new_refresh_token)

    async def logout(self, refresh_token: str | None) -> None:
        """Revoke one session. Idempotent: missing or unknown tokens are ignored."""
        if not refresh_token:
            return
        await self.tokens.revoke(hash_token(refresh_token))
        logger.debug("user_logged_out")

    async def logout_all(self, user_id: int) -> int:
        """Revoke every live session of a user; returns how many were revoked."""
        revoked = await self.tokens.revoke_all_for_user(user_id)
        logger.info("user_logged_out_everywhere", user_id=user_id, revoked=revoked)
        return revoked

    async def change_password(
        self, user_id: int, current_password: str, new_password: str
    ) -> str:
        """
        Change a password after re-verifying the current one.

        All refresh tokens are revoked, forcing a new login on every device.

        Raises:
            NotFoundError: User does not exist
            AuthenticationError: Current password is wrong
            ValidationError: New password is weak
        """
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User")

        if not await check_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        _validate_new_password(new_password)

        password_hash = await hash_password(new_password)
        await self.users.update(user_id, password_hash=password_hash)
        await self.tokens.revoke_all_for_user(user_id)

        logger.info("password_changed", user_id=user_id)

        return "Password changed successfully"

    async def request_password_reset(self, email: str) -> str:
        """
        Issue a one-hour reset token for an existing account.

        The returned message is the same whether or not the email exists.
        """
        user = await self.users.find_by_email(email)
        if user is not None and user.user_id is not None:
            await self.users.update(
                user.user_id,
                reset_token=create_reset_token(),
                reset_token_expires_at=_now()
                + timedelta(hours=settings.PASSWORD_RESET_EXPIRE_HOURS),
            )
            logger.info("password_reset_requested", user_id=user.user_id)

        return PASSWORD_RESET_REQUESTED

    async def reset_password(self, token: str, new_password: str) -> str:
        """
        Set a new password using a reset token.

        Clears the token, resets the lockout state and revokes all sessions.

        Raises:
            ValidationError: Weak password, or unknown/expired token
        """
        _validate_new_password(new_password)

        user = await self.users.find_by_reset_token(token) if token else None
        if user is None or user.user_id is None:
            raise ValidationError("Invalid or expired reset token")

        password_hash = await hash_password(new_password)
        await self.users.update(
            user.user_id,
            password_hash=password_hash,
            reset_token=None,
            reset_token_expires_at=None,
            failed_login_attempts=0,
            lockout_until=None,
        )
        await self.tokens.revoke_all_for_user(user.user_id)

        logger.info("password_reset_completed", user_id=user.user_id)

        return "Password reset successful. Please login with your new password."

    async def verify_email(self, token: str) -> UserResponse:
        """
        Confirm an email address and activate the account.

        Raises:
            ValidationError: No account carries this verification token
        """
        user = await self.users.find_by_verify_token(token) if token else None
        if user is None or user.user_id is None:
            raise ValidationError("Invalid or expired verification token")

        # Never lift a moderation status by verifying
        new_status = user.status
        if user.status == UserStatus.PENDING_VERIFICATION:
            new_status = UserStatus.ACTIVE.value

        updated = await self.users.update(
            user.user_id, email_verified=True, verify_token=None, status=new_status
        )

        logger.info("email_verified", user_id=user.user_id)

        return UserResponse.model_validate(updated)

    async def get_active_sessions(self, user_id: int) -> list[RefreshTokens]:
        return await self.tokens.get_active_sessions(user_id)

    async def _issue_tokens(
        self, user: Users, user_agent: str | None, ip_address: str | None
    ) -> tuple[str, str, RefreshTokens]:
        access_token = create_access_token(user.user_id, user.email, user.role)  # type: ignore[arg-type]
        refresh_token = create_refresh_token()
        record = await self.tokens.create(
            token_hash=hash_token(refresh_token),
            user_id=user.user_id,  # type: ignore[arg-type]
            user_agent=user_agent,
            ip_address=ip_address,
            expires_at=_now() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
        return access_token, refresh_token, record

    async def _handle_reuse(self, stored: RefreshTokens) -> None:
        """Revoke every session of the token's owner and reject the request."""
        revoked = await self.tokens.revoke_all_for_user(stored.user_id)
        logger.warning(
            "refresh_token_reuse_detected",
            user_id=stored.user_id,
            token_id=stored.id,
            revoked=revoked,
        )
        raise AuthenticationError("Token has been revoked")
