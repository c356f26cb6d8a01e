"""
Security utilities for authentication.

This module provides:
- Input validation for registration (email, username, password strength)
- Password hashing and verification using bcrypt
- JWT access token generation and verification
- Opaque token generation and hashing (refresh, verification, reset)
"""

import asyncio
import base64
import hashlib
import re
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.config import settings

EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# 3-30 chars, starts with a letter, then letters/digits/underscore/hyphen
USERNAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]{2,29}$")


def is_valid_email(email: str | None) -> bool:
    """Check email format and length."""
    if not email or not isinstance(email, str):
        return False
    return bool(EMAIL_PATTERN.fullmatch(email)) and len(email) <= EMAIL_MAX_LEN


def is_valid_username(username: str | None) -> bool:
    """Check username format (3-30 chars, leading letter)."""
    if not username or not isinstance(username, str):
        return False
    return bool(USERNAME_PATTERN.fullmatch(username))


def get_password_strength_feedback(password: str | None) -> list[str]:
    """
    List every password rule the given password fails.

    Requirements:
    - 8 to 128 characters
    - Contains at least one letter
    - Contains at least one digit

    Args:
        password: The password to validate

    Returns:
        List of human-readable messages, empty if the password is acceptable
    """
    password = password or ""
    feedback = []

    if len(password) < PASSWORD_MIN_LEN:
        feedback.append(f"Password must be at least {PASSWORD_MIN_LEN} characters")
    if len(password) > PASSWORD_MAX_LEN:
        feedback.append(f"Password must be at most {PASSWORD_MAX_LEN} characters")
    if not re.search(r"[a-zA-Z]", password):
        feedback.append("Password must contain at least one letter")
    if not re.search(r"\d", password):
        feedback.append("Password must contain at least one number")

    return feedback


def is_strong_password(password: str | None) -> bool:
    return not get_password_strength_feedback(password)


def _prepare_password_for_bcrypt(password: str) -> str:
    """
    Prepare password for bcrypt by handling long passwords.

    Bcrypt has a 72 byte limit. For passwords longer than 72 bytes,
    we SHA256 hash them first and encode as base64.

    Args:
        password: The plain text password

    Returns:
        Password ready for bcrypt (guaranteed <= 72 bytes)
    """
    password_bytes = password.encode("utf-8")

    if len(password_bytes) <= 72:
        return password

    # SHA256 produces 32 bytes, base64 encoding produces 44 chars (well under 72)
    hashed = hashlib.sha256(password_bytes).digest()
    return base64.b64encode(hashed).decode("ascii")


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt with the configured cost factor.

    Args:
        password: The plain text password to hash

    Returns:
        The bcrypt hashed password
    """
    prepared_password = _prepare_password_for_bcrypt(password)
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(prepared_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a bcrypt hash.

    bcrypt.checkpw compares in constant time.

    Returns:
        True if password matches, False otherwise (including malformed hashes)
    """
    prepared_password = _prepare_password_for_bcrypt(plain_password)
    try:
        return bcrypt.checkpw(prepared_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except (ValueError, TypeError):
        return False


async def hash_password(password: str) -> str:
    """Hash a password in the default executor so the event loop is not blocked."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, get_password_hash, password)


async def check_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password in the default executor so the event loop is not blocked."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, verify_password, plain_password, hashed_password)


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        user_id: The user ID to encode as the subject
        email: User email claim
        role: User role claim
        expires_delta: Optional custom expiration (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": now + expires_delta,
        "type": "access",  # Custom claim to distinguish token types
    }

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Verify and decode a JWT access token.

    Signature, expiry, issuer and audience are all enforced.

    Args:
        token: The JWT token to verify

    Returns:
        Claims dict if the token is valid, None otherwise
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            options={"require": ["exp", "sub", "iss", "aud"]},
        )
    except jwt.PyJWTError:
        return None

    if payload.get("type") != "access":
        return None
    try:
        payload["sub"] = int(payload["sub"])
    except (ValueError, TypeError):
        return None

    return payload


def create_refresh_token() -> str:
    """
    Create a cryptographically secure refresh token.

    Returns:
        Hex string carrying 64 random bytes (128 characters)
    """
    return secrets.token_hex(64)


def create_verification_token() -> str:
    """Random email verification token (32 bytes, hex encoded)."""
    return secrets.token_hex(32)


def create_reset_token() -> str:
    """Random password reset token (32 bytes, hex encoded)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA256 hex digest used to store opaque tokens without their raw value."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
