"""
Authentication business logic.

Handles user creation, token management, account lockout, and password flows.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update

from fitvibe.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from fitvibe.config import get_settings
from fitvibe.db.models import (
    EmailVerificationToken,
    PasswordResetToken,
    RefreshToken,
    User,
)
from fitvibe.users.preferences import default_preferences

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def hash_token(raw_token: str) -> str:
    """sha256 hex digest used to store single-use tokens at rest."""
    return hashlib.sha256(raw_token.encode()).hexdigest()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a live (not soft-deleted) user by ID."""
    result = await db.execute(select(User).where(User.id == user_id, User.is_deleted.is_(False)))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a live user by email (case-insensitive)."""
    result = await db.execute(
        select(User).where(func.lower(User.email) == email.lower().strip(), User.is_deleted.is_(False))
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    date_of_birth: date | None = None,
    gender: str | None = None,
    fitness_level: str | None = None,
    primary_goal: str | None = None,
) -> User:
    """
    Register a new user with email + password.

    Raises:
        PasswordStrengthError: If the password is too weak.
        ValueError: If the email is already registered.
    """
    validate_password_strength(password)

    existing = await get_user_by_email(db, email)
    if existing is not None:
        msg = "Email already registered"
        raise ValueError(msg)

    user = User(
        email=email.lower().strip(),
        password_hash=hash_password(password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        date_of_birth=date_of_birth,
        primary_goal=primary_goal,
        preferences=default_preferences(),
        created_at=datetime.now(timezone.utc),
        last_login=datetime.now(timezone.utc),
        login_count=1,
    )
    if gender:
        user.gender = gender
    if fitness_level:
        user.fitness_level = fitness_level
    db.add(user)
    await db.flush()
    logger.info("user_created", user_id=user.id, email=user.email)
    return user


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def authenticate_user(
    db: AsyncSession,
    redis: Redis | None,
    email: str,
    password: str,
) -> User:
    """
    Authenticate a user with email + password.

    Raises:
        ValueError: If credentials are invalid.
        PermissionError: If the account is locked or deactivated.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        msg = "Invalid email or password"
        raise ValueError(msg)

    if redis is not None and await check_account_lockout(redis, user.id):
        msg = "Account temporarily locked. Try again later."
        raise PermissionError(msg)

    if not user.is_active:
        msg = "Account is deactivated"
        raise PermissionError(msg)

    if not verify_password(password, user.password_hash):
        if redis is not None:
            await increment_failed_login(redis, user.id)
        msg = "Invalid email or password"
        raise ValueError(msg)

    if redis is not None:
        await clear_failed_login(redis, user.id)

    now = datetime.now(timezone.utc)
    user.last_login = now
    user.last_active_date = now.date()
    user.login_count = (user.login_count or 0) + 1

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        logger.info("password_rehashed", user_id=user.id)

    await db.flush()
    return user


# ---------------------------------------------------------------------------
# Account lockout
# ---------------------------------------------------------------------------


async def check_account_lockout(redis: Redis, user_id: int) -> bool:
    """Check if the account is locked due to too many failed login attempts."""
    settings = get_settings()
    count_str = await redis.get(f"login_attempts:{user_id}")
    if count_str is None:
        return False
    return int(count_str) >= settings.account_lockout_threshold


async def increment_failed_login(redis: Redis, user_id: int) -> int:
    """Increment failed login counter. Returns the new count."""
    settings = get_settings()
    key = f"login_attempts:{user_id}"
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, settings.account_lockout_duration_minutes * 60)
    return int(count)


async def clear_failed_login(redis: Redis, user_id: int) -> None:
    await redis.delete(f"login_attempts:{user_id}")


# ---------------------------------------------------------------------------
# Password change
# ---------------------------------------------------------------------------


async def change_password(
    db: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
) -> None:
    """
    Change the password of an authenticated user.

    Raises:
        ValueError: If the current password is wrong.
        PasswordStrengthError: If the new password is too weak.
    """
    if not verify_password(current_password, user.password_hash):
        msg = "Current password is incorrect"
        raise ValueError(msg)
    validate_password_strength(new_password)
    user.password_hash = hash_password(new_password)
    user.mark_updated()
    await db.flush()
    logger.info("password_changed", user_id=user.id)


async def reset_password(db: AsyncSession, raw_token: str, new_password: str) -> User:
    """
    Consume a reset token and set a new password.

    All refresh tokens of the user are revoked.
    """
    validate_password_strength(new_password)
    user_id = await verify_reset_token(db, raw_token)
    user = await get_user_by_id(db, user_id)
    if user is None:
        msg = "Invalid or expired reset token"
        raise ValueError(msg)
    user.password_hash = hash_password(new_password)
    user.mark_updated()
    await revoke_all_tokens(db, user.id)
    await db.flush()
    logger.info("password_reset", user_id=user.id)
    return user


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------


async def store_refresh_token(
    db: AsyncSession,
    user_id: int,
    token_id: str,
    token_hash: str,
    expires_at: datetime,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> RefreshToken:
    """Store a refresh token hash in the database."""
    token = RefreshToken(
        id=token_id,
        user_id=user_id,
        token_hash=token_hash,
        issued_at=datetime.now(timezone.utc),
        expires_at=expires_at,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(token)
    await db.flush()
    return token


async def get_refresh_token(db: AsyncSession, token_id: str) -> RefreshToken | None:
    result = await db.execute(select(RefreshToken).where(RefreshToken.id == token_id))
    return result.scalar_one_or_none()


async def rotate_refresh_token(
    db: AsyncSession,
    old_token: RefreshToken,
    new_token_id: str,
    new_token_hash: str,
    new_expires_at: datetime,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> RefreshToken:
    """Revoke old token and create a new one (rotation)."""
    old_token.is_revoked = True
    old_token.revoked_at = datetime.now(timezone.utc)
    old_token.replaced_by = new_token_id

    return await store_refresh_token(
        db,
        user_id=old_token.user_id,
        token_id=new_token_id,
        token_hash=new_token_hash,
        expires_at=new_expires_at,
        ip_address=ip_address,
        user_agent=user_agent,
    )


async def revoke_refresh_token(db: AsyncSession, token_id: str) -> bool:
    """Revoke a specific refresh token. Returns True if found."""
    token = await get_refresh_token(db, token_id)
    if token is None:
        return False
    token.is_revoked = True
    token.revoked_at = datetime.now(timezone.utc)
    await db.flush()
    return True


async def revoke_all_tokens(
    db: AsyncSession,
    user_id: int,
    exclude_token_id: str | None = None,
) -> int:
    """Revoke all refresh tokens for a user. Returns count revoked."""
    stmt = (
        update(RefreshToken)
        .where(RefreshToken.user_id == user_id)
        .where(RefreshToken.is_revoked == False)  # noqa: E712
    )
    if exclude_token_id:
        stmt = stmt.where(RefreshToken.id != exclude_token_id)
    stmt = stmt.values(is_revoked=True, revoked_at=datetime.now(timezone.utc))
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount  # type: ignore[attr-defined,no-any-return]


# ---------------------------------------------------------------------------
# Email verification tokens
# ---------------------------------------------------------------------------


async def create_verification_token(db: AsyncSession, user_id: int) -> str:
    """
    Create an email verification token.

    Returns the raw token to send to the user; only its hash is stored.
    Previous unused tokens of the user are invalidated.
    """
    settings = get_settings()
    raw_token = secrets.token_urlsafe(48)
    now = datetime.now(timezone.utc)

    await db.execute(
        update(EmailVerificationToken)
        .where(EmailVerificationToken.user_id == user_id)
        .where(EmailVerificationToken.used_at == None)  # noqa: E711
        .values(used_at=now)
    )

    db.add(
        EmailVerificationToken(
            user_id=user_id,
            token_hash=hash_token(raw_token),
            created_at=now,
            expires_at=now + timedelta(hours=settings.email_verification_token_ttl_hours),
        )
    )
    await db.flush()
    return raw_token


async def verify_email_token(db: AsyncSession, raw_token: str) -> int:
    """
    Consume an email verification token and mark the user verified.

    Returns the user_id.

    Raises:
        ValueError: If token is invalid, expired, or already used.
    """
    result = await db.execute(
        select(EmailVerificationToken).where(EmailVerificationToken.token_hash == hash_token(raw_token))
    )
    token = result.scalar_one_or_none()

    if token is None:
        msg = "Invalid or expired verification token"
        raise ValueError(msg)
    if token.used_at is not None:
        msg = "Token has already been used"
        raise ValueError(msg)
    if token.expires_at < datetime.now(timezone.utc):
        msg = "Verification token has expired"
        raise ValueError(msg)

    token.used_at = datetime.now(timezone.utc)
    user = await get_user_by_id(db, token.user_id)
    if user is not None:
        user.is_email_verified = True
    await db.flush()
    return token.user_id


# ---------------------------------------------------------------------------
# Password reset tokens
# ---------------------------------------------------------------------------


async def create_reset_token(
    db: AsyncSession,
    user_id: int,
    ip_address: str | None = None,
) -> str:
    """Create a password reset token. Returns the raw token."""
    settings = get_settings()
    raw_token = secrets.token_urlsafe(48)
    now = datetime.now(timezone.utc)

    await db.execute(
        update(PasswordResetToken)
        .where(PasswordResetToken.user_id == user_id)
        .where(PasswordResetToken.used_at == None)  # noqa: E711
        .values(used_at=now)
    )

    db.add(
        PasswordResetToken(
            user_id=user_id,
            token_hash=hash_token(raw_token),
            created_at=now,
            expires_at=now + timedelta(minutes=settings.password_reset_token_ttl_minutes),
            ip_address=ip_address,
        )
    )
    await db.flush()
    return raw_token


async def verify_reset_token(db: AsyncSession, raw_token: str) -> int:
    """
    Consume a password reset token.

    Returns the user_id.

    Raises:
        ValueError: If token is invalid, expired, or already used.
    """
    result = await db.execute(
        select(PasswordResetToken).where(PasswordResetToken.token_hash == hash_token(raw_token))
    )
    token = result.scalar_one_or_none()

    if token is None:
        msg = "Invalid or expired reset token"
        raise ValueError(msg)
    if token.used_at is not None:
        msg = "Token has already been used"
        raise ValueError(msg)
    if token.expires_at < datetime.now(timezone.utc):
        msg = "Reset token has expired"
        raise ValueError(msg)

    token.used_at = datetime.now(timezone.utc)
    await db.flush()
    return token.user_id
