"""Authentication router: all /api/v1/auth/* endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.auth.dependencies import get_current_user
from fitvibe.auth.jwt import create_access_token, create_refresh_token, verify_token
from fitvibe.auth.password import PasswordStrengthError
from fitvibe.auth.schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
    VerifyEmailRequest,
)
from fitvibe.auth.service import (
    authenticate_user,
    change_password,
    create_reset_token,
    create_verification_token,
    get_refresh_token,
    get_user_by_email,
    get_user_by_id,
    hash_token,
    register_user,
    reset_password,
    revoke_all_tokens,
    revoke_refresh_token,
    rotate_refresh_token,
    store_refresh_token,
    verify_email_token,
)
from fitvibe.config import get_settings
from fitvibe.database import get_session
from fitvibe.db.models import User
from fitvibe.dependencies import get_redis_dep
from fitvibe.email.service import get_email_service
from fitvibe.gamification.xp_service import get_or_create_gamification

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

RESEND_COOLDOWN_SECONDS = 300


def user_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


async def _issue_tokens(db: AsyncSession, user: User, request: Request) -> TokenResponse:
    """Create access + refresh tokens, store the refresh token hash and commit."""
    settings = get_settings()
    token_id = str(uuid.uuid4())
    access_token = create_access_token(user.id, user.email)
    refresh_token = create_refresh_token(user.id, user.email, token_id=token_id)

    await store_refresh_token(
        db,
        user_id=user.id,
        token_id=token_id,
        token_hash=hash_token(refresh_token),
        expires_at=datetime.now(timezone.utc) + timedelta(days=settings.jwt_refresh_token_expire_days),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    await db.commit()

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=user_response(user),
    )


async def _send_verification(db: AsyncSession, user: User, template_name: str) -> None:
    raw_token = await create_verification_token(db, user.id)
    settings = get_settings()
    verify_url = f"{settings.frontend_base_url}/auth/verify-email?token={raw_token}"
    await get_email_service().send_template(
        to=user.email,
        template_name=template_name,
        context={"display_name": user.display_name, "verify_url": verify_url},
    )


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Register with email + password."""
    try:
        user = await register_user(
            db,
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
            date_of_birth=body.date_of_birth,
            gender=body.gender.value if body.gender else None,
            fitness_level=body.fitness_level.value if body.fitness_level else None,
            primary_goal=body.primary_goal.value if body.primary_goal else None,
        )
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ValueError as e:
        detail = str(e)
        if "already registered" in detail.lower():
            raise HTTPException(status_code=409, detail=detail) from e
        raise HTTPException(status_code=400, detail=detail) from e

    await get_or_create_gamification(db, user.id)

    try:
        await _send_verification(db, user, "welcome")
    except Exception:
        logger.exception("verification_email_failed", user_id=user.id)

    return await _issue_tokens(db, user, request)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
) -> TokenResponse:
    """Login with email + password."""
    try:
        user = await authenticate_user(db, redis, body.email, body.password)
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except PermissionError as e:
        detail = str(e)
        if "locked" in detail.lower():
            raise HTTPException(status_code=429, detail=detail) from e
        raise HTTPException(status_code=403, detail=detail) from e

    return await _issue_tokens(db, user, request)


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return user_response(user)


# ---------------------------------------------------------------------------
# Email verification / password flows
# ---------------------------------------------------------------------------


@router.post("/verify-email")
async def verify_email_endpoint(
    body: VerifyEmailRequest,
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Verify email address with token."""
    try:
        await verify_email_token(db, body.token)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return {"status": "email_verified"}


@router.post("/resend-verification")
async def resend_verification(
    body: ResendVerificationRequest,
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
) -> dict[str, str]:
    """Resend the verification email. Rate limited to 1 per 5 minutes per user."""
    user = await get_user_by_email(db, body.email)
    if user is None:
        return {"status": "verification_email_sent"}
    if user.is_email_verified:
        raise HTTPException(status_code=400, detail="Email is already verified")

    if redis is not None:
        cooldown_key = f"resend_cooldown:{user.id}"
        if await redis.get(cooldown_key):
            raise HTTPException(status_code=429, detail="Please wait before requesting another verification email")
        await redis.set(cooldown_key, "1", ex=RESEND_COOLDOWN_SECONDS)

    await _send_verification(db, user, "verify_email")
    await db.commit()
    return {"status": "verification_email_sent"}


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Request password reset email. Always returns 200."""
    user = await get_user_by_email(db, body.email)

    if user is not None:
        try:
            raw_token = await create_reset_token(
                db,
                user.id,
                ip_address=request.client.host if request.client else None,
            )
            settings = get_settings()
            reset_url = f"{settings.frontend_base_url}/auth/reset-password?token={raw_token}"
            await get_email_service().send_template(
                to=user.email,
                template_name="password_reset",
                context={"reset_url": reset_url, "display_name": user.display_name},
            )
            await db.commit()
        except Exception:
            logger.exception("password_reset_email_failed", email=body.email)

    return {"status": "If that email exists, a reset link has been sent."}


@router.post("/reset-password")
async def reset_password_endpoint(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Reset password with a valid token. Revokes every session."""
    try:
        await reset_password(db, body.token, body.new_password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return {"status": "password_reset_complete"}


@router.post("/change-password")
async def change_password_endpoint(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Change password (requires the current password)."""
    try:
        await change_password(db, user, body.current_password, body.new_password)
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    try:
        await get_email_service().send_template(
            to=user.email,
            template_name="password_changed",
            context={"display_name": user.display_name},
        )
    except Exception:
        logger.exception("password_changed_email_failed", user_id=user.id)

    await db.commit()
    return {"status": "password_changed"}


# ---------------------------------------------------------------------------
# Token management
# ---------------------------------------------------------------------------


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Rotate refresh token."""
    try:
        payload = verify_token(body.refresh_token, expected_type="refresh")
    except pyjwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    jti = payload.get("jti")
    if not jti:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    old_token = await get_refresh_token(db, jti)
    if old_token is None:
        raise HTTPException(status_code=401, detail="Refresh token not found")
    if old_token.is_revoked:
        # Reuse of a rotated token: treat the whole session family as compromised
        await revoke_all_tokens(db, old_token.user_id)
        await db.commit()
        logger.warning("refresh_token_reuse", user_id=old_token.user_id)
        raise HTTPException(status_code=401, detail="Refresh token has been revoked")

    user = await get_user_by_id(db, old_token.user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    settings = get_settings()
    new_token_id = str(uuid.uuid4())
    new_access = create_access_token(user.id, user.email)
    new_refresh = create_refresh_token(user.id, user.email, token_id=new_token_id)

    await rotate_refresh_token(
        db,
        old_token=old_token,
        new_token_id=new_token_id,
        new_token_hash=hash_token(new_refresh),
        new_expires_at=datetime.now(timezone.utc) + timedelta(days=settings.jwt_refresh_token_expire_days),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    await db.commit()

    return TokenResponse(
        access_token=new_access,
        refresh_token=new_refresh,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=user_response(user),
    )


@router.post("/logout")
async def logout(
    body: LogoutRequest,
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Revoke a refresh token. Unparseable tokens are ignored."""
    try:
        payload = verify_token(body.refresh_token, expected_type="refresh")
    except pyjwt.InvalidTokenError:
        logger.info("logout_invalid_token")
    else:
        jti = payload.get("jti")
        if jti:
            await revoke_refresh_token(db, jti)
            await db.commit()

    return {"status": "logged_out"}


@router.post("/logout-all")
async def logout_all(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Revoke all refresh tokens for the current user."""
    count = await revoke_all_tokens(db, user.id)
    await db.commit()
    return {"status": "all_sessions_revoked", "revoked_count": str(count)}
