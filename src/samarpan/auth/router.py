"""Authentication router: registration, login/logout and the signed-in user."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.auth.dependencies import get_current_user, get_session_id
from samarpan.auth.password import PasswordStrengthError
from samarpan.auth.schemas import (
    AuthResponse,
    CurrentUserResponse,
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserCounts,
    UserResponse,
)
from samarpan.auth.service import authenticate_user, register_user
from samarpan.auth.sessions import create_session, delete_session, purge_expired_sessions
from samarpan.config import get_settings
from samarpan.database import get_session
from samarpan.db.models import User
from samarpan.errors import ConflictError
from samarpan.leaderboard.service import invalidate_leaderboard_cache
from samarpan.redis_client import get_redis
from samarpan.users.service import delete_account, get_user_counts, update_profile

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["Authentication"])


def _set_session_cookie(response: Response, sid: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=sid,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=get_settings().session_cookie_name, path="/")


async def _current_user_response(db: AsyncSession, user: User) -> CurrentUserResponse:
    counts = await get_user_counts(db, user.id)
    return CurrentUserResponse.model_validate(user).model_copy(
        update={"count": UserCounts.model_validate(counts)}
    )


# ---------------------------------------------------------------------------
# Email auth
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Create an account for an institutional email address."""
    try:
        user = await register_user(
            db,
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
            program=body.program,
        )
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ValueError as e:
        # Unknown domain or duplicate email.
        raise HTTPException(status_code=400, detail=str(e)) from e

    await db.commit()
    return AuthResponse(user=UserResponse.model_validate(user), message="Registration successful")


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> AuthResponse:
    """Verify credentials, open a server-side session and set the session cookie."""
    try:
        user = await authenticate_user(db, redis, body.email, body.password)
    except PermissionError as e:
        raise HTTPException(status_code=429, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    await purge_expired_sessions(db)
    session = await create_session(
        db,
        user,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    await db.commit()

    _set_session_cookie(response, session.sid)
    logger.info("user_logged_in", user_id=user.id)
    return AuthResponse(user=UserResponse.model_validate(user), message="Login successful")


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    sid: str | None = Depends(get_session_id),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Delete the current session. Logging out twice is not an error."""
    if sid:
        await delete_session(db, sid)
        await db.commit()
    _clear_session_cookie(response)
    return MessageResponse(message="Logged out successfully")


# ---------------------------------------------------------------------------
# Signed-in user
# ---------------------------------------------------------------------------


@router.get("/auth/user", response_model=CurrentUserResponse)
async def get_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CurrentUserResponse:
    """The signed-in user with application and badge counters."""
    return await _current_user_response(db, user)


@router.patch("/auth/user", response_model=CurrentUserResponse)
async def update_me(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> CurrentUserResponse:
    """Update profile fields and the leaderboard anonymity preference."""
    leaderboard_changed = await update_profile(
        db,
        user,
        first_name=body.first_name,
        last_name=body.last_name,
        program=body.program,
        profile_image_url=body.profile_image_url,
        anonymize_leaderboard=body.anonymize_leaderboard,
    )
    await db.commit()
    if leaderboard_changed:
        await invalidate_leaderboard_cache(redis)
    return await _current_user_response(db, user)


@router.delete("/auth/account", response_model=MessageResponse)
async def delete_me(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> MessageResponse:
    """Permanently delete the signed-in account and sign it out everywhere."""
    try:
        await delete_account(db, user)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    await db.commit()
    await invalidate_leaderboard_cache(redis)
    _clear_session_cookie(response)
    return MessageResponse(message="Account deleted")
