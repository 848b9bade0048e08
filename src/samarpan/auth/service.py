"""
Authentication business logic.

Handles registration, email/password login, role derivation from the
institutional email address and the Redis-backed account lockout.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from samarpan.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from samarpan.config import get_settings
from samarpan.db.enums import UserRole
from samarpan.db.models import User
from samarpan.errors import ConflictError

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Email policy
# ---------------------------------------------------------------------------


def is_allowed_email(email: str) -> bool:
    """True if the email belongs to one of the configured institutional domains.

    An empty ``allowed_email_domains`` setting admits every domain.
    """
    domains = get_settings().allowed_email_domains
    if not domains:
        return True
    domain = email.rsplit("@", 1)[-1].lower()
    return domain in {d.lower() for d in domains}


def determine_role_from_email(email: str) -> UserRole:
    """Faculty and staff addresses (``faculty.x@``, ``dean.x@`` ...) become admins."""
    local_part = email.lower().split("@", 1)[0] + "@"
    for pattern in get_settings().admin_email_patterns:
        if re.search(pattern, local_part):
            return UserRole.ADMIN
    return UserRole.STUDENT


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    program: str | None = None,
) -> User:
    """
    Register a new user with email + password.

    Raises:
        PasswordStrengthError: If the password is too weak.
        ValueError: If the email domain is not allowed.
        ConflictError: If the email is already registered.
    """
    email = email.lower().strip()
    if not is_allowed_email(email):
        domains = ", ".join(f"@{d}" for d in get_settings().allowed_email_domains)
        msg = f"Only {domains} email addresses are allowed"
        raise ValueError(msg)

    validate_password_strength(password)

    if await get_user_by_email(db, email) is not None:
        msg = "Account already exists with this email"
        raise ConflictError(msg)

    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=determine_role_from_email(email),
        program=program or "PGP",
        coins=0,
        anonymize_leaderboard=False,
    )
    db.add(user)
    await db.flush()
    logger.info("user_registered", user_id=user.id, role=user.role.value)
    return user


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def authenticate_user(
    db: AsyncSession,
    redis: Redis,
    email: str,
    password: str,
) -> User:
    """
    Authenticate a user with email + password.

    Raises:
        ValueError: If credentials are invalid.
        PermissionError: If the account is temporarily locked.
    """
    if not is_allowed_email(email):
        domains = ", ".join(f"@{d}" for d in get_settings().allowed_email_domains)
        msg = f"Only {domains} email addresses are allowed"
        raise ValueError(msg)

    user = await get_user_by_email(db, email)
    if user is None:
        msg = "Invalid email or password"
        raise ValueError(msg)

    if await check_account_lockout(redis, user.id):
        msg = "Account temporarily locked. Try again later."
        raise PermissionError(msg)

    if not verify_password(password, user.password_hash or ""):
        attempts = await increment_failed_login(redis, user.id)
        logger.info("login_failed", user_id=user.id, attempts=attempts)
        msg = "Invalid email or password"
        raise ValueError(msg)

    await clear_failed_login(redis, user.id)

    if user.password_hash and check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        await db.flush()
        logger.info("password_rehashed", user_id=user.id)

    return user


# ---------------------------------------------------------------------------
# Account lockout
# ---------------------------------------------------------------------------


async def check_account_lockout(redis: Redis, user_id: str) -> bool:
    """Check if the account is locked due to too many failed login attempts."""
    settings = get_settings()
    count_str = await redis.get(f"login_attempts:{user_id}")
    if count_str is None:
        return False
    return int(count_str) >= settings.account_lockout_threshold


async def increment_failed_login(redis: Redis, user_id: str) -> int:
    """Increment failed login counter. Returns the new count."""
    settings = get_settings()
    key = f"login_attempts:{user_id}"
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, settings.account_lockout_duration_minutes * 60)
    return int(count)


async def clear_failed_login(redis: Redis, user_id: str) -> None:
    """Clear the failed login counter after a successful login."""
    await redis.delete(f"login_attempts:{user_id}")
