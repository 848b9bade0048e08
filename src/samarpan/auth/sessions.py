"""
Server-side session store backed by the ``sessions`` table.

A session id (``sid``) is an opaque random token handed to the browser in an
HttpOnly cookie; API clients may send it as a bearer token instead. Expired
rows are ignored on lookup and purged opportunistically on login.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select

from samarpan.config import get_settings
from samarpan.db.models import Session, User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def new_session_id() -> str:
    """Generate a URL-safe session id with 256 bits of entropy."""
    return secrets.token_urlsafe(32)


async def create_session(
    db: AsyncSession,
    user: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Session:
    """Persist a new session for ``user`` that expires after the configured TTL."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    session = Session(
        sid=new_session_id(),
        sess={
            "user_id": user.id,
            "role": user.role.value,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "created_at": now.isoformat(),
        },
        expire=now + timedelta(seconds=settings.session_ttl_seconds),
        user_id=user.id,
    )
    db.add(session)
    await db.flush()
    return session


async def get_active_session(db: AsyncSession, sid: str) -> Session | None:
    """Return the session for ``sid`` unless it is unknown or expired."""
    now = datetime.now(timezone.utc)
    result = await db.execute(select(Session).where(Session.sid == sid, Session.expire > now))
    return result.scalar_one_or_none()


async def delete_session(db: AsyncSession, sid: str) -> bool:
    """Delete a single session. Returns True if a row was removed."""
    result = await db.execute(delete(Session).where(Session.sid == sid))
    return (result.rowcount or 0) > 0


async def delete_user_sessions(db: AsyncSession, user_id: str) -> int:
    """Delete every session belonging to a user. Returns the number removed."""
    result = await db.execute(delete(Session).where(Session.user_id == user_id))
    return result.rowcount or 0


async def purge_expired_sessions(db: AsyncSession) -> int:
    """Remove sessions whose expiry has passed."""
    now = datetime.now(timezone.utc)
    result = await db.execute(delete(Session).where(Session.expire <= now))
    purged = result.rowcount or 0
    if purged:
        logger.info("sessions_purged", count=purged)
    return purged
