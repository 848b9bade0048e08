"""FastAPI authentication dependencies.

The caller is resolved per request from the session cookie, or from an
``Authorization: Bearer <sid>`` header for non-browser clients, and handed to
route handlers explicitly.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.auth.service import get_user_by_id
from samarpan.auth.sessions import get_active_session
from samarpan.config import get_settings
from samarpan.database import get_session
from samarpan.db.models import User

_bearer = HTTPBearer(auto_error=False)


def get_session_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> str | None:
    """Session id from the cookie, falling back to a bearer token."""
    sid = request.cookies.get(get_settings().session_cookie_name)
    if sid:
        return sid
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return None


async def get_optional_user(
    sid: str | None = Depends(get_session_id),
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """The signed-in user, or None for anonymous visitors and stale sessions."""
    if not sid:
        return None
    session = await get_active_session(db, sid)
    if session is None or session.user_id is None:
        return None
    return await get_user_by_id(db, session.user_id)


async def get_current_user(
    user: User | None = Depends(get_optional_user),
) -> User:
    """Require a signed-in user. Raises 401 otherwise."""
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


async def require_admin(
    user: User = Depends(get_current_user),
) -> User:
    """Require a signed-in admin. Raises 403 for students."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
