"""Shared dependencies for API endpoints.

Database session injection plus the role-based access guard.

Guard contract:
- require_session: 401 when no valid session principal
- authorize(roles): 401 when no principal, 403 when the principal's role is
  not in ``roles``; an empty ``roles`` admits every known role

A session whose row is missing, revoked, expired, or carries a role outside
Role is treated exactly like no session at all.
"""

import uuid
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Annotated

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from campus_erp.core.auth import hash_session_token
from campus_erp.core.config import settings
from campus_erp.core.database import get_db
from campus_erp.core.errors import ForbiddenError, UnauthorizedError
from campus_erp.models.user import Role
from campus_erp.repositories.session_repository import SessionRepository

logger = structlog.get_logger()

DbSession = Annotated[AsyncSession, Depends(get_db)]


@dataclass(frozen=True)
class SessionPrincipal:
    """Authenticated identity attached to a server-side session.

    Attributes:
        user_id: Owning user.
        role: Role recorded on the session at login.
        session_id: Primary key of the user_sessions row.
    """

    user_id: uuid.UUID
    role: Role
    session_id: uuid.UUID


async def get_session_principal(
    request: Request,
    db: DbSession,
) -> SessionPrincipal | None:
    """Resolve the session cookie to a principal.

    Args:
        request: HTTP request (injected by FastAPI).
        db: Database session (injected).

    Returns:
        SessionPrincipal, or None when the request is unauthenticated.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None

    session = await SessionRepository.get_active(
        db, token_hash=hash_session_token(token)
    )
    if session is None:
        return None

    try:
        role = Role(session.role)
    except ValueError:
        logger.warning("Session carries unknown role", session_id=str(session.id))
        return None

    return SessionPrincipal(user_id=session.user_id, role=role, session_id=session.id)


OptionalPrincipal = Annotated[SessionPrincipal | None, Depends(get_session_principal)]


async def require_session(principal: OptionalPrincipal) -> SessionPrincipal:
    """Require any valid session.

    Raises:
        UnauthorizedError: 401 when no valid session is present.
    """
    if principal is None:
        raise UnauthorizedError("Session expired")
    return principal


def authorize(
    allowed_roles: Iterable[Role] = (),
) -> Callable[..., Awaitable[SessionPrincipal]]:
    """Build a dependency that admits sessions whose role is allowed.

    Usage:
        @router.get("/dashboard")
        async def dashboard(
            principal: Annotated[SessionPrincipal, Depends(authorize({Role.ADMIN}))],
        ): ...

    Args:
        allowed_roles: Roles admitted. Empty admits any known role.

    Returns:
        FastAPI dependency returning the SessionPrincipal.
    """
    allowed = frozenset(allowed_roles)

    async def _authorize(principal: OptionalPrincipal) -> SessionPrincipal:
        if principal is None:
            raise UnauthorizedError("Unauthorized access")
        if allowed and principal.role not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return principal

    return _authorize


# Reusable type aliases for dependency injection
CurrentSession = Annotated[SessionPrincipal, Depends(require_session)]
AnyRole = Annotated[SessionPrincipal, Depends(authorize())]
AdminOnly = Annotated[SessionPrincipal, Depends(authorize({Role.ADMIN}))]
