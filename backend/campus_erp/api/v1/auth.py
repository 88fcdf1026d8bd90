"""Session endpoints for password sign-in.

Endpoints:
- POST /auth/login - verify credentials, create a server-side session, set cookie
- POST /auth/logout - revoke the session and clear the cookie
- GET /auth/me - current session principal

Security considerations:
- login: constant-time comparison via DUMMY_HASH prevents user enumeration;
  unknown, wrong-password and disabled accounts get the same 401
- sessions are stored hashed; the cookie value is never persisted
"""

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from campus_erp.api.deps import CurrentSession, DbSession
from campus_erp.core.auth import (
    check_password,
    clear_session_cookie,
    hash_session_token,
    new_session_token,
    set_session_cookie,
)
from campus_erp.core.config import settings
from campus_erp.core.errors import UnauthorizedError
from campus_erp.core.rate_limiting import limiter
from campus_erp.core.responses import DataResponse, MessageResponse
from campus_erp.models.user import User
from campus_erp.repositories.session_repository import SessionRepository
from campus_erp.repositories.user_repository import UserRepository

router = APIRouter()

_INVALID_CREDENTIALS_MSG = "Invalid email or password"


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


def _user_to_response(user: User) -> dict:
    """Build standard user payload for /login and /me."""
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
    }


# ===================================================================
# POST /auth/login
# ===================================================================


@router.post("/login")
@limiter.limit(lambda: settings.rate_limit_login)
async def login(
    request: Request,
    body: LoginRequest,
    response: Response,
    db: DbSession,
) -> DataResponse[dict]:
    """Verify email + password and start a server-side session."""
    user = await UserRepository.get_by_email(db, body.email)

    password_ok = check_password(body.password, user.password_hash if user else None)
    if user is None or not password_ok or not user.is_active:
        raise UnauthorizedError(_INVALID_CREDENTIALS_MSG)

    token = new_session_token()
    await SessionRepository.create(
        db,
        user_id=user.id,
        token_hash=hash_session_token(token),
        role=user.role,
        expires=datetime.now(UTC) + timedelta(minutes=settings.session_ttl_minutes),
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    await db.commit()

    set_session_cookie(response, token)

    return DataResponse(message="Login successful", data=_user_to_response(user))


# ===================================================================
# POST /auth/logout
# ===================================================================


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: DbSession,
) -> MessageResponse:
    """Revoke the current session (if any) and clear the cookie.

    No session required - always succeeds so a stale cookie can be cleared.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        await SessionRepository.revoke(db, token_hash=hash_session_token(token))
        await db.commit()

    clear_session_cookie(response)
    return MessageResponse(message="Logged out")


# ===================================================================
# GET /auth/me
# ===================================================================


@router.get("/me")
async def get_me(
    principal: CurrentSession,
    db: DbSession,
) -> DataResponse[dict]:
    """Return the user behind the current session.

    The role reported is the one recorded on the session.
    """
    user = await UserRepository.get_by_id(db, principal.user_id)
    if user is None:
        raise UnauthorizedError("Session expired")

    data = _user_to_response(user)
    data["role"] = principal.role.value
    return DataResponse(data=data)
