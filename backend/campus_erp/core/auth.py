"""Authentication helpers for sessions, passwords and the registration token.

Shared utilities used by the auth and OTP endpoints.

Pipeline:
- new_session_token / hash_session_token: opaque cookie value, hashed at rest
- set_session_cookie / clear_session_cookie: cookie attributes from settings
- hash_password / check_password: bcrypt (cost 12)
- DUMMY_HASH: Timing-safe constant for user enumeration defense
- create_registration_token: 15-minute JWT issued after OTP verification
"""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt
from fastapi import Response

from campus_erp.core.config import settings

# bcrypt cost factor for password hashing
_BCRYPT_ROUNDS = 12

# Audience claim for registration tokens; consumers must verify it
REGISTRATION_TOKEN_AUDIENCE = "campus-erp-registration"

# Pre-computed bcrypt hash for timing-safe comparison on user-not-found.
# Security: prevents user enumeration via response time differences.
# Pre-generated to avoid ~300ms bcrypt computation on every app startup.
DUMMY_HASH = b"$2b$12$ZP2PVB8yI35X.mkRqcUPUuSzJA1CNRt4dZ7X3cyrfJu.2S3w.Qen2"


def new_session_token() -> str:
    """Generate an opaque session token for the cookie (43 url-safe chars)."""
    return secrets.token_urlsafe(32)


def hash_session_token(token: str) -> str:
    """SHA-256 hex digest of a session token (the value stored in the DB)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hash_password(password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    return bcrypt.hashpw(
        password.encode(), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)
    ).decode()


def check_password(password: str, password_hash: str | None) -> bool:
    """Compare a password against a stored bcrypt hash.

    Always performs one bcrypt comparison, against DUMMY_HASH when there is
    no stored hash, so response time does not reveal whether the account
    exists.

    Args:
        password: Plain-text password from the request.
        password_hash: Stored bcrypt hash, or None for unknown accounts.

    Returns:
        True only when a stored hash exists and matches.
    """
    if not password_hash:
        bcrypt.checkpw(password.encode(), DUMMY_HASH)
        return False
    return bcrypt.checkpw(password.encode(), password_hash.encode())


def set_session_cookie(response: Response, token: str) -> None:
    """Set the httpOnly session cookie on a response.

    Security: httpOnly prevents XSS cookie theft. Secure flag and SameSite
    are configured via settings for environment-appropriate security.

    Args:
        response: FastAPI response object.
        token: Plain session token (only its hash is persisted).
    """
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
        path="/",
        max_age=settings.session_ttl_minutes * 60,
        domain=settings.session_cookie_domain or None,
    )


def clear_session_cookie(response: Response) -> None:
    """Delete the session cookie.

    Cookie attributes must match set_session_cookie() for the browser to
    delete it.
    """
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
        domain=settings.session_cookie_domain or None,
    )


def create_registration_token(
    *,
    ccat_form_no: str,
    secret: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create the signed credential handed out after OTP verification.

    The registration forms present this token to prove the applicant
    controls the e-mail address tied to the form number.

    Args:
        ccat_form_no: Applicant's CCAT form number (bound into the payload).
        secret: HMAC signing secret.
        expires_delta: Time until expiration. Defaults to
            REGISTRATION_TOKEN_TTL_MINUTES.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    ttl = expires_delta or timedelta(minutes=settings.registration_token_ttl_minutes)
    payload = {
        "ccatFormNo": ccat_form_no,
        "aud": REGISTRATION_TOKEN_AUDIENCE,
        "iss": settings.auth_issuer,
        "exp": now + ttl,
        "iat": now,
    }
    return jwt.encode(payload, secret, algorithm="HS256")
