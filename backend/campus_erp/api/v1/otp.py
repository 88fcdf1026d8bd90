"""OTP endpoints for applicant email verification.

Endpoints:
- POST /request-otp - generate a code and email it
- POST /verify-otp - verify the code and issue a 15-minute registration token

Both endpoints are unauthenticated and rate-limited per IP. Upstream
failures (mail transport, datastore) are logged and answered with a
generic 500; no internal detail reaches the response.
"""

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from campus_erp.api.deps import DbSession
from campus_erp.core.auth import create_registration_token
from campus_erp.core.config import settings
from campus_erp.core.errors import InternalError, ValidationError
from campus_erp.core.rate_limiting import limiter
from campus_erp.core.responses import MessageResponse, TokenResponse
from campus_erp.services.otp_service import (
    OTPError,
    generate_code,
    issue_code,
    verify_code,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ===================================================================
# Request models
# ===================================================================


def _blank_to_none(value: object) -> object:
    # Blank input reaches the handler as missing instead of failing EmailStr
    if isinstance(value, str) and not value.strip():
        return None
    return value


class OTPRequest(BaseModel):
    """Request body for POST /request-otp."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr | None = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_missing(cls, value: object) -> object:
        """Treat an empty or whitespace-only email as absent."""
        return _blank_to_none(value)


class OTPVerifyRequest(BaseModel):
    """Request body for POST /verify-otp."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    email: EmailStr | None = None
    otp: str | None = Field(None, max_length=16)
    ccat_form_no: str | None = Field(None, alias="ccatFormNo", max_length=64)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_missing(cls, value: object) -> object:
        return _blank_to_none(value)


# ===================================================================
# POST /request-otp
# ===================================================================


@router.post("/request-otp")
@limiter.limit(lambda: settings.rate_limit_otp_request)
async def request_otp(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: OTPRequest,
    db: DbSession,
) -> MessageResponse:
    """Generate a one-time code and send it to the given email.

    A new request for the same address replaces the previous code.
    """
    if not body.email:
        raise ValidationError("Email is required")

    code = generate_code()
    try:
        await issue_code(db, body.email, code)
    except OTPError:
        logger.exception("OTP request failed")
        raise InternalError("Failed to process OTP request") from None

    return MessageResponse(message="OTP sent successfully")


# ===================================================================
# POST /verify-otp
# ===================================================================


@router.post("/verify-otp")
@limiter.limit(lambda: settings.rate_limit_otp_verify)
async def verify_otp(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: OTPVerifyRequest,
    db: DbSession,
) -> TokenResponse:
    """Verify a one-time code and issue the registration token.

    The signing secret is checked before the code is consumed, so a
    misconfigured server does not burn the applicant's code.
    """
    if not (body.email and body.otp and body.ccat_form_no):
        raise ValidationError("Missing required fields")

    secret = settings.auth_secret.get_secret_value()
    if not secret:
        logger.error("AUTH_SECRET is not set; cannot issue registration token")
        raise InternalError("Token configuration error")

    try:
        verified = await verify_code(db, body.email, body.otp)
    except OTPError:
        logger.exception("OTP verification failed")
        raise InternalError("Error verifying OTP") from None

    if not verified:
        raise ValidationError("Invalid or expired OTP")

    token = create_registration_token(ccat_form_no=body.ccat_form_no, secret=secret)

    return TokenResponse(message="OTP verified successfully", token=token)
