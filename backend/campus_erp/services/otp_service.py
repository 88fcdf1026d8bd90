"""OTP lifecycle for email verification during registration.

Three operations over an email address:
- generate_code: 6-digit zero-padded code from a CSPRNG
- issue_code: deliver by email, then persist (upsert) with a fresh expiry
- verify_code: exact match on a non-expired code, consumed on success

Ordering: delivery happens before persistence, so a code that never left
the mail transport is never stored. A persistence failure after delivery
leaves the user with an unusable code; they request a new one.

Stateless: all state lives in the one_time_codes table.
"""

import hmac
import logging
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from campus_erp.core.config import settings
from campus_erp.core.email import EmailDeliveryError, send_otp_email
from campus_erp.repositories.one_time_code_repository import OneTimeCodeRepository

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


class OTPError(Exception):
    """Base class for OTP lifecycle failures."""


class OTPDeliveryError(OTPError):
    """The mail transport rejected the code; nothing was persisted."""


class OTPPersistenceError(OTPError):
    """The datastore failed while storing, reading or consuming a code."""


def normalize_email(email: str) -> str:
    """Canonical form used as the code's key."""
    return email.strip().lower()


def generate_code() -> str:
    """Generate a 6-digit numeric code, zero-padded (e.g. "004219")."""
    return f"{secrets.randbelow(10**OTP_LENGTH):0{OTP_LENGTH}d}"


async def issue_code(db: AsyncSession, email: str, code: str) -> None:
    """Send a code to an email address and store it with a fresh expiry.

    Any previous code for the address is overwritten.

    Args:
        db: Async database session (committed here on success).
        email: Recipient address.
        code: Code from generate_code().

    Raises:
        OTPDeliveryError: Mail transport failed; nothing was written.
        OTPPersistenceError: Upsert or commit failed.
    """
    key = normalize_email(email)
    ttl_minutes = settings.otp_ttl_minutes

    try:
        await send_otp_email(to_email=key, code=code, ttl_minutes=ttl_minutes)
    except EmailDeliveryError as exc:
        raise OTPDeliveryError("Failed to send OTP email") from exc

    try:
        await OneTimeCodeRepository.upsert(
            db,
            email=key,
            code=code,
            expires=datetime.now(UTC) + timedelta(minutes=ttl_minutes),
        )
        await db.commit()
    except SQLAlchemyError as exc:
        logger.error("Database error while saving OTP", exc_info=True)
        raise OTPPersistenceError("Database error while saving OTP") from exc


async def verify_code(db: AsyncSession, email: str, entered_code: str) -> bool:
    """Check an entered code and consume it on success.

    Args:
        db: Async database session (committed here when a code is consumed).
        email: Address the code was issued to.
        entered_code: Code typed by the user.

    Returns:
        True exactly once per issued code: when a non-expired code exists
        for the address, matches exactly, and this call deleted it.
        False for unknown, expired, mismatched or already-consumed codes.

    Raises:
        OTPPersistenceError: Lookup, delete or commit failed. A matched code
            whose deletion could not be confirmed is never reported as valid.
    """
    key = normalize_email(email)

    try:
        row = await OneTimeCodeRepository.get(db, email=key)
    except SQLAlchemyError as exc:
        logger.error("Database error while verifying OTP", exc_info=True)
        raise OTPPersistenceError("Database error while verifying OTP") from exc

    if row is None:
        return False
    if row.expires <= datetime.now(UTC):
        return False
    if not hmac.compare_digest(row.code.encode(), entered_code.encode()):
        return False

    try:
        deleted = await OneTimeCodeRepository.delete(db, email=key, code=row.code)
        await db.commit()
    except SQLAlchemyError as exc:
        logger.error("Database error while deleting OTP", exc_info=True)
        raise OTPPersistenceError("Database error while deleting OTP") from exc

    # 0 rows: another request consumed (or reissued) the code first
    return deleted == 1
