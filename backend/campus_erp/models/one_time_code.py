"""One-time code model - email OTPs for registration.

Keyed by email: issuing a new code overwrites the previous one and resets
its expiry, so there is never more than one active code per address.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from campus_erp.models.base import Base


class OneTimeCode(Base):
    """Email verification code.

    Entries are single-use and time-limited. Deleted after the first
    successful verification; expired rows are never matched.

    Attributes:
        email: Owning email address (lowercased), primary key.
        code: 6-digit numeric code, zero-padded.
        expires: Code expiry timestamp (issue time + OTP_TTL_MINUTES).
        created_at: Issue time of the current code.
    """

    __tablename__ = "one_time_codes"

    email: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )
    code: Mapped[str] = mapped_column(
        String(6),
        nullable=False,
    )
    expires: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
