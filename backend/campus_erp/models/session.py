"""Server-side session model.

The cookie carries an opaque random token; only its SHA-256 hash is stored
here. The role is copied from the user at login so the access guard can
authorize a request from this row alone.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from campus_erp.models.base import Base


class UserSession(Base):
    """Active or revoked login session.

    Attributes:
        id: UUID primary key.
        session_token: SHA-256 hex digest of the cookie value.
        user_id: Owning user.
        role: Role at login time.
        expires: Hard expiry (login + SESSION_TTL_MINUTES).
        revoked_at: Set on logout. NULL = still usable.
        user_agent: Client user agent at login.
        ip_address: Client address at login.
        created_at: Login timestamp.
    """

    __tablename__ = "user_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    session_token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    expires: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


Index("idx_user_sessions_user_id", UserSession.user_id)
Index("idx_user_sessions_expires", UserSession.expires)
