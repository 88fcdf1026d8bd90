"""Repository for UserSession operations.

Sessions are looked up by the SHA-256 hash of the cookie value; the plain
token never reaches the database.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from campus_erp.models.session import UserSession


class SessionRepository:
    """Stateless repository for user_sessions table operations.

    All methods are static - no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        token_hash: str,
        role: str,
        expires: datetime,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> UserSession:
        """Store a new session.

        Args:
            db: Async database session.
            user_id: Owning user.
            token_hash: SHA-256 hash of the cookie token.
            role: Role copied from the user.
            expires: Hard expiry.
            user_agent: Client user agent (truncated to column size).
            ip_address: Client address.

        Returns:
            Created UserSession.
        """
        session = UserSession(
            user_id=user_id,
            session_token=token_hash,
            role=role,
            expires=expires,
            user_agent=user_agent[:255] if user_agent else None,
            ip_address=ip_address,
        )
        db.add(session)
        await db.flush()
        return session

    @staticmethod
    async def get_active(
        db: AsyncSession,
        *,
        token_hash: str,
    ) -> UserSession | None:
        """Look up a session that is neither revoked nor expired.

        Args:
            db: Async database session.
            token_hash: SHA-256 hash of the cookie token.

        Returns:
            UserSession if usable, None otherwise.
        """
        stmt = select(UserSession).where(
            UserSession.session_token == token_hash,
            UserSession.revoked_at.is_(None),
            UserSession.expires > datetime.now(UTC),
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def revoke(db: AsyncSession, *, token_hash: str) -> None:
        """Mark a session as revoked (logout).

        Args:
            db: Async database session.
            token_hash: SHA-256 hash of the cookie token.
        """
        stmt = (
            update(UserSession)
            .where(
                UserSession.session_token == token_hash,
                UserSession.revoked_at.is_(None),
            )
            .values(revoked_at=datetime.now(UTC))
        )
        await db.execute(stmt)
