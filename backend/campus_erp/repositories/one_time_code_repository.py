"""Repository for OneTimeCode operations.

Codes are keyed by email. Issuance is an upsert so concurrent requests for
the same address still leave a single row; consumption deletes by
(email, code) so only one verifier can win.
"""

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from campus_erp.models.one_time_code import OneTimeCode


class OneTimeCodeRepository:
    """Stateless repository for one_time_codes table operations.

    All methods are static - no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def upsert(
        db: AsyncSession,
        *,
        email: str,
        code: str,
        expires: datetime,
    ) -> None:
        """Store a code for an email, replacing any previous one.

        Args:
            db: Async database session.
            email: Normalized email address.
            code: 6-digit code.
            expires: New expiry timestamp.
        """
        stmt = insert(OneTimeCode).values(email=email, code=code, expires=expires)
        stmt = stmt.on_conflict_do_update(
            index_elements=[OneTimeCode.email],
            set_={
                "code": stmt.excluded.code,
                "expires": stmt.excluded.expires,
                "created_at": func.now(),
            },
        )
        await db.execute(stmt)

    @staticmethod
    async def get(db: AsyncSession, *, email: str) -> OneTimeCode | None:
        """Look up the current code for an email.

        Args:
            db: Async database session.
            email: Normalized email address.

        Returns:
            OneTimeCode if one was issued, None otherwise (expired rows are
            returned too; the caller checks expiry).
        """
        stmt = select(OneTimeCode).where(OneTimeCode.email == email)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def delete(db: AsyncSession, *, email: str, code: str) -> int:
        """Delete a specific code (single-use consumption).

        Matching on the code as well as the email means a code reissued
        between lookup and delete is left alone.

        Args:
            db: Async database session.
            email: Normalized email address.
            code: The code that was matched.

        Returns:
            Number of deleted rows (0 or 1).
        """
        stmt = delete(OneTimeCode).where(
            OneTimeCode.email == email,
            OneTimeCode.code == code,
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
