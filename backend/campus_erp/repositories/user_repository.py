"""Repository for User operations."""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_erp.models.user import Role, User


class UserRepository:
    """Stateless repository for User table operations.

    All methods are static - no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
        """Fetch a user by primary key.

        Args:
            db: Async database session.
            user_id: UUID primary key.

        Returns:
            User if found, None otherwise.
        """
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Fetch a user by email address (case-insensitive).

        Args:
            db: Async database session.
            email: Email address to look up.

        Returns:
            User if found, None otherwise.
        """
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        role: Role,
        name: str | None = None,
    ) -> User:
        """Create a new user.

        Args:
            db: Async database session.
            email: Email address (stored lowercased).
            password_hash: bcrypt hash.
            role: Session role for this account.
            name: Optional display name.

        Returns:
            Created User with server defaults loaded.
        """
        user = User(
            email=email.strip().lower(),
            password_hash=password_hash,
            role=role.value,
            name=name,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user
