"""Seed a staff or student account that can log in via /api/v1/auth/login.

Standalone script. Run after `alembic upgrade head`.

Usage:
    cd backend && python -m scripts.create_user admin@example.com --role ADMIN

The password is read from the CAMPUS_ERP_PASSWORD environment variable when
set, otherwise prompted for interactively.
"""

import argparse
import getpass
import logging
import os

from sqlalchemy.ext.asyncio import AsyncSession

from campus_erp.core.auth import hash_password
from campus_erp.models.user import Role, User
from campus_erp.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

_MIN_PASSWORD_LENGTH = 8


class CreateUserError(Exception):
    """Raised when the account cannot be created."""


async def create_user(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    role: Role,
    name: str | None = None,
) -> User:
    """Create an account, refusing duplicates and short passwords.

    Args:
        session: Async database session. Caller commits.
        email: Login email.
        password: Plain-text password (hashed with bcrypt).
        role: Session role granted at login.
        name: Optional display name.

    Returns:
        The created User.

    Raises:
        CreateUserError: If the email is taken or the password is too short.
    """
    if len(password) < _MIN_PASSWORD_LENGTH:
        raise CreateUserError(
            f"Password must be at least {_MIN_PASSWORD_LENGTH} characters"
        )

    if await UserRepository.get_by_email(session, email) is not None:
        raise CreateUserError(f"User {email} already exists")

    user = await UserRepository.create(
        session,
        email=email,
        password_hash=hash_password(password),
        role=role,
        name=name,
    )
    logger.info("Created %s account %s", role.value, user.email)
    return user


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email")
    parser.add_argument(
        "--role",
        choices=[role.value for role in Role],
        default=Role.STUDENT.value,
    )
    parser.add_argument("--name", default=None)
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    """CLI entry point: create the account in the configured database."""
    import sys

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from campus_erp.core.config import settings

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    args = _parse_args(argv)
    password = os.environ.get("CAMPUS_ERP_PASSWORD") or getpass.getpass()

    engine = create_async_engine(settings.database_url, echo=False)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with factory() as session:
            await create_user(
                session,
                email=args.email,
                password=password,
                role=Role(args.role),
                name=args.name,
            )
            await session.commit()
    except CreateUserError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
