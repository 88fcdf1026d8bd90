"""User model - staff and student accounts that can hold a session."""

import uuid
from enum import StrEnum

from sqlalchemy import Boolean, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from campus_erp.models.base import Base, TimestampMixin


class Role(StrEnum):
    """Known session roles. Anything else is treated as unauthenticated."""

    ADMIN = "ADMIN"
    FACULTY = "FACULTY"
    STUDENT = "STUDENT"


class User(Base, TimestampMixin):
    """User account for session authentication.

    Attributes:
        id: UUID primary key.
        email: Unique email address (stored lowercased).
        name: Display name.
        password_hash: bcrypt hash.
        role: One of Role; copied onto each session at login.
        is_active: Disabled accounts cannot log in.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        server_default=Role.STUDENT.value,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("true"),
    )
