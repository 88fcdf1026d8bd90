"""SQLAlchemy ORM models for the Campus ERP backend.

All models are exported from this module for convenient imports:
    from campus_erp.models import User, UserSession, OneTimeCode

Models:
- user.py: User, Role
- session.py: UserSession (server-side session store)
- one_time_code.py: OneTimeCode (email OTPs, keyed by email)
"""

from campus_erp.models.base import Base, TimestampMixin
from campus_erp.models.one_time_code import OneTimeCode
from campus_erp.models.session import UserSession
from campus_erp.models.user import Role, User

__all__ = [
    "Base",
    "OneTimeCode",
    "Role",
    "TimestampMixin",
    "User",
    "UserSession",
]
