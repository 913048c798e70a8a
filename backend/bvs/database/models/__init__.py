"""
Database models package initialization.

Models are imported here so they are registered with the Base metadata for
Alembic autogeneration.
"""

from bvs.database.base import Base, TimestampMixin
from bvs.database.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
]
