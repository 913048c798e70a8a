"""
User model with status lifecycle and system-assigned identifiers.

Users are never physically deleted by the lifecycle: deletion sets the
status to DELETED and keeps the row. Identifiers are generated when the
record is built through ``User.create`` and cannot be supplied by clients.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Enum as SQLEnum,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from bvs.core import ids
from bvs.core.config import get_settings
from bvs.database.base import Base, TimestampMixin
from bvs.services.users import state_machine
from bvs.services.users.enums import UserStatus


class User(Base, TimestampMixin):
    """
    User account.

    Attributes:
        id: System generated identifier, ``PREFIX-yyyyMMddHHmmss-XXXX``
        username: Unique alphanumeric login name
        email: Unique email address
        password_hash: Bcrypt hashed password
        first_name: Optional first name
        last_name: Optional last name
        status: Lifecycle status, ACTIVE on creation
        version: Optimistic locking counter maintained by SQLAlchemy
        created_at: Creation timestamp (from TimestampMixin)
        updated_at: Last modification timestamp (from TimestampMixin)
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(50),
        primary_key=True,
        comment="System generated user identifier",
    )

    username: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        comment="Unique login name",
    )

    email: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        comment="Unique email address",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password",
    )

    first_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    last_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    status: Mapped[UserStatus] = mapped_column(
        SQLEnum(UserStatus, name="user_status", native_enum=False, length=20),
        nullable=False,
        default=UserStatus.ACTIVE,
        index=True,
        comment="Account lifecycle status",
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Optimistic locking version",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_users_status_created", "status", "created_at"),
        CheckConstraint("length(username) >= 1", name="ck_users_username_min_length"),
        CheckConstraint("length(email) >= 3", name="ck_users_email_min_length"),
        {"comment": "User accounts with soft-delete status lifecycle"},
    )

    @classmethod
    def create(
        cls,
        *,
        username: str,
        email: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        id_prefix: Optional[str] = None,
        suffix_length: Optional[int] = None,
    ) -> "User":
        """
        Build a new, fully formed user ready to be persisted.

        The identifier is generated here and the status starts as ACTIVE.

        Args:
            username: Login name
            email: Email address
            password_hash: Already hashed password
            first_name: Optional first name
            last_name: Optional last name
            id_prefix: Identifier prefix (defaults to settings.user_id_prefix)
            suffix_length: Random suffix length (defaults to settings.id_suffix_length)

        Returns:
            Transient User instance
        """
        settings = get_settings()
        now = datetime.now(timezone.utc)
        return cls(
            id=ids.generate(
                id_prefix or settings.user_id_prefix,
                suffix_length or settings.id_suffix_length,
            ),
            username=username,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            status=UserStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id!r}, username={self.username!r}, "
            f"status={self.status.value if self.status else None})>"
        )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def can_login(self) -> bool:
        return state_machine.can_login(self.status)

    @property
    def is_deleted(self) -> bool:
        return self.status is UserStatus.DELETED

    def apply_status(self, target: UserStatus) -> UserStatus:
        """
        Move the user to ``target`` through the lifecycle rules.

        Args:
            target: Requested status

        Returns:
            The previous status

        Raises:
            InvalidStatusTransitionError: If the user is DELETED and
                ``target`` is another status; the record is left untouched
        """
        previous = self.status
        self.status = state_machine.transition(previous, target)
        return previous
