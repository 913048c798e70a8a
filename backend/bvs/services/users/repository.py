"""
User repository for data access operations.

This module implements the repository pattern for user data access with async
SQLAlchemy operations. Lookups that serve logins and uniqueness checks come in
two flavours: including soft-deleted users and excluding them.
"""

from typing import Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bvs.core.logging import get_logger
from bvs.database.models.user import User
from bvs.services.users.enums import UserStatus

logger = get_logger(__name__)


class UserRepository:
    """
    Repository for user data access operations.

    Does not commit: transaction boundaries belong to the service layer.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize user repository.

        Args:
            session: Async database session
        """
        self.session = session

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """
        Get user by ID, including soft-deleted users.

        Args:
            user_id: User identifier

        Returns:
            User if found, None otherwise
        """
        try:
            return await self.session.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to retrieve user",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    async def _get_one(self, *criteria) -> Optional[User]:
        stmt = select(User).where(*criteria)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self._get_one(User.username == username)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self._get_one(User.email == email)

    async def get_active_by_username(self, username: str) -> Optional[User]:
        """Get a user by username unless soft-deleted."""
        return await self._get_one(
            User.username == username,
            User.status != UserStatus.DELETED,
        )

    async def get_active_by_email(self, email: str) -> Optional[User]:
        """Get a user by email unless soft-deleted."""
        return await self._get_one(
            User.email == email,
            User.status != UserStatus.DELETED,
        )

    async def exists_by_username(self, username: str) -> bool:
        stmt = select(func.count()).select_from(User).where(User.username == username)
        return (await self.session.scalar(stmt) or 0) > 0

    async def exists_by_email(self, email: str) -> bool:
        stmt = select(func.count()).select_from(User).where(User.email == email)
        return (await self.session.scalar(stmt) or 0) > 0

    async def list_all(self, offset: int = 0, limit: Optional[int] = None) -> Sequence[User]:
        """
        List users ordered by identifier, which follows creation time.

        Args:
            offset: Number of users to skip
            limit: Maximum number of users to return

        Returns:
            Sequence of users including soft-deleted ones
        """
        stmt = select(User).order_by(User.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_all(self) -> int:
        stmt = select(func.count()).select_from(User)
        return await self.session.scalar(stmt) or 0

    async def list_by_status(self, status: UserStatus) -> Sequence[User]:
        stmt = select(User).where(User.status == status).order_by(User.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_by_status(self) -> dict[UserStatus, int]:
        """
        Count users per status.

        Returns:
            Mapping with an entry for every status, zero when absent
        """
        stmt = select(User.status, func.count()).group_by(User.status)
        result = await self.session.execute(stmt)
        counts = {status: 0 for status in UserStatus}
        for status, count in result.all():
            counts[UserStatus(status)] = count
        return counts

    async def create(self, user: User) -> User:
        """
        Persist a new user.

        Args:
            user: Fully formed user built by ``User.create``

        Returns:
            Persisted user

        Raises:
            IntegrityError: If a unique constraint is violated
        """
        try:
            self.session.add(user)
            await self.session.flush()
            await self.session.refresh(user)

            logger.info(
                "User created",
                user_id=user.id,
                username=user.username,
            )
            return user

        except IntegrityError as e:
            logger.warning(
                "User creation failed - integrity error",
                username=user.username,
                error=str(e.orig) if e.orig else str(e),
            )
            raise

    async def update(self, user: User) -> User:
        """
        Flush pending changes of a loaded user.

        Raises:
            StaleDataError: If the row was changed concurrently
            IntegrityError: If a unique constraint is violated
        """
        await self.session.flush()
        await self.session.refresh(user)

        logger.debug("User updated", user_id=user.id, status=user.status.value)
        return user

    async def hard_delete(self, user_id: str) -> bool:
        """
        Physically remove a user row.

        Out-of-band maintenance operation, not part of the status lifecycle.

        Returns:
            True if a row was removed
        """
        result = await self.session.execute(delete(User).where(User.id == user_id))
        removed = (result.rowcount or 0) > 0

        logger.info("User hard deleted", user_id=user_id, removed=removed)
        return removed
