"""
User service for business logic operations.

This module implements the UserService class: account creation with
system-assigned identifiers, lookups, paging, profile updates, status
lifecycle operations and credential checks. Every mutating operation commits
its own transaction and rolls back on failure.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from bvs.core.constants import ErrorCodes
from bvs.core.exceptions import (
    InvalidPasswordError,
    InvalidStatusTransitionError,
    ResourceConflictError,
    UserAlreadyExistsError,
    UserNotFoundError,
    UserServiceError,
)
from bvs.core.logging import get_logger
from bvs.core.security import hash_password, mask_email, verify_password
from bvs.database.models.user import User
from bvs.schemas.common import PageResponse
from bvs.schemas.users import UserCreate, UserResponse, UserStatusCounts, UserUpdate
from bvs.services.users.enums import UserStatus
from bvs.services.users.repository import UserRepository

logger = get_logger(__name__)


class UserService:
    """
    Business logic service for user accounts.

    Status changes always go through ``User.apply_status`` so the terminal
    DELETED state is enforced in one place.
    """

    def __init__(
        self,
        session: AsyncSession,
        repository: Optional[UserRepository] = None,
    ):
        """
        Initialize user service.

        Args:
            session: Async database session
            repository: Optional repository override
        """
        self.session = session
        self.repository = repository or UserRepository(session)

    @staticmethod
    def _to_response(user: User) -> UserResponse:
        return UserResponse.model_validate(user)

    async def _get_or_raise(self, user_id: str) -> User:
        user = await self.repository.get_by_id(user_id)
        if user is None:
            logger.warning("User not found", user_id=user_id)
            raise UserNotFoundError("id", user_id)
        return user

    async def _commit_update(self, user: User, operation: str) -> User:
        try:
            user = await self.repository.update(user)
            await self.session.commit()
            return user

        except StaleDataError as e:
            await self.session.rollback()
            logger.warning(
                "Concurrent modification detected",
                user_id=user.id,
                operation=operation,
            )
            raise ResourceConflictError(
                "User was modified concurrently, please retry",
                user_id=user.id,
            ) from e

        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "User update failed - integrity error",
                user_id=user.id,
                operation=operation,
                error=str(e.orig) if e.orig else str(e),
            )
            raise UserServiceError(
                "User update violates a uniqueness constraint",
                user_id=user.id,
            ) from e

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "User update failed - database error",
                user_id=user.id,
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    async def create_user(self, user_data: UserCreate) -> UserResponse:
        """
        Create a new user.

        The identifier is generated by the system and the user starts ACTIVE.

        Args:
            user_data: Validated creation data

        Returns:
            Created user response

        Raises:
            UserAlreadyExistsError: If the username or email is taken
            ResourceConflictError: If the generated id collided with an existing one
        """
        if await self.repository.exists_by_username(user_data.username):
            raise UserAlreadyExistsError("username", user_data.username)
        if await self.repository.exists_by_email(user_data.email):
            raise UserAlreadyExistsError("email", user_data.email)

        user = User.create(
            username=user_data.username,
            email=user_data.email,
            password_hash=hash_password(user_data.password),
            first_name=user_data.first_name,
            last_name=user_data.last_name,
        )

        try:
            created = await self.repository.create(user)
            await self.session.commit()

        except IntegrityError as e:
            await self.session.rollback()
            # Lost a race against a concurrent insert; find out which key collided.
            if await self.repository.exists_by_username(user_data.username):
                raise UserAlreadyExistsError("username", user_data.username) from e
            if await self.repository.exists_by_email(user_data.email):
                raise UserAlreadyExistsError("email", user_data.email) from e
            logger.warning(
                "User creation collided on generated id",
                user_id=user.id,
            )
            raise ResourceConflictError(
                "User could not be created, please retry",
                user_id=user.id,
            ) from e

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "User creation failed - database error",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        logger.info(
            "User created successfully",
            user_id=created.id,
            username=created.username,
            email=mask_email(created.email),
        )
        return self._to_response(created)

    async def get_user(self, user_id: str) -> UserResponse:
        """
        Get a user by identifier.

        Raises:
            UserNotFoundError: If no user has this identifier
        """
        return self._to_response(await self._get_or_raise(user_id))

    async def get_user_by_username(self, username: str) -> UserResponse:
        user = await self.repository.get_by_username(username)
        if user is None:
            raise UserNotFoundError("username", username)
        return self._to_response(user)

    async def list_users(self, page: int = 0, size: int = 20) -> PageResponse[UserResponse]:
        """
        List users one page at a time.

        Args:
            page: 0-indexed page number
            size: Page size

        Returns:
            Page of user responses
        """
        users = await self.repository.list_all(offset=page * size, limit=size)
        total = await self.repository.count_all()
        return PageResponse[UserResponse].build(
            content=[self._to_response(u) for u in users],
            page_number=page,
            page_size=size,
            total_elements=total,
        )

    async def list_active_users(self) -> list[UserResponse]:
        users = await self.repository.list_by_status(UserStatus.ACTIVE)
        return [self._to_response(u) for u in users]

    async def list_users_by_status(self, status: UserStatus) -> list[UserResponse]:
        users = await self.repository.list_by_status(status)
        return [self._to_response(u) for u in users]

    async def count_users_by_status(self) -> UserStatusCounts:
        counts = await self.repository.count_by_status()
        return UserStatusCounts(counts=counts, total=sum(counts.values()))

    async def update_user(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """
        Update a user's profile.

        The password is re-hashed only when a new one is supplied.

        Raises:
            UserNotFoundError: If the user does not exist
            InvalidStatusTransitionError: If the user is DELETED
            UserAlreadyExistsError: If the new username or email belongs to
                another user
        """
        user = await self._get_or_raise(user_id)

        if user.is_deleted:
            raise InvalidStatusTransitionError(message="Cannot update a deleted user")

        if user_data.username != user.username:
            if await self.repository.exists_by_username(user_data.username):
                raise UserAlreadyExistsError("username", user_data.username)
        if user_data.email != user.email:
            if await self.repository.exists_by_email(user_data.email):
                raise UserAlreadyExistsError("email", user_data.email)

        user.username = user_data.username
        user.email = user_data.email
        user.first_name = user_data.first_name
        user.last_name = user_data.last_name
        if user_data.password:
            user.password_hash = hash_password(user_data.password)

        user = await self._commit_update(user, "update")

        logger.info(
            "User updated successfully",
            user_id=user.id,
            password_changed=bool(user_data.password),
        )
        return self._to_response(user)

    async def update_user_status(self, user_id: str, status: UserStatus) -> UserResponse:
        """
        Move a user to ``status``.

        Requests that leave DELETED are rejected without touching the record.
        DELETED to DELETED succeeds and leaves the user unchanged.

        Raises:
            UserNotFoundError: If the user does not exist
            InvalidStatusTransitionError: If the user is DELETED and
                ``status`` is another status
        """
        user = await self._get_or_raise(user_id)

        try:
            previous = user.apply_status(status)
        except InvalidStatusTransitionError:
            logger.warning(
                "Rejected status transition",
                user_id=user_id,
                current_status=user.status.value,
                target_status=status.value,
            )
            raise

        if previous is status:
            return self._to_response(user)

        user = await self._commit_update(user, f"status:{status.value}")

        logger.info(
            "User status changed",
            user_id=user.id,
            previous_status=previous.value,
            new_status=status.value,
        )
        return self._to_response(user)

    async def delete_user(self, user_id: str) -> UserResponse:
        """Soft delete: mark the user DELETED and keep the record."""
        return await self.update_user_status(user_id, UserStatus.DELETED)

    async def deactivate_user(self, user_id: str) -> UserResponse:
        return await self.update_user_status(user_id, UserStatus.INACTIVE)

    async def reactivate_user(self, user_id: str) -> UserResponse:
        return await self.update_user_status(user_id, UserStatus.ACTIVE)

    async def suspend_user(self, user_id: str) -> UserResponse:
        return await self.update_user_status(user_id, UserStatus.SUSPENDED)

    async def lock_user(self, user_id: str) -> UserResponse:
        return await self.update_user_status(user_id, UserStatus.LOCKED)

    async def purge_user(self, user_id: str) -> None:
        """
        Physically delete a user.

        Maintenance operation outside the status lifecycle.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        try:
            removed = await self.repository.hard_delete(user_id)
            if not removed:
                raise UserNotFoundError("id", user_id)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

        logger.warning("User purged", user_id=user_id)

    async def authenticate(self, username: str, password: str) -> UserResponse:
        """
        Check credentials.

        Soft-deleted users are treated as unknown.

        Raises:
            UserNotFoundError: If no live user has this username
            InvalidPasswordError: If the password does not match
            UserServiceError: With code USER_INACTIVE if the status does
                not allow login
        """
        user = await self.repository.get_active_by_username(username)
        if user is None:
            raise UserNotFoundError("username", username)

        if not verify_password(password, user.password_hash):
            logger.warning("Authentication failed - invalid password", user_id=user.id)
            raise InvalidPasswordError()

        if not user.can_login:
            logger.warning(
                "Authentication failed - account not active",
                user_id=user.id,
                status=user.status.value,
            )
            raise UserServiceError(
                f"User account is {user.status.display_name.lower()}",
                code=ErrorCodes.USER_INACTIVE,
                status=user.status.value,
            )

        logger.info("User authenticated", user_id=user.id)
        return self._to_response(user)
