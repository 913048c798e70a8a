"""
Test suite for UserService business logic.

The repository and session are mocked; the tests verify identifier
assignment, uniqueness checks, status lifecycle enforcement, transaction
handling and credential checks.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from bvs.core import ids
from bvs.core.constants import ErrorCodes
from bvs.core.exceptions import (
    InvalidPasswordError,
    InvalidStatusTransitionError,
    ResourceConflictError,
    UserAlreadyExistsError,
    UserNotFoundError,
    UserServiceError,
)
from bvs.core.security import verify_password
from bvs.schemas.users import UserCreate, UserUpdate
from bvs.services.users.enums import UserStatus
from bvs.services.users.repository import UserRepository
from bvs.services.users.service import UserService

PASSWORD = "Sup3r$ecretPass"


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def mock_repository():
    """Create mock user repository with pass-through writes."""
    repository = AsyncMock(spec=UserRepository)
    repository.exists_by_username.return_value = False
    repository.exists_by_email.return_value = False
    repository.create.side_effect = lambda user: user
    repository.update.side_effect = lambda user: user
    return repository


@pytest.fixture
def user_service(mock_session, mock_repository):
    return UserService(session=mock_session, repository=mock_repository)


@pytest.fixture
def create_data():
    return UserCreate(
        username="jdoe42",
        email="jdoe@example.com",
        password=PASSWORD,
        first_name="John",
        last_name="Doe",
    )


# ============================================================================
# Create
# ============================================================================


class TestCreateUser:
    async def test_assigns_system_id_and_active_status(
        self, user_service, mock_repository, mock_session, create_data
    ):
        result = await user_service.create_user(create_data)

        assert ids.is_valid(result.id, "BVSCS")
        assert result.status is UserStatus.ACTIVE
        assert result.username == "jdoe42"
        mock_session.commit.assert_awaited_once()

        stored = mock_repository.create.call_args.args[0]
        assert stored.id == result.id
        assert stored.password_hash != PASSWORD
        assert verify_password(PASSWORD, stored.password_hash)

    async def test_client_supplied_id_is_ignored(self, user_service):
        data = UserCreate.model_validate(
            {
                "id": "BVSCS-20000101000000-HACK",
                "username": "jdoe42",
                "email": "jdoe@example.com",
                "password": PASSWORD,
            }
        )

        result = await user_service.create_user(data)

        assert result.id != "BVSCS-20000101000000-HACK"

    async def test_duplicate_username(self, user_service, mock_repository, create_data):
        mock_repository.exists_by_username.return_value = True

        with pytest.raises(UserAlreadyExistsError) as exc_info:
            await user_service.create_user(create_data)

        assert exc_info.value.code == ErrorCodes.USER_ALREADY_EXISTS
        assert exc_info.value.message == "User with username 'jdoe42' already exists"
        mock_repository.create.assert_not_awaited()

    async def test_duplicate_email(self, user_service, mock_repository, create_data):
        mock_repository.exists_by_email.return_value = True

        with pytest.raises(UserAlreadyExistsError, match="email"):
            await user_service.create_user(create_data)

    async def test_integrity_error_rolls_back(
        self, user_service, mock_repository, mock_session, create_data
    ):
        mock_repository.create.side_effect = IntegrityError("INSERT", {}, Exception("dup"))
        mock_repository.exists_by_username.side_effect = [False, True]

        with pytest.raises(UserAlreadyExistsError, match="username"):
            await user_service.create_user(create_data)

        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()

    async def test_integrity_error_on_email_reports_email(
        self, user_service, mock_repository, create_data
    ):
        mock_repository.create.side_effect = IntegrityError("INSERT", {}, Exception("dup"))
        mock_repository.exists_by_email.side_effect = [False, True]

        with pytest.raises(UserAlreadyExistsError) as exc_info:
            await user_service.create_user(create_data)

        assert exc_info.value.context["field"] == "email"

    async def test_integrity_error_on_generated_id_is_conflict(
        self, user_service, mock_repository, create_data
    ):
        mock_repository.create.side_effect = IntegrityError("INSERT", {}, Exception("pkey"))

        with pytest.raises(ResourceConflictError) as exc_info:
            await user_service.create_user(create_data)

        assert exc_info.value.status_code == 409
        assert exc_info.value.context["user_id"].startswith("BVSCS-")

    async def test_database_error_propagates(
        self, user_service, mock_repository, mock_session, create_data
    ):
        mock_repository.create.side_effect = SQLAlchemyError("down")

        with pytest.raises(SQLAlchemyError):
            await user_service.create_user(create_data)

        mock_session.rollback.assert_awaited_once()


# ============================================================================
# Read
# ============================================================================


class TestReadUsers:
    async def test_get_user(self, user_service, mock_repository, make_user):
        mock_repository.get_by_id.return_value = make_user()

        result = await user_service.get_user("BVSCS-20251003143025-AB12")

        assert result.email == "jdoe@example.com"
        assert not hasattr(result, "password_hash")

    async def test_get_user_not_found(self, user_service, mock_repository):
        mock_repository.get_by_id.return_value = None

        with pytest.raises(UserNotFoundError) as exc_info:
            await user_service.get_user("BVSCS-20251003143025-ZZZZ")

        assert exc_info.value.message == "User not found with id: BVSCS-20251003143025-ZZZZ"
        assert exc_info.value.status_code == 404

    async def test_get_user_by_username_not_found(self, user_service, mock_repository):
        mock_repository.get_by_username.return_value = None

        with pytest.raises(UserNotFoundError, match="username: ghost"):
            await user_service.get_user_by_username("ghost")

    async def test_list_users_pages(self, user_service, mock_repository, make_user):
        mock_repository.list_all.return_value = [
            make_user(user_id=f"BVSCS-20251003143025-AB1{i}", username=f"user{i}",
                      email=f"user{i}@example.com")
            for i in range(2)
        ]
        mock_repository.count_all.return_value = 5

        page = await user_service.list_users(page=1, size=2)

        mock_repository.list_all.assert_awaited_once_with(offset=2, limit=2)
        assert len(page.content) == 2
        assert page.total_elements == 5
        assert page.total_pages == 3
        assert page.has_next and page.has_previous
        assert not page.first and not page.last

    async def test_list_active_users(self, user_service, mock_repository, make_user):
        mock_repository.list_by_status.return_value = [make_user()]

        result = await user_service.list_active_users()

        mock_repository.list_by_status.assert_awaited_once_with(UserStatus.ACTIVE)
        assert len(result) == 1

    async def test_count_users_by_status(self, user_service, mock_repository):
        counts = {status: 0 for status in UserStatus}
        counts[UserStatus.ACTIVE] = 3
        counts[UserStatus.DELETED] = 1
        mock_repository.count_by_status.return_value = counts

        result = await user_service.count_users_by_status()

        assert result.total == 4
        assert result.counts[UserStatus.ACTIVE] == 3


# ============================================================================
# Update
# ============================================================================


class TestUpdateUser:
    async def test_update_profile_keeps_password(
        self, user_service, mock_repository, mock_session, make_user
    ):
        user = make_user()
        original_hash = user.password_hash
        mock_repository.get_by_id.return_value = user

        result = await user_service.update_user(
            user.id,
            UserUpdate(username="jdoe42", email="john@example.com", first_name="Johnny"),
        )

        assert result.email == "john@example.com"
        assert result.first_name == "Johnny"
        assert user.password_hash == original_hash
        mock_repository.exists_by_username.assert_not_awaited()
        mock_repository.exists_by_email.assert_awaited_once_with("john@example.com")
        mock_session.commit.assert_awaited_once()

    async def test_update_rehashes_new_password(self, user_service, mock_repository, make_user):
        user = make_user()
        mock_repository.get_by_id.return_value = user

        await user_service.update_user(
            user.id,
            UserUpdate(username="jdoe42", email="jdoe@example.com", password="N3w$ecretPass!"),
        )

        assert verify_password("N3w$ecretPass!", user.password_hash)

    async def test_update_rejects_taken_username(self, user_service, mock_repository, make_user):
        mock_repository.get_by_id.return_value = make_user()
        mock_repository.exists_by_username.return_value = True

        with pytest.raises(UserAlreadyExistsError):
            await user_service.update_user(
                "BVSCS-20251003143025-AB12",
                UserUpdate(username="taken", email="jdoe@example.com"),
            )

    async def test_update_deleted_user_rejected(
        self, user_service, mock_repository, mock_session, make_user
    ):
        mock_repository.get_by_id.return_value = make_user(status=UserStatus.DELETED)

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            await user_service.update_user(
                "BVSCS-20251003143025-AB12",
                UserUpdate(username="jdoe42", email="jdoe@example.com"),
            )

        assert exc_info.value.message == "Cannot update a deleted user"
        assert exc_info.value.code == ErrorCodes.INVALID_STATUS_TRANSITION
        assert "current_status" not in exc_info.value.context
        mock_session.commit.assert_not_awaited()

    async def test_stale_update_maps_to_conflict(
        self, user_service, mock_repository, mock_session, make_user
    ):
        mock_repository.get_by_id.return_value = make_user()
        mock_repository.update.side_effect = StaleDataError("version mismatch")

        with pytest.raises(ResourceConflictError) as exc_info:
            await user_service.update_user(
                "BVSCS-20251003143025-AB12",
                UserUpdate(username="jdoe42", email="jdoe@example.com"),
            )

        assert exc_info.value.status_code == 409
        mock_session.rollback.assert_awaited_once()


# ============================================================================
# Status Lifecycle
# ============================================================================


class TestStatusOperations:
    @pytest.mark.parametrize(
        "method,expected",
        [
            ("delete_user", UserStatus.DELETED),
            ("deactivate_user", UserStatus.INACTIVE),
            ("suspend_user", UserStatus.SUSPENDED),
            ("lock_user", UserStatus.LOCKED),
        ],
    )
    async def test_status_operation(
        self, user_service, mock_repository, mock_session, make_user, method, expected
    ):
        user = make_user()
        mock_repository.get_by_id.return_value = user

        result = await getattr(user_service, method)(user.id)

        assert result.status is expected
        assert user.status is expected
        mock_session.commit.assert_awaited_once()

    async def test_reactivate_suspended_user(self, user_service, mock_repository, make_user):
        mock_repository.get_by_id.return_value = make_user(status=UserStatus.SUSPENDED)

        result = await user_service.reactivate_user("BVSCS-20251003143025-AB12")

        assert result.status is UserStatus.ACTIVE

    async def test_soft_delete_keeps_record(self, user_service, mock_repository, make_user):
        mock_repository.get_by_id.return_value = make_user()

        await user_service.delete_user("BVSCS-20251003143025-AB12")

        mock_repository.hard_delete.assert_not_awaited()

    async def test_reactivate_deleted_user_fails_and_leaves_record(
        self, user_service, mock_repository, mock_session, make_user
    ):
        user = make_user(status=UserStatus.DELETED)
        mock_repository.get_by_id.return_value = user

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            await user_service.reactivate_user(user.id)

        assert exc_info.value.code == ErrorCodes.INVALID_STATUS_TRANSITION
        assert user.status is UserStatus.DELETED
        mock_repository.update.assert_not_awaited()
        mock_session.commit.assert_not_awaited()

    async def test_delete_deleted_user_is_idempotent(
        self, user_service, mock_repository, mock_session, make_user
    ):
        mock_repository.get_by_id.return_value = make_user(status=UserStatus.DELETED)

        result = await user_service.delete_user("BVSCS-20251003143025-AB12")

        assert result.status is UserStatus.DELETED
        mock_session.commit.assert_not_awaited()

    async def test_status_change_on_missing_user(self, user_service, mock_repository):
        mock_repository.get_by_id.return_value = None

        with pytest.raises(UserNotFoundError):
            await user_service.lock_user("BVSCS-20251003143025-ZZZZ")

    async def test_concurrent_status_change_conflict(
        self, user_service, mock_repository, make_user
    ):
        mock_repository.get_by_id.return_value = make_user()
        mock_repository.update.side_effect = StaleDataError("version mismatch")

        with pytest.raises(ResourceConflictError):
            await user_service.suspend_user("BVSCS-20251003143025-AB12")


class TestPurgeUser:
    async def test_purge(self, user_service, mock_repository, mock_session):
        mock_repository.hard_delete.return_value = True

        await user_service.purge_user("BVSCS-20251003143025-AB12")

        mock_session.commit.assert_awaited_once()

    async def test_purge_missing(self, user_service, mock_repository, mock_session):
        mock_repository.hard_delete.return_value = False

        with pytest.raises(UserNotFoundError):
            await user_service.purge_user("BVSCS-20251003143025-AB12")

        mock_session.commit.assert_not_awaited()


# ============================================================================
# Authentication
# ============================================================================


class TestAuthenticate:
    async def test_valid_credentials(self, user_service, mock_repository, make_user):
        mock_repository.get_active_by_username.return_value = make_user()

        result = await user_service.authenticate("jdoe42", PASSWORD)

        assert result.username == "jdoe42"

    async def test_wrong_password(self, user_service, mock_repository, make_user):
        mock_repository.get_active_by_username.return_value = make_user()

        with pytest.raises(InvalidPasswordError) as exc_info:
            await user_service.authenticate("jdoe42", "Wr0ng$ecretPass")

        assert exc_info.value.status_code == 401

    async def test_unknown_or_deleted_user(self, user_service, mock_repository):
        mock_repository.get_active_by_username.return_value = None

        with pytest.raises(UserNotFoundError):
            await user_service.authenticate("ghost", PASSWORD)

    @pytest.mark.parametrize(
        "status",
        [UserStatus.INACTIVE, UserStatus.SUSPENDED, UserStatus.PENDING, UserStatus.LOCKED],
    )
    async def test_status_without_login_rights(
        self, user_service, mock_repository, make_user, status
    ):
        mock_repository.get_active_by_username.return_value = make_user(status=status)

        with pytest.raises(UserServiceError) as exc_info:
            await user_service.authenticate("jdoe42", PASSWORD)

        assert exc_info.value.code == ErrorCodes.USER_INACTIVE
