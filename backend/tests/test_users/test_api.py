"""
Tests for the user API endpoints.

The user service is replaced through ``app.dependency_overrides``; the tests
check routing, status codes, response envelopes and problem detail errors.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import status

from bvs.api.deps import get_user_service
from bvs.core.exceptions import (
    InvalidPasswordError,
    InvalidStatusTransitionError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from bvs.main import app
from bvs.schemas.common import PageResponse
from bvs.schemas.users import UserResponse, UserStatusCounts
from bvs.services.users.enums import UserStatus
from bvs.services.users.service import UserService

USER_ID = "BVSCS-20251003143025-AB12"
PASSWORD = "Sup3r$ecretPass"


def _user_response(status_value: UserStatus = UserStatus.ACTIVE) -> UserResponse:
    now = datetime(2025, 10, 3, 14, 30, 25, tzinfo=timezone.utc)
    return UserResponse(
        id=USER_ID,
        username="jdoe42",
        email="jdoe@example.com",
        first_name="John",
        last_name="Doe",
        status=status_value,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def mock_user_service():
    """Create mock user service with async methods."""
    service = MagicMock(spec=UserService)
    for name in (
        "create_user",
        "get_user",
        "get_user_by_username",
        "list_users",
        "list_active_users",
        "list_users_by_status",
        "count_users_by_status",
        "update_user",
        "update_user_status",
        "delete_user",
        "deactivate_user",
        "reactivate_user",
        "suspend_user",
        "lock_user",
        "purge_user",
        "authenticate",
    ):
        setattr(service, name, AsyncMock())
    return service


@pytest.fixture
def client(test_client, mock_user_service):
    app.dependency_overrides[get_user_service] = lambda: mock_user_service
    return test_client


class TestCreateUserEndpoint:
    def test_create_returns_201(self, client, mock_user_service):
        mock_user_service.create_user.return_value = _user_response()

        response = client.post(
            "/api/users",
            json={"username": "jdoe42", "email": "jdoe@example.com", "password": PASSWORD},
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == USER_ID
        assert body["data"]["status"] == "ACTIVE"
        assert "password" not in body["data"]
        assert "password_hash" not in body["data"]

    def test_id_in_body_is_not_passed_to_service(self, client, mock_user_service):
        mock_user_service.create_user.return_value = _user_response()

        client.post(
            "/api/users",
            json={
                "id": "BVSCS-20000101000000-HACK",
                "username": "jdoe42",
                "email": "jdoe@example.com",
                "password": PASSWORD,
            },
        )

        sent = mock_user_service.create_user.call_args.args[0]
        assert "id" not in sent.model_dump()

    @pytest.mark.parametrize(
        "payload,field",
        [
            ({"username": "jdoe 42", "email": "jdoe@example.com", "password": PASSWORD}, "username"),
            ({"username": "j" * 26, "email": "jdoe@example.com", "password": PASSWORD}, "username"),
            ({"username": "jdoe42", "email": "not-an-email", "password": PASSWORD}, "email"),
            ({"username": "jdoe42", "email": "jdoe@example.com", "password": "Short1!"}, "password"),
            ({"username": "jdoe42", "email": "jdoe@example.com", "password": "nouppercase1!"}, "password"),
            ({"username": "jdoe42", "email": "jdoe@example.com", "password": "NoDigitsHere!!"}, "password"),
            ({"username": "jdoe42", "email": "jdoe@example.com", "password": "NoSpecials1234"}, "password"),
        ],
    )
    def test_validation_errors_are_400_problems(self, client, mock_user_service, payload, field):
        response = client.post("/api/users", json=payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["errorCode"] == "VALIDATION_ERROR"
        assert any(error.startswith(field) for error in body["errors"])
        mock_user_service.create_user.assert_not_awaited()

    def test_duplicate_is_409(self, client, mock_user_service):
        mock_user_service.create_user.side_effect = UserAlreadyExistsError("username", "jdoe42")

        response = client.post(
            "/api/users",
            json={"username": "jdoe42", "email": "jdoe@example.com", "password": PASSWORD},
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        body = response.json()
        assert body["errorCode"] == "USER_ALREADY_EXISTS"
        assert body["type"] == "https://api.bvs.com/errors/user-already-exists"
        assert body["instance"] == "/api/users"


class TestReadEndpoints:
    def test_get_user(self, client, mock_user_service):
        mock_user_service.get_user.return_value = _user_response()

        response = client.get(f"/api/users/{USER_ID}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["username"] == "jdoe42"
        mock_user_service.get_user.assert_awaited_once_with(USER_ID)

    def test_get_missing_user_is_404(self, client, mock_user_service):
        mock_user_service.get_user.side_effect = UserNotFoundError("id", "nope")

        response = client.get("/api/users/nope")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        body = response.json()
        assert body["errorCode"] == "USER_NOT_FOUND"
        assert body["detail"] == "User not found with id: nope"
        assert body["status"] == 404

    def test_list_users_paged(self, client, mock_user_service):
        mock_user_service.list_users.return_value = PageResponse[UserResponse].build(
            [_user_response()], page_number=0, page_size=20, total_elements=1
        )

        response = client.get("/api/users?page=0&size=20")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["total_elements"] == 1
        assert data["first"] is True and data["last"] is True
        mock_user_service.list_users.assert_awaited_once_with(page=0, size=20)

    def test_page_size_is_capped(self, client, mock_user_service):
        response = client.get("/api/users?size=101")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_fixed_paths_are_not_ids(self, client, mock_user_service):
        mock_user_service.list_active_users.return_value = [_user_response()]
        mock_user_service.count_users_by_status.return_value = UserStatusCounts(
            counts={s: 0 for s in UserStatus}, total=0
        )

        assert client.get("/api/users/active").status_code == 200
        assert client.get("/api/users/stats").status_code == 200
        mock_user_service.get_user.assert_not_awaited()

    def test_list_by_status_is_case_insensitive(self, client, mock_user_service):
        mock_user_service.list_users_by_status.return_value = []

        response = client.get("/api/users/status/suspended")

        assert response.status_code == 200
        mock_user_service.list_users_by_status.assert_awaited_once_with(UserStatus.SUSPENDED)

    def test_list_by_unknown_status_is_400(self, client, mock_user_service):
        response = client.get("/api/users/status/ENABLED")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errorCode"] == "VALIDATION_ERROR"

    def test_get_by_username(self, client, mock_user_service):
        mock_user_service.get_user_by_username.return_value = _user_response()

        response = client.get("/api/users/username/jdoe42")

        assert response.status_code == 200
        mock_user_service.get_user_by_username.assert_awaited_once_with("jdoe42")


class TestStatusEndpoints:
    def test_soft_delete_returns_204(self, client, mock_user_service):
        mock_user_service.delete_user.return_value = _user_response(UserStatus.DELETED)

        response = client.delete(f"/api/users/{USER_ID}")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert response.content == b""
        mock_user_service.delete_user.assert_awaited_once_with(USER_ID)

    def test_purge_returns_204(self, client, mock_user_service):
        response = client.delete(f"/api/users/{USER_ID}/purge")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        mock_user_service.purge_user.assert_awaited_once_with(USER_ID)

    @pytest.mark.parametrize(
        "action,method,result_status",
        [
            ("deactivate", "deactivate_user", UserStatus.INACTIVE),
            ("reactivate", "reactivate_user", UserStatus.ACTIVE),
            ("suspend", "suspend_user", UserStatus.SUSPENDED),
            ("lock", "lock_user", UserStatus.LOCKED),
        ],
    )
    def test_status_actions(self, client, mock_user_service, action, method, result_status):
        getattr(mock_user_service, method).return_value = _user_response(result_status)

        response = client.patch(f"/api/users/{USER_ID}/{action}")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == result_status.value

    def test_reactivate_deleted_user_is_400(self, client, mock_user_service):
        mock_user_service.reactivate_user.side_effect = InvalidStatusTransitionError(
            UserStatus.DELETED, UserStatus.ACTIVE
        )

        response = client.patch(f"/api/users/{USER_ID}/reactivate")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["errorCode"] == "INVALID_STATUS_TRANSITION"
        assert body["detail"] == "Cannot transition user status from DELETED to ACTIVE"

    def test_generic_status_change(self, client, mock_user_service):
        mock_user_service.update_user_status.return_value = _user_response(UserStatus.PENDING)

        response = client.patch(f"/api/users/{USER_ID}/status", params={"status": "pending"})

        assert response.status_code == 200
        mock_user_service.update_user_status.assert_awaited_once_with(USER_ID, UserStatus.PENDING)

    def test_generic_status_change_requires_status(self, client, mock_user_service):
        response = client.patch(f"/api/users/{USER_ID}/status")

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestLoginEndpoint:
    def test_login(self, client, mock_user_service):
        mock_user_service.authenticate.return_value = _user_response()

        response = client.post("/api/users/login", json={"username": "jdoe42", "password": PASSWORD})

        assert response.status_code == 200
        assert response.json()["data"]["authenticated"] is True

    def test_login_wrong_password_is_401(self, client, mock_user_service):
        mock_user_service.authenticate.side_effect = InvalidPasswordError()

        response = client.post("/api/users/login", json={"username": "jdoe42", "password": "x"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["errorCode"] == "INVALID_PASSWORD"
