"""
User management API endpoints.

Errors raised by the service propagate as ``BVSError`` subclasses and are
rendered by the application-wide problem detail handler. Fixed paths such as
``/active`` and ``/stats`` are declared before ``/{user_id}`` so they are not
captured as identifiers.
"""

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from bvs.api.deps import UserServiceDep
from bvs.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from bvs.core.exceptions import ValidationError
from bvs.core.logging import get_logger
from bvs.schemas.common import ApiResponse, PageResponse
from bvs.schemas.users import (
    LoginRequest,
    LoginResponse,
    UserCreate,
    UserResponse,
    UserStatusCounts,
    UserUpdate,
)
from bvs.services.users.enums import UserStatus

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _parse_status(value: str) -> UserStatus:
    try:
        return UserStatus.from_string(value)
    except ValueError as e:
        raise ValidationError(str(e), field_name="status") from e


@router.post(
    "",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a user. The identifier is generated by the system; "
    "any id in the request body is ignored.",
)
async def create_user(
    user_data: UserCreate,
    service: UserServiceDep,
) -> ApiResponse[UserResponse]:
    user = await service.create_user(user_data)
    return ApiResponse.ok(user, "User created successfully")


@router.get(
    "",
    response_model=ApiResponse[PageResponse[UserResponse]],
    summary="List users",
)
async def list_users(
    service: UserServiceDep,
    page: Annotated[int, Query(ge=0, description="0-indexed page number")] = 0,
    size: Annotated[
        int, Query(ge=1, le=MAX_PAGE_SIZE, description="Items per page")
    ] = DEFAULT_PAGE_SIZE,
) -> ApiResponse[PageResponse[UserResponse]]:
    users = await service.list_users(page=page, size=size)
    return ApiResponse.ok(users, "Users retrieved successfully")


@router.get(
    "/active",
    response_model=ApiResponse[list[UserResponse]],
    summary="List active users",
)
async def list_active_users(service: UserServiceDep) -> ApiResponse[list[UserResponse]]:
    users = await service.list_active_users()
    return ApiResponse.ok(users, "Active users retrieved successfully")


@router.get(
    "/status/{status_value}",
    response_model=ApiResponse[list[UserResponse]],
    summary="List users by status",
)
async def list_users_by_status(
    status_value: str,
    service: UserServiceDep,
) -> ApiResponse[list[UserResponse]]:
    users = await service.list_users_by_status(_parse_status(status_value))
    return ApiResponse.ok(users, "Users retrieved successfully")


@router.get(
    "/stats",
    response_model=ApiResponse[UserStatusCounts],
    summary="Count users per status",
)
async def user_stats(service: UserServiceDep) -> ApiResponse[UserStatusCounts]:
    counts = await service.count_users_by_status()
    return ApiResponse.ok(counts, "User statistics retrieved successfully")


@router.get(
    "/username/{username}",
    response_model=ApiResponse[UserResponse],
    summary="Get user by username",
)
async def get_user_by_username(
    username: str,
    service: UserServiceDep,
) -> ApiResponse[UserResponse]:
    user = await service.get_user_by_username(username)
    return ApiResponse.ok(user, "User retrieved successfully")


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    summary="Check user credentials",
)
async def login(
    credentials: LoginRequest,
    service: UserServiceDep,
) -> ApiResponse[LoginResponse]:
    user = await service.authenticate(credentials.username, credentials.password)
    return ApiResponse.ok(LoginResponse(user=user), "Login successful")


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserResponse],
    summary="Get user by id",
)
async def get_user(user_id: str, service: UserServiceDep) -> ApiResponse[UserResponse]:
    user = await service.get_user(user_id)
    return ApiResponse.ok(user, "User retrieved successfully")


@router.put(
    "/{user_id}",
    response_model=ApiResponse[UserResponse],
    summary="Update user",
)
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    service: UserServiceDep,
) -> ApiResponse[UserResponse]:
    user = await service.update_user(user_id, user_data)
    return ApiResponse.ok(user, "User updated successfully")


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Soft delete user",
    description="Mark the user DELETED. The record is kept.",
)
async def delete_user(user_id: str, service: UserServiceDep) -> Response:
    await service.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{user_id}/purge",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Permanently remove user",
)
async def purge_user(user_id: str, service: UserServiceDep) -> Response:
    await service.purge_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{user_id}/deactivate",
    response_model=ApiResponse[UserResponse],
    summary="Deactivate user",
)
async def deactivate_user(user_id: str, service: UserServiceDep) -> ApiResponse[UserResponse]:
    user = await service.deactivate_user(user_id)
    return ApiResponse.ok(user, "User deactivated successfully")


@router.patch(
    "/{user_id}/reactivate",
    response_model=ApiResponse[UserResponse],
    summary="Reactivate user",
)
async def reactivate_user(user_id: str, service: UserServiceDep) -> ApiResponse[UserResponse]:
    user = await service.reactivate_user(user_id)
    return ApiResponse.ok(user, "User reactivated successfully")


@router.patch(
    "/{user_id}/suspend",
    response_model=ApiResponse[UserResponse],
    summary="Suspend user",
)
async def suspend_user(user_id: str, service: UserServiceDep) -> ApiResponse[UserResponse]:
    user = await service.suspend_user(user_id)
    return ApiResponse.ok(user, "User suspended successfully")


@router.patch(
    "/{user_id}/lock",
    response_model=ApiResponse[UserResponse],
    summary="Lock user",
)
async def lock_user(user_id: str, service: UserServiceDep) -> ApiResponse[UserResponse]:
    user = await service.lock_user(user_id)
    return ApiResponse.ok(user, "User locked successfully")


@router.patch(
    "/{user_id}/status",
    response_model=ApiResponse[UserResponse],
    summary="Change user status",
)
async def update_user_status(
    user_id: str,
    service: UserServiceDep,
    status_value: Annotated[str, Query(alias="status", min_length=1)],
) -> ApiResponse[UserResponse]:
    user = await service.update_user_status(user_id, _parse_status(status_value))
    return ApiResponse.ok(user, "User status updated successfully")
