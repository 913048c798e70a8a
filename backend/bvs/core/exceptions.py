"""
Exception hierarchy shared by the BVS services.

Every error carries a human readable message, a machine-readable code and
free-form context. The HTTP layer maps each class to a status code through
``status_code`` and renders it as an RFC 7807 problem document.
"""

from typing import Any

from bvs.core.constants import ErrorCodes


class BVSError(Exception):
    """Base exception for all BVS service errors."""

    status_code: int = 400
    title: str = "BVS Error"

    def __init__(self, message: str, code: str = ErrorCodes.BVS_ERROR, **context: Any):
        super().__init__(message)
        self.message = message
        self.code = code
        self.context = context


class ResourceNotFoundError(BVSError):
    """Raised when a requested resource does not exist."""

    status_code = 404
    title = "Resource Not Found"

    def __init__(self, resource_name: str, field_name: str, field_value: Any, **context: Any):
        super().__init__(
            f"{resource_name} not found with {field_name}: {field_value}",
            code=ErrorCodes.RESOURCE_NOT_FOUND,
            resource=resource_name,
            **{field_name: str(field_value)},
            **context,
        )


class ResourceAlreadyExistsError(BVSError):
    """Raised when creating a resource that already exists."""

    status_code = 409
    title = "Resource Already Exists"

    def __init__(self, resource_name: str, field_name: str, field_value: Any, **context: Any):
        super().__init__(
            f"{resource_name} already exists with {field_name}: {field_value}",
            code=ErrorCodes.RESOURCE_ALREADY_EXISTS,
            resource=resource_name,
            **{field_name: str(field_value)},
            **context,
        )


class ResourceConflictError(BVSError):
    """Raised when a concurrent modification wins over the current one."""

    status_code = 409
    title = "Resource Conflict"

    def __init__(self, message: str, **context: Any):
        super().__init__(message, code=ErrorCodes.RESOURCE_CONFLICT, **context)


class ValidationError(BVSError):
    """Raised for business-level validation failures."""

    title = "Validation Error"

    def __init__(self, message: str, field_name: str | None = None, **context: Any):
        if field_name:
            message = f"Validation failed for field '{field_name}': {message}"
            context["field"] = field_name
        super().__init__(message, code=ErrorCodes.VALIDATION_ERROR, **context)


# User service


class UserServiceError(BVSError):
    """Base exception for the user service."""

    title = "User Service Error"

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.USER_SERVICE_ERROR,
        **context: Any,
    ):
        super().__init__(message, code=code, **context)


class UserNotFoundError(UserServiceError):
    """Raised when a user cannot be found."""

    status_code = 404
    title = "User Not Found"

    def __init__(self, field_name: str, value: Any):
        super().__init__(
            f"User not found with {field_name}: {value}",
            code=ErrorCodes.USER_NOT_FOUND,
            **{field_name: str(value)},
        )


class UserAlreadyExistsError(UserServiceError):
    """Raised when creating a user whose username or email is taken."""

    status_code = 409
    title = "User Already Exists"

    def __init__(self, field_name: str, value: Any):
        super().__init__(
            f"User with {field_name} '{value}' already exists",
            code=ErrorCodes.USER_ALREADY_EXISTS,
            field=field_name,
        )


class InvalidPasswordError(UserServiceError):
    """Raised when a supplied password does not match."""

    status_code = 401
    title = "Invalid Password"

    def __init__(self, message: str = "Invalid password provided"):
        super().__init__(message, code=ErrorCodes.INVALID_PASSWORD)


class InvalidStatusTransitionError(UserServiceError):
    """Raised when a status change would leave the terminal DELETED state."""

    title = "Invalid Status Transition"

    def __init__(
        self,
        current_status: Any = None,
        target_status: Any = None,
        message: str | None = None,
    ):
        current = getattr(current_status, "value", current_status)
        target = getattr(target_status, "value", target_status)
        context = {}
        if current is not None:
            context["current_status"] = current
        if target is not None:
            context["target_status"] = target
        super().__init__(
            message or f"Cannot transition user status from {current} to {target}",
            code=ErrorCodes.INVALID_STATUS_TRANSITION,
            **context,
        )
        self.current_status = current_status
        self.target_status = target_status


# Storage service


class StorageError(BVSError):
    """Raised when the object store fails."""

    status_code = 502
    title = "Storage Error"

    def __init__(self, message: str, code: str = ErrorCodes.STORAGE_ERROR, **context: Any):
        super().__init__(message, code=code, **context)


class FileNotFoundInStorageError(StorageError):
    """Raised when a stored object does not exist."""

    status_code = 404
    title = "File Not Found"

    def __init__(self, object_id: str):
        super().__init__(
            f"File not found with id: {object_id}",
            code=ErrorCodes.FILE_NOT_FOUND,
            object_id=object_id,
        )


class FileTooLargeError(StorageError):
    """Raised when an upload exceeds the configured size limit."""

    status_code = 413
    title = "File Too Large"

    def __init__(self, size: int, max_size: int):
        super().__init__(
            f"File size {size} bytes exceeds the maximum of {max_size} bytes",
            code=ErrorCodes.FILE_TOO_LARGE,
            size=size,
            max_size=max_size,
        )


class InvalidFileTypeError(StorageError):
    """Raised when an upload has a content type that is not accepted."""

    status_code = 415
    title = "Invalid File Type"

    def __init__(self, content_type: str):
        super().__init__(
            f"Content type '{content_type}' is not allowed",
            code=ErrorCodes.INVALID_FILE_TYPE,
            content_type=content_type,
        )
