"""Constants shared by all BVS services."""

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

ERROR_TYPE_BASE_URL = "https://api.bvs.com/errors"


class ErrorCodes:
    """Machine-readable error codes returned in problem responses."""

    # General errors
    BVS_ERROR = "BVS_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Resource errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"

    # User errors
    USER_SERVICE_ERROR = "USER_SERVICE_ERROR"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    USER_INACTIVE = "USER_INACTIVE"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Storage errors
    STORAGE_ERROR = "STORAGE_ERROR"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
