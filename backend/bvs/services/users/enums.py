"""User status enum for soft delete and account lifecycle management.

Users are never removed by a status change: deletion is the terminal
DELETED status, and the record stays in storage.
"""

from enum import Enum


class UserStatus(str, Enum):
    """Account status of a user.

    Transitions:
    - any non-deleted status -> any status
    - DELETED -> DELETED only (terminal state)
    """

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    PENDING = "PENDING"
    LOCKED = "LOCKED"
    DELETED = "DELETED"

    @classmethod
    def from_string(cls, value: str) -> "UserStatus":
        """Convert string to UserStatus enum.

        Args:
            value: Status name, case-insensitive

        Returns:
            UserStatus enum value

        Raises:
            ValueError: If value is not a valid status
        """
        try:
            return cls(value.strip().upper())
        except (AttributeError, ValueError):
            valid_values = ", ".join(s.value for s in cls)
            raise ValueError(
                f"Invalid user status: {value}. "
                f"Valid values are: {valid_values}"
            )

    def can_login(self) -> bool:
        """Only active users may log in."""
        return self is UserStatus.ACTIVE

    def can_self_reactivate(self) -> bool:
        """Check if the user can return to ACTIVE without an administrator.

        Returns:
            True for INACTIVE and PENDING accounts
        """
        return self in {UserStatus.INACTIVE, UserStatus.PENDING}

    def is_deleted(self) -> bool:
        return self is UserStatus.DELETED

    def is_terminal(self) -> bool:
        """DELETED is the only terminal status."""
        return self is UserStatus.DELETED

    @property
    def display_name(self) -> str:
        return _DISPLAY[self][0]

    @property
    def description(self) -> str:
        return _DISPLAY[self][1]


_DISPLAY = {
    UserStatus.ACTIVE: ("Active", "User is active and can access the system"),
    UserStatus.INACTIVE: ("Inactive", "User is temporarily inactive"),
    UserStatus.SUSPENDED: ("Suspended", "User account is suspended"),
    UserStatus.PENDING: ("Pending", "User account is pending activation"),
    UserStatus.LOCKED: ("Locked", "User account is locked"),
    UserStatus.DELETED: ("Deleted", "User account is marked as deleted"),
}
