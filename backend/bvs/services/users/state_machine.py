"""User status lifecycle rules.

Pure functions deciding whether a status change is legal. They neither
persist nor log; callers store the returned status and record the previous
value if they keep an audit trail. Concurrent changes to the same record must
be serialised by the storage layer (see ``User.version``).

The only rule enforced here is that DELETED is terminal. Moves between the
other five statuses are always allowed; whether a given caller may, e.g.,
lift a suspension is an authorization concern outside this module.
"""

from typing import Set

from bvs.core.exceptions import InvalidStatusTransitionError
from bvs.services.users.enums import UserStatus

__all__ = [
    "InvalidStatusTransitionError",
    "can_login",
    "can_self_reactivate",
    "get_allowed_transitions",
    "is_transition_allowed",
    "soft_delete",
    "transition",
]


def can_login(status: UserStatus) -> bool:
    """True iff the status is ACTIVE."""
    return status.can_login()


def can_self_reactivate(status: UserStatus) -> bool:
    """True iff the status is INACTIVE or PENDING."""
    return status.can_self_reactivate()


def is_transition_allowed(current: UserStatus, target: UserStatus) -> bool:
    """Check a status change without raising.

    Args:
        current: Status the record has now
        target: Requested status

    Returns:
        False only when leaving DELETED for another status
    """
    return not (current.is_terminal() and target != current)


def get_allowed_transitions(current: UserStatus) -> Set[UserStatus]:
    """Get all statuses reachable from ``current``."""
    return {target for target in UserStatus if is_transition_allowed(current, target)}


def transition(current: UserStatus, target: UserStatus) -> UserStatus:
    """Validate a status change and return the new status.

    Args:
        current: Status the record has now
        target: Requested status

    Returns:
        ``target``

    Raises:
        InvalidStatusTransitionError: If ``current`` is DELETED and
            ``target`` is not
    """
    if not is_transition_allowed(current, target):
        raise InvalidStatusTransitionError(current, target)
    return target


def soft_delete(current: UserStatus) -> UserStatus:
    """Move any status to DELETED. Deleting a deleted record is a no-op."""
    return transition(current, UserStatus.DELETED)
