"""Exceptions raised by role management operations.

Each exception carries a ``kind`` so callers (HTTP handlers, bulk loops)
can tell "not permitted" apart from "permitted but failed to persist".
"""

from enum import Enum


class ErrorKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    INVARIANT_VIOLATION = "invariant_violation"
    ALREADY_IN_STATE = "already_in_state"
    NOT_FOUND = "not_found"
    TRANSIENT_BACKEND_FAILURE = "transient_backend_failure"


class RoleManagementError(Exception):
    """Base class for all role management errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PermissionDeniedError(RoleManagementError):
    """Raised when the actor lacks the rank or role for the change."""

    kind = ErrorKind.PERMISSION_DENIED


class InvariantViolationError(RoleManagementError):
    """Raised when a change would leave the system without a SUPER_ADMIN."""

    kind = ErrorKind.INVARIANT_VIOLATION


class AlreadyInStateError(RoleManagementError):
    """Raised when the target already holds (or lacks) the requested state.

    This is a no-op rather than a failure: bulk operations count it as skipped.
    """

    kind = ErrorKind.ALREADY_IN_STATE


class UserNotFoundError(RoleManagementError):
    """Raised when a user id does not resolve in the directory."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, user_id: str, message: str | None = None) -> None:
        self.user_id = user_id
        super().__init__(message or f"User '{user_id}' not found")


class TransientBackendError(RoleManagementError):
    """Raised when the directory could not complete the change.

    The change did not happen; retrying later may succeed.
    """

    kind = ErrorKind.TRANSIENT_BACKEND_FAILURE
