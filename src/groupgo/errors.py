"""
Custom exceptions and error handling for GroupGo.

Defines application-specific exceptions with error codes so every store
operation can report failures the same way, whichever backend raised them.

Usage:
    from groupgo.errors import InvariantViolationError, ErrorCode

    raise InvariantViolationError("Cannot remove the organizer", code=ErrorCode.CANNOT_REMOVE_ORGANIZER)
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for client-facing error messages."""

    # Authentication errors
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    AUTH_FAILED = "AUTH_FAILED"

    # Input errors
    INVALID_EMAIL = "INVALID_EMAIL"

    # Lookup errors
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    TRIP_NOT_FOUND = "TRIP_NOT_FOUND"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"

    # Invariant errors
    CANNOT_REMOVE_ORGANIZER = "CANNOT_REMOVE_ORGANIZER"
    INVITATION_CLOSED = "INVITATION_CLOSED"
    INVITATION_TRIP_MISMATCH = "INVITATION_TRIP_MISMATCH"

    # Authorization errors
    NOT_TRIP_OWNER = "NOT_TRIP_OWNER"

    # Payment backend errors
    BACKEND_ERROR = "BACKEND_ERROR"

    # Store errors
    TRANSACTION_CONFLICT = "TRANSACTION_CONFLICT"

    # System errors
    UNKNOWN = "UNKNOWN"


USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NOT_AUTHENTICATED: "You are not signed in. Please sign in and try again.",
    ErrorCode.AUTH_FAILED: "Authentication failed. Please check your email and password.",
    ErrorCode.INVALID_EMAIL: "Please enter an email address.",
    ErrorCode.DOCUMENT_NOT_FOUND: "The requested item no longer exists.",
    ErrorCode.TRIP_NOT_FOUND: "This trip no longer exists.",
    ErrorCode.INVITATION_NOT_FOUND: "This invitation no longer exists.",
    ErrorCode.CANNOT_REMOVE_ORGANIZER: "The trip organizer cannot be removed from the trip.",
    ErrorCode.INVITATION_CLOSED: "This invitation has already been answered.",
    ErrorCode.INVITATION_TRIP_MISMATCH: "This invitation does not belong to that trip.",
    ErrorCode.NOT_TRIP_OWNER: "Only the trip organizer can do that.",
    ErrorCode.BACKEND_ERROR: "The payment service reported an error. Please try again.",
    ErrorCode.TRANSACTION_CONFLICT: "Someone else changed this trip at the same time. Please try again.",
    ErrorCode.UNKNOWN: "An unexpected error occurred. Please try again.",
}


class GroupGoError(Exception):
    """Base exception for all GroupGo errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.code, USER_MESSAGES[ErrorCode.UNKNOWN])


class NotAuthenticatedError(GroupGoError):
    """No signed-in user, or the identity provider rejected the credentials."""

    def __init__(self, message: str = "Not authenticated", code: ErrorCode = ErrorCode.NOT_AUTHENTICATED):
        super().__init__(message, code=code)


class NotFoundError(GroupGoError):
    """A referenced document does not exist."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.DOCUMENT_NOT_FOUND):
        super().__init__(message, code=code)


class InvariantViolationError(GroupGoError):
    """The requested change would break a data invariant."""

    pass


class PermissionDeniedError(GroupGoError):
    """The caller is signed in but not allowed to change this document."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.NOT_TRIP_OWNER):
        super().__init__(message, code=code)


class BackendError(GroupGoError):
    """Payment backend returned a non-2xx response or could not be reached."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.BACKEND_ERROR):
        super().__init__(message, code=code)


class TransactionConflictError(GroupGoError):
    """A transaction kept conflicting with concurrent writes."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.TRANSACTION_CONFLICT):
        super().__init__(message, code=code)
