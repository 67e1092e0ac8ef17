"""Custom Exception Hierarchy.

Typed exceptions raised by the marketplace core. Each carries a stable
error code (its ``kind``) and maps to an HTTP status code, so the API
layer can translate them without inspecting messages.
"""

from typing import Any, Dict, List, Optional

from src.api_errors.config import ErrorCode, ERROR_STATUS_MAP


class FoodConnectError(Exception):
    """Base exception for all FoodConnect errors.

    All domain exceptions inherit from this, allowing a single
    exception handler to catch the entire hierarchy.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = ERROR_STATUS_MAP.get(error_code, 500)
        self.details = details or []

    @property
    def kind(self) -> str:
        return self.error_code.value


class ValidationError(FoodConnectError):
    """Raised when input fails validation."""

    def __init__(
        self,
        message: str = "Validation failed",
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
        field: Optional[str] = None,
    ):
        if field and not details:
            details = [{"field": field, "issue": message}]
        super().__init__(message, error_code, details)


class AuthenticationError(FoodConnectError):
    """Raised when no caller identity was supplied."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.AUTHENTICATION_REQUIRED,
    ):
        super().__init__(message, error_code)


class AuthorizationError(FoodConnectError):
    """Raised when the caller is not the owner or has the wrong role."""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        error_code: ErrorCode = ErrorCode.INSUFFICIENT_PERMISSIONS,
    ):
        super().__init__(message, error_code)


class NotFoundError(FoodConnectError):
    """Raised when a requested entity does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ):
        details = []
        if resource_type or resource_id:
            details = [{"resource_type": resource_type, "resource_id": resource_id}]
        super().__init__(message, error_code, details)


class ConflictError(FoodConnectError):
    """Raised on uniqueness violations or deletes blocked by dependents."""

    def __init__(
        self,
        message: str = "Resource conflict",
        error_code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
    ):
        super().__init__(message, error_code)


class InvalidStateError(FoodConnectError):
    """Raised when an operation is not valid for the current lifecycle state."""

    def __init__(
        self,
        message: str = "Operation not allowed in the current state",
        current_state: Optional[str] = None,
        attempted: Optional[str] = None,
    ):
        details = []
        if current_state or attempted:
            details = [{"current_state": current_state, "attempted": attempted}]
        super().__init__(message, ErrorCode.INVALID_STATE, details)
        self.current_state = current_state
        self.attempted = attempted


class CapacityError(FoodConnectError):
    """Raised when a campaign has no free influencer slots."""

    def __init__(
        self,
        message: str = "Campaign has reached maximum number of influencers",
        max_influencers: Optional[int] = None,
    ):
        details = []
        if max_influencers is not None:
            details = [{"max_influencers": max_influencers}]
        super().__init__(message, ErrorCode.CAPACITY_EXCEEDED, details)


class ExpiredError(FoodConnectError):
    """Raised when a campaign deadline has passed."""

    def __init__(self, message: str = "Campaign deadline has passed"):
        super().__init__(message, ErrorCode.DEADLINE_PASSED)


class DatabaseError(FoodConnectError):
    """Raised when the record store fails for a reason other than a constraint."""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, ErrorCode.DATABASE_ERROR)
