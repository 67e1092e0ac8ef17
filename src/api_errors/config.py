"""API Error Configuration.

Defines error codes, severity levels, and configuration for
structured error handling across the FoodConnect API.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class ErrorCode(Enum):
    """Stable, machine-readable error kinds."""

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_PAGINATION = "INVALID_PAGINATION"

    # Authentication errors (401)
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"

    # Authorization errors (403)
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Not found errors (404)
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"

    # Conflict errors (409)
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DUPLICATE_APPLICATION = "DUPLICATE_APPLICATION"
    INVALID_STATE = "INVALID_STATE"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"

    # Gone (410)
    DEADLINE_PASSED = "DEADLINE_PASSED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class ErrorSeverity(Enum):
    """Severity levels for error logging."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Map error codes to HTTP status codes
ERROR_STATUS_MAP: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.MISSING_REQUIRED_FIELD: 400,
    ErrorCode.INVALID_PAGINATION: 400,
    ErrorCode.AUTHENTICATION_REQUIRED: 401,
    ErrorCode.INSUFFICIENT_PERMISSIONS: 403,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.PROFILE_NOT_FOUND: 404,
    ErrorCode.RESOURCE_CONFLICT: 409,
    ErrorCode.DUPLICATE_APPLICATION: 409,
    ErrorCode.INVALID_STATE: 409,
    ErrorCode.CAPACITY_EXCEEDED: 409,
    ErrorCode.DEADLINE_PASSED: 410,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.DATABASE_ERROR: 500,
}

# Map error codes to severity
ERROR_SEVERITY_MAP: Dict[ErrorCode, ErrorSeverity] = {
    ErrorCode.VALIDATION_ERROR: ErrorSeverity.LOW,
    ErrorCode.MISSING_REQUIRED_FIELD: ErrorSeverity.LOW,
    ErrorCode.INVALID_PAGINATION: ErrorSeverity.LOW,
    ErrorCode.AUTHENTICATION_REQUIRED: ErrorSeverity.MEDIUM,
    ErrorCode.INSUFFICIENT_PERMISSIONS: ErrorSeverity.MEDIUM,
    ErrorCode.RESOURCE_NOT_FOUND: ErrorSeverity.LOW,
    ErrorCode.PROFILE_NOT_FOUND: ErrorSeverity.LOW,
    ErrorCode.RESOURCE_CONFLICT: ErrorSeverity.MEDIUM,
    ErrorCode.DUPLICATE_APPLICATION: ErrorSeverity.LOW,
    ErrorCode.INVALID_STATE: ErrorSeverity.MEDIUM,
    ErrorCode.CAPACITY_EXCEEDED: ErrorSeverity.LOW,
    ErrorCode.DEADLINE_PASSED: ErrorSeverity.LOW,
    ErrorCode.INTERNAL_ERROR: ErrorSeverity.CRITICAL,
    ErrorCode.DATABASE_ERROR: ErrorSeverity.CRITICAL,
}


@dataclass
class ErrorConfig:
    """Configuration for API error handling."""

    include_request_id: bool = True
    log_all_errors: bool = True
    suppress_internal_details: bool = True
    custom_error_messages: Dict[str, str] = field(default_factory=dict)


DEFAULT_ERROR_CONFIG = ErrorConfig()
