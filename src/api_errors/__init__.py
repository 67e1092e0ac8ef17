"""API Error Handling & Validation.

Provides the marketplace error taxonomy, structured error responses,
FastAPI exception handlers and input validation utilities.
"""

from src.api_errors.config import (
    ErrorCode,
    ErrorConfig,
    ErrorSeverity,
)
from src.api_errors.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CapacityError,
    ConflictError,
    DatabaseError,
    ExpiredError,
    FoodConnectError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from src.api_errors.handlers import (
    ErrorResponse,
    create_error_response,
    register_exception_handlers,
)
from src.api_errors.middleware import ErrorHandlingMiddleware
from src.api_errors.validators import (
    validate_amount,
    validate_count,
    validate_pagination,
    validate_percentage,
    validate_required_text,
)

__all__ = [
    # Config
    "ErrorCode",
    "ErrorConfig",
    "ErrorSeverity",
    # Exceptions
    "AuthenticationError",
    "AuthorizationError",
    "CapacityError",
    "ConflictError",
    "DatabaseError",
    "ExpiredError",
    "FoodConnectError",
    "InvalidStateError",
    "NotFoundError",
    "ValidationError",
    # Handlers
    "ErrorResponse",
    "create_error_response",
    "register_exception_handlers",
    # Middleware
    "ErrorHandlingMiddleware",
    # Validators
    "validate_amount",
    "validate_count",
    "validate_pagination",
    "validate_percentage",
    "validate_required_text",
]
