"""Exception Handlers & Error Response Builder.

Provides FastAPI exception handlers and a standardized error
response builder for consistent API error formatting.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.api_errors.config import (
    DEFAULT_ERROR_CONFIG,
    ERROR_SEVERITY_MAP,
    ERROR_STATUS_MAP,
    ErrorCode,
    ErrorConfig,
    ErrorSeverity,
)
from src.api_errors.exceptions import FoodConnectError
from src.logging_config.context import get_request_id

logger = logging.getLogger(__name__)


@dataclass
class ErrorResponse:
    """Structured error response envelope."""

    code: str
    message: str
    status_code: int = 500
    details: List[Dict[str, Any]] = field(default_factory=list)
    request_id: Optional[str] = None
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp,
            }
        }
        if self.details:
            body["error"]["details"] = self.details
        if self.request_id:
            body["error"]["request_id"] = self.request_id
        return body


def create_error_response(
    error_code: ErrorCode,
    message: str,
    details: Optional[List[Dict[str, Any]]] = None,
    request_id: Optional[str] = None,
    status_code: Optional[int] = None,
) -> ErrorResponse:
    """Build a standardized ErrorResponse from components."""
    resolved_status = status_code or ERROR_STATUS_MAP.get(error_code, 500)

    return ErrorResponse(
        code=error_code.value,
        message=message,
        status_code=resolved_status,
        details=details or [],
        request_id=request_id,
    )


def _log_error(
    error_code: ErrorCode,
    message: str,
    status_code: int,
    config: ErrorConfig,
) -> None:
    """Log the error at appropriate severity level."""
    if not config.log_all_errors:
        return

    severity = ERROR_SEVERITY_MAP.get(error_code, ErrorSeverity.MEDIUM)
    log_msg = f"API Error [{error_code.value}] ({status_code}): {message}"

    if severity == ErrorSeverity.CRITICAL:
        logger.critical(log_msg)
    elif severity == ErrorSeverity.HIGH:
        logger.error(log_msg)
    elif severity == ErrorSeverity.MEDIUM:
        logger.warning(log_msg)
    else:
        logger.info(log_msg)


def handle_foodconnect_error(
    exc: FoodConnectError, config: Optional[ErrorConfig] = None
) -> ErrorResponse:
    """Handle a FoodConnectError and produce an ErrorResponse."""
    config = config or DEFAULT_ERROR_CONFIG
    request_id = get_request_id() if config.include_request_id else None

    message = config.custom_error_messages.get(exc.kind, exc.message)
    _log_error(exc.error_code, message, exc.status_code, config)

    return create_error_response(
        error_code=exc.error_code,
        message=message,
        details=exc.details,
        request_id=request_id,
        status_code=exc.status_code,
    )


def handle_unhandled_error(exc: Exception, config: Optional[ErrorConfig] = None) -> ErrorResponse:
    """Handle any unhandled exception with a safe 500 response."""
    config = config or DEFAULT_ERROR_CONFIG
    request_id = get_request_id() if config.include_request_id else None

    logger.exception(f"Unhandled exception: {type(exc).__name__}: {exc}")

    message = "An internal error occurred"
    if not config.suppress_internal_details:
        message = f"{type(exc).__name__}: {str(exc)}"

    return create_error_response(
        error_code=ErrorCode.INTERNAL_ERROR,
        message=message,
        request_id=request_id,
    )


def register_exception_handlers(app: Any, config: Optional[ErrorConfig] = None) -> None:
    """Register all exception handlers on a FastAPI application.

    Domain errors become their mapped status code; request body
    validation failures become VALIDATION_ERROR with per-field details.

    Args:
        app: FastAPI application instance.
        config: Error handling configuration.
    """
    from fastapi.exceptions import RequestValidationError
    from fastapi.responses import JSONResponse

    config = config or DEFAULT_ERROR_CONFIG

    # Store config on app for middleware access
    app.state.error_config = config

    @app.exception_handler(FoodConnectError)
    async def _foodconnect_error(request, exc: FoodConnectError):
        error_response = handle_foodconnect_error(exc, config)
        return JSONResponse(error_response.to_dict(), status_code=error_response.status_code)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "issue": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        error_response = create_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            details=details,
            request_id=get_request_id() if config.include_request_id else None,
        )
        _log_error(ErrorCode.VALIDATION_ERROR, error_response.message, 400, config)
        return JSONResponse(error_response.to_dict(), status_code=error_response.status_code)

    logger.info("Registered FoodConnect API exception handlers")
