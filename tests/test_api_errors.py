"""Tests for API error handling and validation."""

import pytest

from src.api_errors.config import (
    DEFAULT_ERROR_CONFIG,
    ERROR_SEVERITY_MAP,
    ERROR_STATUS_MAP,
    ErrorCode,
    ErrorConfig,
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
    handle_foodconnect_error,
    handle_unhandled_error,
)
from src.api_errors.validators import (
    validate_amount,
    validate_count,
    validate_pagination,
    validate_percentage,
    validate_required_text,
)
from src.logging_config import RequestContext


class TestErrorConfig:
    def test_status_map_covers_all_codes(self):
        for code in ErrorCode:
            assert code in ERROR_STATUS_MAP

    def test_severity_map_covers_all_codes(self):
        for code in ErrorCode:
            assert code in ERROR_SEVERITY_MAP

    def test_domain_statuses(self):
        assert ERROR_STATUS_MAP[ErrorCode.PROFILE_NOT_FOUND] == 404
        assert ERROR_STATUS_MAP[ErrorCode.DUPLICATE_APPLICATION] == 409
        assert ERROR_STATUS_MAP[ErrorCode.CAPACITY_EXCEEDED] == 409
        assert ERROR_STATUS_MAP[ErrorCode.DEADLINE_PASSED] == 410

    def test_default_config(self):
        assert DEFAULT_ERROR_CONFIG.include_request_id is True
        assert DEFAULT_ERROR_CONFIG.suppress_internal_details is True


class TestExceptions:
    def test_base(self):
        exc = FoodConnectError("boom")
        assert exc.status_code == 500
        assert exc.kind == "INTERNAL_ERROR"

    @pytest.mark.parametrize(
        "exc,status,kind",
        [
            (ValidationError("bad"), 400, "VALIDATION_ERROR"),
            (AuthenticationError(), 401, "AUTHENTICATION_REQUIRED"),
            (AuthorizationError(), 403, "INSUFFICIENT_PERMISSIONS"),
            (NotFoundError(), 404, "RESOURCE_NOT_FOUND"),
            (ConflictError(), 409, "RESOURCE_CONFLICT"),
            (InvalidStateError(), 409, "INVALID_STATE"),
            (CapacityError(), 409, "CAPACITY_EXCEEDED"),
            (ExpiredError(), 410, "DEADLINE_PASSED"),
            (DatabaseError(), 500, "DATABASE_ERROR"),
        ],
    )
    def test_kinds_and_statuses(self, exc, status, kind):
        assert isinstance(exc, FoodConnectError)
        assert exc.status_code == status
        assert exc.kind == kind
        assert exc.message

    def test_validation_field_detail(self):
        exc = ValidationError("title is required", field="title")
        assert exc.details == [{"field": "title", "issue": "title is required"}]

    def test_invalid_state_detail(self):
        exc = InvalidStateError("nope", current_state="paid", attempted="close")
        assert exc.current_state == "paid"
        assert exc.details[0]["attempted"] == "close"

    def test_capacity_detail(self):
        assert CapacityError(max_influencers=3).details == [{"max_influencers": 3}]


class TestHandlers:
    def test_error_response_envelope(self):
        response = ErrorResponse(code="X", message="y", status_code=418, request_id="req-1")
        body = response.to_dict()
        assert body["error"]["code"] == "X"
        assert body["error"]["request_id"] == "req-1"
        assert "details" not in body["error"]
        assert body["error"]["timestamp"]

    def test_create_error_response_status(self):
        response = create_error_response(ErrorCode.DEADLINE_PASSED, "late")
        assert response.status_code == 410

    def test_handle_domain_error_includes_request_id(self):
        with RequestContext(request_id="req-42"):
            response = handle_foodconnect_error(CapacityError(max_influencers=1))
        assert response.status_code == 409
        assert response.request_id == "req-42"
        assert response.details == [{"max_influencers": 1}]

    def test_custom_message(self):
        config = ErrorConfig(custom_error_messages={"DEADLINE_PASSED": "Too late"})
        assert handle_foodconnect_error(ExpiredError(), config).message == "Too late"

    def test_unhandled_error_suppressed(self):
        response = handle_unhandled_error(RuntimeError("secret"))
        assert response.status_code == 500
        assert "secret" not in response.message

    def test_unhandled_error_detail_when_allowed(self):
        config = ErrorConfig(suppress_internal_details=False)
        assert "secret" in handle_unhandled_error(RuntimeError("secret"), config).message


class TestValidators:
    def test_required_text(self):
        assert validate_required_text("  hi ", "title") == "hi"
        with pytest.raises(ValidationError) as exc_info:
            validate_required_text("", "title")
        assert exc_info.value.error_code == ErrorCode.MISSING_REQUIRED_FIELD
        with pytest.raises(ValidationError):
            validate_required_text("x" * 11, "title", max_length=10)

    def test_amount(self):
        assert validate_amount("12.5", "budget") == 12.5
        assert validate_amount(None, "meal_value", allow_none=True) is None
        for bad in (None, -1, "abc", True):
            with pytest.raises(ValidationError):
                validate_amount(bad, "budget")

    def test_percentage(self):
        assert validate_percentage(0) == 0.0
        assert validate_percentage(100) == 100.0
        with pytest.raises(ValidationError):
            validate_percentage(100.5)

    def test_count(self):
        assert validate_count(3, "n") == 3
        assert validate_count("4", "n") == 4
        for bad in (-1, 1.5, "x", False):
            with pytest.raises(ValidationError):
                validate_count(bad, "n")
        with pytest.raises(ValidationError):
            validate_count(0, "n", minimum=1)

    def test_pagination(self):
        assert validate_pagination(1, 12) == (0, 12)
        assert validate_pagination(3, 10) == (20, 10)
        with pytest.raises(ValidationError):
            validate_pagination(0, 10)
        with pytest.raises(ValidationError):
            validate_pagination(1, 101)
