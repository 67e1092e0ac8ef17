"""Input Validation Utilities.

Reusable validators for marketplace input: money amounts, percentages,
counts, free text and pagination.
"""

from typing import Any, Optional, Tuple

from src.api_errors.config import ErrorCode
from src.api_errors.exceptions import ValidationError

# Maximum pagination limits
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 12


def validate_required_text(value: Any, field: str, max_length: int = 5000) -> str:
    """Validate a required, non-blank text field.

    Returns:
        The stripped text.

    Raises:
        ValidationError: If the value is missing, blank or too long.
    """
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(
            message=f"{field} is required",
            error_code=ErrorCode.MISSING_REQUIRED_FIELD,
            field=field,
        )

    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(
            message=f"{field} exceeds {max_length} characters",
            field=field,
        )
    return value


def validate_amount(value: Any, field: str, allow_none: bool = False) -> Optional[float]:
    """Validate a non-negative monetary amount."""
    if value is None:
        if allow_none:
            return None
        raise ValidationError(
            message=f"{field} is required",
            error_code=ErrorCode.MISSING_REQUIRED_FIELD,
            field=field,
        )

    if isinstance(value, bool):
        raise ValidationError(message=f"{field} must be a number", field=field)

    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(message=f"{field} must be a number", field=field)

    if amount < 0:
        raise ValidationError(message=f"{field} must be >= 0, got {amount}", field=field)

    return amount


def validate_percentage(value: Any, field: str = "commission_rate") -> float:
    """Validate a percentage in the inclusive range 0..100."""
    rate = validate_amount(value, field)
    if rate > 100:
        raise ValidationError(message=f"{field} must be <= 100, got {rate}", field=field)
    return rate


def validate_count(value: Any, field: str, minimum: int = 0) -> int:
    """Validate an integer count with a lower bound."""
    if isinstance(value, bool):
        raise ValidationError(message=f"{field} must be an integer", field=field)

    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ValidationError(message=f"{field} must be an integer", field=field)

    if count != value and not isinstance(value, str):
        raise ValidationError(message=f"{field} must be a whole number", field=field)

    if count < minimum:
        raise ValidationError(
            message=f"{field} must be >= {minimum}, got {count}",
            field=field,
        )

    return count


def validate_pagination(
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> Tuple[int, int]:
    """Validate page number and page size.

    Returns:
        Tuple of (offset, limit).

    Raises:
        ValidationError: If values are out of range.
    """
    if page < 1:
        raise ValidationError(
            message=f"page must be >= 1, got {page}",
            error_code=ErrorCode.INVALID_PAGINATION,
            field="page",
        )

    if page_size < 1 or page_size > max_page_size:
        raise ValidationError(
            message=f"page_size must be between 1 and {max_page_size}, got {page_size}",
            error_code=ErrorCode.INVALID_PAGINATION,
            field="page_size",
        )

    return (page - 1) * page_size, page_size
