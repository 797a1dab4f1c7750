"""Input validation and error types for the normalization boundary.

Untyped provider data is checked here before it reaches any analytics.
Structurally invalid values raise `ValidationError`; malformed prices raise
`InvalidQuote` so batch callers can filter them out without aborting.
"""

import math
from typing import Any, Optional


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


class InvalidQuote(ValidationError):
    """A quote whose price or odds cannot be turned into a probability."""

    def __init__(self, message: str, raw_value: Any = None):
        super().__init__(message)
        self.raw_value = raw_value


class SettledMarket(InvalidQuote):
    """A prediction-market price of exactly 0 or 1 (market already resolved)."""
    pass


def validate_number(value: Any, label: str = "value") -> float:
    """Validate that a value is a finite number and return it as float.

    Numeric strings are accepted because order-book APIs commonly send prices
    and sizes as strings.

    Raises:
        ValidationError: If the value is missing, non-numeric, NaN or infinite
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{label} must be numeric, got {type(value).__name__}")

    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ValidationError(f"{label} must be numeric, got {value!r}") from None

    if not isinstance(value, (int, float)):
        raise ValidationError(f"{label} must be numeric, got {type(value).__name__}")

    value = float(value)
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(f"{label} must be finite, got {value}")
    return value


def validate_size(size: Any, label: str = "size") -> float:
    """Validate and normalize a size/quantity value.

    Raises:
        ValidationError: If size is not numeric or negative
    """
    size = validate_number(size, label)
    if size < 0:
        raise ValidationError(f"{label} must be non-negative, got {size}")
    return size


def validate_optional_size(size: Any, label: str = "size") -> Optional[float]:
    if size is None:
        return None
    return validate_size(size, label)


def validate_notional(amount: Any, label: str = "notional") -> float:
    """Validate a USD notional for impact simulation (must be > 0)."""
    amount = validate_number(amount, label)
    if amount <= 0:
        raise ValidationError(f"{label} must be positive, got {amount}")
    return amount


def validate_identifier(value: Any, label: str = "id") -> str:
    """Validate an outcome or source identifier.

    Raises:
        ValidationError: If the identifier is empty after stripping
    """
    if value is None:
        raise ValidationError(f"{label} cannot be empty")
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    if not value:
        raise ValidationError(f"{label} cannot be empty")
    return value


def validate_margin(margin: Any, label: str = "margin_threshold") -> float:
    margin = validate_number(margin, label)
    if not 0 <= margin < 1:
        raise ValidationError(f"{label} must be in [0, 1), got {margin}")
    return margin
