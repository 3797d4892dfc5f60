from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


CENTS = Decimal("0.01")

# Maximum price: 9,999,999.99
# This prevents database overflow issues and nonsensical prices
MAX_PRICE = Decimal("9999999.99")

# Largest stock count, delta or id accepted from input; keeps stock sums
# well inside a SQL INTEGER column
MAX_QUANTITY = 999_999_999


class TrackerError(Exception):
    """
    Base for every recoverable error the tracker raises.

    All of them are surfaced to the caller as a user-facing message; none of
    them leaves the catalog, ledger or draft partially modified.
    """
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "details": self.details}


class ValidationError(TrackerError, ValueError):
    """400-level input problem."""


class OutOfStockError(TrackerError):
    """Item has no stock left to start a sale line."""


class InsufficientStockError(TrackerError):
    """Requested quantity exceeds stock on hand."""


class InvalidQuantityError(TrackerError):
    """Line quantity would drop below 1."""


class EmptySaleError(TrackerError):
    """Commit attempted on a sale with no lines."""


class NotFoundError(TrackerError, LookupError):
    status_code = 404


class StorageError(TrackerError):
    """Persistence layer failure."""
    status_code = 503


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def require_text(field: str, value: Any) -> str:
    if value is None:
        raise ValidationError(f"{field} is required", details={"field": field})
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{field} is required", details={"field": field})
    return text


def parse_price(value: Any, field: str = "price") -> Decimal:
    """
    Parse a price from form text or a number into a non-negative Decimal
    rounded to cents.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", details={"field": field})

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} is required", details={"field": field})
        try:
            amount = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number", details={"field": field, "value": value})
    else:
        raise ValidationError(f"{field} must be a number", details={"field": field})

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", details={"field": field})
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", details={"field": field})
    if amount > MAX_PRICE:
        raise ValidationError(f"{field} exceeds maximum of {MAX_PRICE}", details={"field": field})
    return quantize_money(amount)


def _check_int_range(number: int, field: str) -> int:
    if abs(number) > MAX_QUANTITY:
        raise ValidationError(
            f"{field} exceeds maximum of {MAX_QUANTITY}",
            details={"field": field},
        )
    return number


def parse_int(value: Any, field: str) -> int:
    """
    Strict integer parsing - rejects floats, decimals, booleans,
    scientific notation and magnitudes above MAX_QUANTITY.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return _check_int_range(value, field)
    # String input - must be plain digits (with optional leading sign)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer", details={"field": field})
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(
                f"{field} must be a plain integer (scientific notation not allowed)",
                details={"field": field},
            )
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)", details={"field": field})
        try:
            number = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer", details={"field": field})
        return _check_int_range(number, field)
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal", details={"field": field})
    raise ValidationError(f"{field} must be an integer", details={"field": field})


def parse_quantity(value: Any, field: str = "quantity") -> int:
    qty = parse_int(value, field)
    if qty < 0:
        raise ValidationError(f"{field} cannot be negative", details={"field": field})
    return qty


def parse_optional_id(value: Any, field: str = "id") -> int | None:
    if value is None or value == "":
        return None
    item_id = parse_int(value, field)
    if item_id < 1:
        raise ValidationError(f"{field} must be positive", details={"field": field})
    return item_id
