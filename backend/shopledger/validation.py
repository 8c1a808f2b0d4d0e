from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999
MAX_NAME_LENGTH = 255
MAX_REQUEST_KEY_LENGTH = 64

# Largest value an INTEGER column holds on every supported backend (int4).
# Ids, stock and quantities are bounded by it.
MAX_DB_INTEGER = 2_147_483_647
MAX_STOCK_QUANTITY = MAX_DB_INTEGER

_CENT = Decimal("0.01")


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level: the referenced entity does not exist."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., delete blocked by existing sales)."""


class InsufficientStockError(ValueError):
    """Requested quantity exceeds stock on hand. Terminal: the caller must adjust quantity."""

    def __init__(self, *, product_id: int, requested: int, available: int):
        super().__init__("Insufficient stock")
        self.product_id = product_id
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


def reject_unknown_fields(payload: Any, allowed: Iterable[str]) -> dict:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    allowed = set(allowed)
    for key in payload.keys():
        if key not in allowed:
            raise ValidationError(f"Field not allowed: {key}")
    return payload


def parse_int(
    value: Any,
    field: str,
    *,
    minimum: int | None = None,
    maximum: int | None = MAX_DB_INTEGER,
) -> int:
    """
    Strict integer coercion: rejects bools, floats, decimals and scientific notation.
    Bounded above by MAX_DB_INTEGER unless a different maximum is given.
    """
    if value is None:
        raise ValidationError(f"{field} is required")

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")

    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} is required")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        if minimum == 1:
            raise ValidationError(f"{field} must be a positive integer")
        raise ValidationError(f"{field} must be >= {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{field} cannot exceed {maximum}")
    return result


def parse_positive_int(value: Any, field: str) -> int:
    return parse_int(value, field, minimum=1)


def parse_price_cents(value: Any, field: str = "price") -> int:
    """
    Parse a currency amount into integer cents.

    Accepts ints, Decimals, numeric strings and JSON floats (via their shortest
    repr). At most two fractional digits; no negatives; bounded by MAX_PRICE_CENTS.
    """
    if value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a decimal amount")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} is required")
        try:
            amount = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a decimal amount")
    else:
        raise ValidationError(f"{field} must be a decimal amount")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite amount")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if amount != amount.quantize(_CENT):
        raise ValidationError(f"{field} cannot have more than 2 decimal places")

    cents = int(amount.quantize(_CENT) * 100)
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {format_cents(MAX_PRICE_CENTS)}")
    return cents


def format_cents(cents: int | None) -> str | None:
    """Render integer cents as a fixed two-decimal string ("1999" -> "19.99")."""
    if cents is None:
        return None
    return str((Decimal(int(cents)) / 100).quantize(_CENT))


def parse_product_name(value: Any) -> str:
    if value is None:
        raise ValidationError("name is required")
    name = str(value).strip()
    if not name:
        raise ValidationError("name cannot be blank")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"name exceeds max length {MAX_NAME_LENGTH}")
    return name


def parse_request_key(value: Any) -> str | None:
    if value is None:
        return None
    key = str(value).strip()
    if not key:
        return None
    if len(key) > MAX_REQUEST_KEY_LENGTH:
        raise ValidationError(f"Idempotency key exceeds max length {MAX_REQUEST_KEY_LENGTH}")
    return key


def parse_email(value: Any) -> str:
    if value is None or not str(value).strip():
        raise ValidationError("email and password required")
    email = str(value).strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("email must be a valid address")
    if len(email) > 255:
        raise ValidationError("email exceeds max length 255")
    return email
