from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from email_validator import EmailNotValidError, validate_email

from .errors import ValidationError


# Maximum money value: 9,999,999,999.99
# Keeps amounts inside Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")

CENTS = Decimal("0.01")

# Shortest top-level domain accepted in an invitation address
MIN_TLD_LENGTH = 2


def normalize_email(value: Any) -> str:
    """
    Lower-cased, syntax-checked email or ValidationError.

    Deliverability (DNS) is not checked; the address only has to be
    well-formed.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("email is required")
    try:
        result = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"email is not a valid address: {e}")

    if len(result.ascii_domain.rsplit(".", 1)[-1]) < MIN_TLD_LENGTH:
        raise ValidationError("email is not a valid address: top-level domain too short")

    email = result.normalized.lower()
    if len(email) > 255:
        raise ValidationError("email is not a valid address")
    return email


def parse_amount(value: Any, field: str = "amount", *, allow_none: bool = False) -> Decimal | None:
    """
    Coerce a money value to a 2-place Decimal.

    Accepts Decimal, int and numeric strings. Floats are accepted but
    converted through str() so 0.1 stays 0.10. Booleans are rejected.
    """
    if value is None:
        if allow_none:
            return None
        raise ValidationError(f"{field} is required")

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")

    if isinstance(value, float):
        value = str(value)

    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{field} must be a number")
        # Reject scientific notation (e.g., "1e5")
        if "e" in value.lower():
            raise ValidationError(f"{field} must be a plain number (scientific notation not allowed)")

    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    if amount < 0:
        raise ValidationError(f"{field} must be greater than or equal to 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds maximum allowed")

    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def require_choice(value: Any, choices, field: str) -> str:
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")
    return value


def clean_text(value: Any, field: str, *, max_length: int | None = None) -> str | None:
    """Strip optional free text; empty becomes None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if not value:
        return None
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return value


def require_id(value: Any, field: str) -> str:
    """Opaque string identifiers; ints from JSON are accepted and stringified."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()
