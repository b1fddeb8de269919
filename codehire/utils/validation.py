"""Input coercion shared by the lifecycle and ledger services."""

import enum
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Type, TypeVar

from codehire.errors import ValidationError

E = TypeVar("E", bound=enum.Enum)


def to_amount(value: Any, field: str) -> Optional[Decimal]:
    """Optional money amount: finite and not negative."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.", field=field)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field} must be a number.", field=field) from exc
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number.", field=field)
    if amount < 0:
        raise ValidationError(f"{field} must not be negative.", field=field)
    return amount


def to_count(value: Any, field: str) -> Optional[int]:
    """Optional non-negative whole number (e.g. years of experience)."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number.", field=field)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be a whole number.", field=field)
        value = int(value)
    try:
        count = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a whole number.", field=field) from exc
    if count < 0:
        raise ValidationError(f"{field} must not be negative.", field=field)
    return count


def to_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}.", field=field) from exc


def required_text(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field.capitalize()} is required.", field=field)
    return text
