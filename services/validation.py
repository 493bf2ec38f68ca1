# services/validation.py
from enum import Enum
from typing import Iterable, Optional, Type, TypeVar

from services.errors import ValidationError

E = TypeVar("E", bound=Enum)


def as_enum(enum_cls: Type[E], value, field: str, allowed: Optional[Iterable[E]] = None) -> E:
    try:
        member = enum_cls(value.value if isinstance(value, Enum) else value)
    except ValueError:
        raise ValidationError(f"Invalid {field} value: {value!r}") from None
    if allowed is not None and member not in tuple(allowed):
        raise ValidationError(f"Invalid {field} value: {member.value!r}")
    return member


def required_text(value, field: str) -> str:
    text = (value or "").strip() if isinstance(value, str) or value is None else None
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def non_negative_int(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value < 0:
        raise ValidationError(f"{field} must not be negative")
    return value
