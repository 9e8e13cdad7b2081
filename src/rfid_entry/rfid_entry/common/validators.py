from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def scalar_str(value) -> str:
    """Text form of a JSON scalar id (a tag sent as a number keeps its digits); "" otherwise."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def optional_str(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def require_choice(value: str, enum_cls: Type[E], field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}") from None


def require_email(value: str) -> str:
    if not _EMAIL_RE.match(value):
        raise ValidationError("email is not a valid address")
    return value
