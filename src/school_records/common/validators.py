from __future__ import annotations

import re
from datetime import date
from typing import Any, Optional

from ..core.exceptions import DomainError, ErrorKind
from .datetime_utils import parse_iso_date

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
MOBILE_PATTERN = re.compile(r"^\+?[0-9]{7,15}$")


def validation_error(message: str, *, field: Optional[str] = None, details=None) -> DomainError:
    return DomainError(ErrorKind.VALIDATION, message, field=field, details=details)


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise validation_error(f"{field_name} is required", field=field_name)
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise validation_error(f"{field_name} must be at least {min_len} characters long", field=field_name)
    return value


def require_email(value: str, field_name: str = "email") -> str:
    value = require_non_empty(value, field_name).lower()
    if not EMAIL_PATTERN.match(value):
        raise validation_error("Please include a valid email", field=field_name)
    return value


def require_mobile(value: str, field_name: str = "mobile") -> str:
    value = require_non_empty(value, field_name)
    if not MOBILE_PATTERN.match(value):
        raise validation_error("Please include a valid mobile number", field=field_name)
    return value


def optional_iso_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise validation_error(f"Invalid {field_name.replace('_', ' ')}", field=field_name)


def require_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise validation_error(f"{field_name} must be a boolean", field=field_name)


class FieldErrors:
    """Collects every failing field of a payload before raising.

    Usage::

        errors = FieldErrors()
        username = errors.check("username", require_non_empty, data.get("username"), "username")
        errors.raise_if_any()
    """

    def __init__(self):
        self._items: list[dict[str, str]] = []

    def check(self, param: str, validator, *args, **kwargs):
        try:
            return validator(*args, **kwargs)
        except DomainError as e:
            if e.kind is not ErrorKind.VALIDATION:
                raise
            self._items.append({"msg": e.message, "param": param})
            return None

    def add(self, param: str, msg: str) -> None:
        self._items.append({"msg": msg, "param": param})

    def __bool__(self) -> bool:
        return bool(self._items)

    def raise_if_any(self) -> None:
        if self._items:
            first = self._items[0]
            raise validation_error(first["msg"], field=first["param"], details=list(self._items))
