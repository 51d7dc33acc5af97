from __future__ import annotations

from typing import Any, Mapping

from ..common.validators import FieldErrors, require_email, require_min_length, require_mobile, require_non_empty

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


def _username(value: Any) -> str:
    value = require_non_empty(value, "username")
    return require_min_length(value, "username", MIN_USERNAME_LENGTH)


def _password(value: Any) -> str:
    if not isinstance(value, str):
        value = None
    return require_min_length(value, "password", MIN_PASSWORD_LENGTH)


def check_account_fields(errors: FieldErrors, data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate username, email, password and mobile of a new account into ``errors``."""

    return {
        "username": errors.check("username", _username, data.get("username")),
        "email": errors.check("email", require_email, data.get("email")),
        "password": errors.check("password", _password, data.get("password")),
        "mobile": errors.check("mobile", require_mobile, data.get("mobile")),
    }


def check_username(value: Any) -> str:
    return _username(value)
