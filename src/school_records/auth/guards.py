"""Route guards.

``token_required`` verifies the bearer token and stores the claims in
``g.current_user``. ``permission_required`` and ``roles_required`` run it first
when it has not run yet, so they can be used alone.
"""

from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import current_app, g, request

from ..core.enums import Permission, Role
from ..core.exceptions import DomainError, ErrorKind
from .model import Claims

EXTENSION_KEY = "school_records"


def no_token_error() -> DomainError:
    return DomainError(ErrorKind.AUTHENTICATION, "Access denied. No token provided.")


def insufficient_permissions() -> DomainError:
    return DomainError(ErrorKind.AUTHORIZATION, "Access denied. Insufficient permissions.")


def bearer_token(header: Optional[str]) -> str:
    scheme, _, token = (header or "").strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise no_token_error()
    return token.strip()


def current_claims() -> Claims:
    claims = g.get("current_user")
    if claims is None:
        container = current_app.extensions[EXTENSION_KEY]
        claims = container.tokens.verify(bearer_token(request.headers.get("Authorization")))
        g.current_user = claims
    return claims


def token_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        current_claims()
        return view(*args, **kwargs)

    return wrapper


def permission_required(permission: Permission | str):
    name = permission.value if isinstance(permission, Permission) else permission

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if name not in current_claims().permissions:
                raise insufficient_permissions()
            return view(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(*roles: Role | str):
    """Gate on the legacy single ``role`` claim."""

    allowed = {r.value if isinstance(r, Role) else r for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if current_claims().role not in allowed:
                raise insufficient_permissions()
            return view(*args, **kwargs)

        return wrapper

    return decorator
