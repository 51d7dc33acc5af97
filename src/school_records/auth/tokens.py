from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from ..core.exceptions import DomainError, ErrorKind
from .model import Claims

REQUIRED_CLAIMS = ("id", "username", "role", "roles", "permissions")


def invalid_token_error() -> DomainError:
    return DomainError(ErrorKind.AUTHORIZATION, "Invalid token.", code="AUTH_003")


class TokenService:
    """Signs and verifies access tokens.

    Tokens are stateless: expiry is the only way a token stops being valid.
    """

    def __init__(
        self,
        *,
        secret: str,
        algorithm: str = "HS256",
        expires_minutes: int = 60,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._secret = secret
        self._algorithm = algorithm
        self._expires = timedelta(minutes=int(expires_minutes))
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(self, claims: Claims) -> str:
        now = self._clock()
        payload = claims.to_payload()
        payload["iat"] = int(now.timestamp())
        payload["exp"] = int((now + self._expires).timestamp())
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Claims:
        # Bad signature and expiry are reported the same way.
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.InvalidTokenError as exc:
            raise invalid_token_error() from exc

        if any(key not in payload for key in REQUIRED_CLAIMS):
            raise invalid_token_error()
        try:
            return Claims.from_payload(payload)
        except (TypeError, ValueError) as exc:
            raise invalid_token_error() from exc
