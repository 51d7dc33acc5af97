from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import LoginStatus
from .model import LoginActivity


class LoginLogRepository(Protocol):
    """Append-only store of authentication attempts."""

    def record(
        self,
        *,
        user_id: Optional[int],
        ip_address: Optional[str],
        user_agent: Optional[str],
        status: LoginStatus,
    ) -> None:
        raise NotImplementedError

    def recent_for_user(self, user_id: int, *, days: int) -> Sequence[LoginActivity]:
        raise NotImplementedError
