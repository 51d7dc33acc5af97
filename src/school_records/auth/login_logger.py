from __future__ import annotations

from typing import Optional

from ..common.best_effort import best_effort
from ..core.enums import LoginStatus
from .model import ClientContext
from .repository import LoginLogRepository


class LoginAttemptLogger:
    """Audit trail for sign-in attempts; a storage failure never reaches the caller."""

    def __init__(self, logs: LoginLogRepository):
        self._logs = logs

    def record(self, user_id: Optional[int], client: ClientContext, status: LoginStatus) -> None:
        best_effort(
            self._logs.record,
            user_id=user_id,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            status=status,
            description=f"login attempt log (user_id={user_id}, status={status.value})",
        )
