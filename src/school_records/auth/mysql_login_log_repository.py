from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import LoginStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import LoginActivity
from .repository import LoginLogRepository


class MySQLLoginLogRepository(LoginLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(
        self,
        *,
        user_id: Optional[int],
        ip_address: Optional[str],
        user_agent: Optional[str],
        status: LoginStatus,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO login_logs(user_id, ip_address, user_agent, status)
                VALUES(%s,%s,%s,%s)
                """,
                (user_id, ip_address, (user_agent or "")[:512] or None, status.value),
            )

    def recent_for_user(self, user_id: int, *, days: int) -> Sequence[LoginActivity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT login_time, ip_address, user_agent, status
                FROM login_logs
                WHERE user_id=%s AND login_time >= CURDATE() - INTERVAL %s DAY
                ORDER BY login_time DESC
                """,
                (int(user_id), int(days)),
            )
            return [
                LoginActivity(
                    login_time=r["login_time"],
                    ip_address=r.get("ip_address"),
                    user_agent=r.get("user_agent"),
                    status=r["status"],
                )
                for r in fetchall(cur)
            ]
