from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.exceptions import DomainError, duplicate_error
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicates_as, fetchall, fetchone
from .model import NewAccount, RoleGrant, User, UserWithGrants
from .repository import UserRepository

USER_COLUMNS = "u.id, u.username, u.email, u.mobile, u.password_hash, u.role, u.is_active, u.created_at, u.updated_at"


def row_to_user(row: dict[str, Any]) -> User:
    return User(
        id=int(row["id"]),
        username=row["username"],
        email=row["email"],
        mobile=row["mobile"],
        password_hash=row["password_hash"],
        role=row["role"],
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def account_conflict(account: NewAccount) -> DomainError:
    return duplicate_error("User", f"{account.username}, {account.email}, or {account.mobile}")


def insert_user(cur, account: NewAccount, *, legacy_role: str) -> int:
    cur.execute(
        """
        INSERT INTO users(username, email, mobile, password_hash, role, is_active)
        VALUES(%s,%s,%s,%s,%s,1)
        """,
        (account.username, account.email, account.mobile, account.password_hash, legacy_role),
    )
    return int(cur.lastrowid)


def insert_user_role(cur, *, user_id: int, role_id: int) -> None:
    cur.execute("INSERT INTO user_roles(user_id, role_id) VALUES(%s,%s)", (user_id, role_id))


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {USER_COLUMNS} FROM users u WHERE u.id=%s", (int(user_id),))
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def get_with_grants(self, username: str) -> Optional[UserWithGrants]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {USER_COLUMNS},
                       r.id AS role_id, r.name AS role_name, p.name AS permission_name
                FROM users u
                LEFT JOIN user_roles ur ON ur.user_id = u.id
                LEFT JOIN roles r ON r.id = ur.role_id
                LEFT JOIN role_permissions rp ON rp.role_id = r.id
                LEFT JOIN permissions p ON p.id = rp.permission_id
                WHERE u.username=%s
                """,
                (username,),
            )
            rows = fetchall(cur)
            if not rows:
                return None
            grants = tuple(
                RoleGrant(
                    role_id=int(r["role_id"]) if r.get("role_id") is not None else None,
                    role_name=r.get("role_name"),
                    permission_name=r.get("permission_name"),
                )
                for r in rows
            )
            return UserWithGrants(user=row_to_user(rows[0]), grants=grants)

    def find_conflicts(
        self,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        mobile: Optional[str] = None,
        exclude_user_id: Optional[int] = None,
    ) -> Sequence[str]:
        wanted = {"username": username, "email": email, "mobile": mobile}
        wanted = {k: v for k, v in wanted.items() if v}
        if not wanted:
            return []

        clauses = " OR ".join(f"{col}=%s" for col in wanted)
        params: list[object] = list(wanted.values())
        sql = f"SELECT username, email, mobile FROM users WHERE ({clauses})"
        if exclude_user_id is not None:
            sql += " AND id<>%s"
            params.append(int(exclude_user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)

        return [
            col
            for col, value in wanted.items()
            if any(str(r.get(col, "")).lower() == str(value).lower() for r in rows)
        ]

    def get_role_id(self, role_name: str) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM roles WHERE name=%s", (role_name,))
            row = fetchone(cur)
            return int(row["id"]) if row else None

    def create_with_role(self, account: NewAccount, *, legacy_role: str, role_id: int) -> User:
        with duplicates_as(lambda: account_conflict(account)):
            with db_cursor(self._conn_factory) as (_, cur):
                user_id = insert_user(cur, account, legacy_role=legacy_role)
                insert_user_role(cur, user_id=user_id, role_id=role_id)
                cur.execute(f"SELECT {USER_COLUMNS} FROM users u WHERE u.id=%s", (user_id,))
                return row_to_user(fetchone(cur))
