from __future__ import annotations

from datetime import date
from typing import Any, Iterator, Optional, Sequence

from ..common.pagination import PageRequest
from ..core.constants import EXPORT_FETCH_SIZE, EXPORT_FILTER_FIELDS
from ..core.enums import Role
from ..core.exceptions import duplicate_error
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicates_as, fetchall, fetchone, iter_rows, streaming_cursor
from ..users.model import NewAccount
from ..users.mysql_user_repository import account_conflict, insert_user, insert_user_role
from .model import (
    CreatedStudent,
    DashboardStats,
    NewStudentProfile,
    ProfileUpdate,
    Student,
    StudentListQuery,
    StudentUpdate,
)
from .repository import StudentRepository

# Public filter/sort names -> SQL columns. Anything else is ignored.
LIST_COLUMNS = {
    "username": "u.username",
    "email": "u.email",
    "mobile": "u.mobile",
    "first_name": "s.first_name",
    "last_name": "s.last_name",
    "is_active": "u.is_active",
}
EXPORT_FILTER_COLUMNS = {k: LIST_COLUMNS[k] for k in EXPORT_FILTER_FIELDS}

STUDENT_COLUMNS = "s.id, s.user_id, s.first_name, s.last_name, s.date_of_birth, s.address, s.created_at, s.updated_at"


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def row_to_student(row: dict[str, Any]) -> Student:
    return Student(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        date_of_birth=row.get("date_of_birth"),
        address=row.get("address"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _filter_clause(columns: dict[str, str], filter_by: Optional[str], filter_value: Optional[str]):
    if not filter_by or filter_value in (None, "") or filter_by not in columns:
        return "", []
    column = columns[filter_by]
    if filter_by == "is_active":
        return f" AND {column}=%s", [1 if str(filter_value).strip().lower() == "true" else 0]
    return f" AND {column} LIKE %s", [f"%{escape_like(str(filter_value))}%"]


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {STUDENT_COLUMNS} FROM students s WHERE s.id=%s", (int(student_id),))
            row = fetchone(cur)
            return row_to_student(row) if row else None

    def get_by_user_id(self, user_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {STUDENT_COLUMNS} FROM students s WHERE s.user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return row_to_student(row) if row else None

    def create_account(self, account: NewAccount, profile: NewStudentProfile, *, role_id: int) -> CreatedStudent:
        with duplicates_as(lambda: account_conflict(account)):
            with db_cursor(self._conn_factory) as (_, cur):
                user_id = insert_user(cur, account, legacy_role=Role.STUDENT.value)
                insert_user_role(cur, user_id=user_id, role_id=role_id)
                cur.execute(
                    """
                    INSERT INTO students(user_id, first_name, last_name, date_of_birth, address)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (user_id, profile.first_name, profile.last_name, profile.date_of_birth, profile.address),
                )
                student_id = int(cur.lastrowid)

        return CreatedStudent(
            user_id=user_id,
            student_id=student_id,
            username=account.username,
            email=account.email,
            mobile=account.mobile,
            first_name=profile.first_name,
            last_name=profile.last_name,
        )

    def update(self, student: Student, changes: StudentUpdate) -> dict[str, Any]:
        user_changes = [(col, int(val) if col == "is_active" else val) for col, val in changes.user_changes()]
        student_changes = changes.student_changes()

        def conflict():
            values = ", ".join(str(v) for c, v in user_changes if c != "is_active")
            return duplicate_error("User", values or "these details")

        with duplicates_as(conflict):
            with db_cursor(self._conn_factory) as (_, cur):
                if user_changes:
                    assignments = ", ".join(f"{col}=%s" for col, _ in user_changes)
                    cur.execute(
                        f"UPDATE users SET {assignments}, updated_at=CURRENT_TIMESTAMP WHERE id=%s",
                        tuple(v for _, v in user_changes) + (student.user_id,),
                    )
                if student_changes:
                    assignments = ", ".join(f"{col}=%s" for col, _ in student_changes)
                    cur.execute(
                        f"UPDATE students SET {assignments}, updated_at=CURRENT_TIMESTAMP WHERE id=%s",
                        tuple(v for _, v in student_changes) + (student.id,),
                    )

                cur.execute("SELECT id, username, email, mobile, is_active FROM users WHERE id=%s", (student.user_id,))
                user_row = fetchone(cur) or {}
                cur.execute(
                    "SELECT id, first_name, last_name, date_of_birth, address FROM students WHERE id=%s",
                    (student.id,),
                )
                student_row = fetchone(cur) or {}

        if "is_active" in user_row:
            user_row["is_active"] = bool(user_row["is_active"])
        return {"user": user_row, "student": student_row}

    def deactivate(self, user_id: int) -> dict[str, Any]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET is_active=0, updated_at=CURRENT_TIMESTAMP WHERE id=%s",
                (int(user_id),),
            )
            cur.execute("SELECT id, username, email, is_active FROM users WHERE id=%s", (int(user_id),))
            row = fetchone(cur) or {}
        if "is_active" in row:
            row["is_active"] = bool(row["is_active"])
        return row

    def list_page(self, query: StudentListQuery, page: PageRequest) -> tuple[Sequence[dict[str, Any]], int]:
        where = "FROM users u JOIN students s ON u.id = s.user_id WHERE u.role=%s"
        params: list[object] = [Role.STUDENT.value]

        clause, clause_params = _filter_clause(LIST_COLUMNS, query.filter_by, query.filter_value)
        where += clause
        params.extend(clause_params)

        order = "s.id ASC"
        if query.sort_by in LIST_COLUMNS:
            direction = "DESC" if (query.sort_order or "").lower() == "desc" else "ASC"
            order = f"{LIST_COLUMNS[query.sort_by]} {direction}"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.id AS user_id, u.username, u.email, u.mobile, u.is_active,
                       s.id AS student_id, s.first_name, s.last_name, s.date_of_birth, s.address
                {where}
                ORDER BY {order}
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (page.limit, page.offset),
            )
            rows = fetchall(cur)
            cur.execute(f"SELECT COUNT(*) AS total {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)

        for r in rows:
            r["is_active"] = bool(r.get("is_active"))
        return rows, total

    def iter_export_rows(self, *, filter_by: Optional[str], filter_value: Optional[str]) -> Iterator[dict[str, Any]]:
        clause, params = _filter_clause(EXPORT_FILTER_COLUMNS, filter_by, filter_value)
        with streaming_cursor(self._conn_factory) as cur:
            cur.execute(
                f"""
                SELECT u.username, u.email, u.mobile,
                       s.first_name, s.last_name, s.date_of_birth, s.address
                FROM users u
                JOIN students s ON u.id = s.user_id
                WHERE u.role=%s{clause}
                ORDER BY s.id ASC
                """,
                (Role.STUDENT.value, *params),
            )
            yield from iter_rows(cur, size=EXPORT_FETCH_SIZE)

    def dashboard_counts(self, on_date: date) -> DashboardStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM users WHERE role=%s AND is_active=1) AS total_students,
                    (SELECT COUNT(DISTINCT a.student_id)
                       FROM attendance a
                       WHERE a.date=%s AND a.is_present=1) AS present_today,
                    (SELECT COUNT(*)
                       FROM students s
                       JOIN users u ON u.id = s.user_id
                       WHERE u.role=%s AND u.is_active=1
                         AND s.id NOT IN (
                             SELECT student_id FROM attendance WHERE date=%s AND is_present=1
                         )) AS absent_today
                """,
                (Role.STUDENT.value, on_date, Role.STUDENT.value, on_date),
            )
            row = fetchone(cur) or {}
        return DashboardStats(
            total_students=int(row.get("total_students") or 0),
            present_today=int(row.get("present_today") or 0),
            absent_today=int(row.get("absent_today") or 0),
        )

    def get_profile(self, student_id: int) -> Optional[dict[str, Any]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {STUDENT_COLUMNS}, u.username, u.email, u.mobile,
                       COALESCE(SUM(a.is_present = 1), 0) AS present_days,
                       COALESCE(SUM(a.is_present = 0), 0) AS absent_days
                FROM students s
                JOIN users u ON u.id = s.user_id
                LEFT JOIN attendance a ON a.student_id = s.id
                WHERE s.id=%s
                GROUP BY s.id, u.id
                """,
                (int(student_id),),
            )
            row = fetchone(cur)
        if not row:
            return None
        row["present_days"] = int(row["present_days"])
        row["absent_days"] = int(row["absent_days"])
        return row

    def update_profile(self, student_id: int, update: ProfileUpdate) -> dict[str, Any]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE students
                SET first_name=%s, last_name=%s, date_of_birth=%s, address=%s, updated_at=CURRENT_TIMESTAMP
                WHERE id=%s
                """,
                (update.first_name, update.last_name, update.date_of_birth, update.address, int(student_id)),
            )
            cur.execute(
                "SELECT id, first_name, last_name, date_of_birth, address, updated_at FROM students WHERE id=%s",
                (int(student_id),),
            )
            return fetchone(cur) or {}
