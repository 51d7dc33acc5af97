from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.pagination import PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceQuery, AttendanceRecord, AttendanceStats
from .repository import AttendanceRepository

COLUMNS = "id, student_id, date, is_present, recorded_at"


def row_to_record(r: dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        id=int(r["id"]),
        student_id=int(r["student_id"]),
        date=r["date"],
        is_present=bool(r["is_present"]),
        recorded_at=r["recorded_at"],
    )


def _where(query: AttendanceQuery) -> tuple[str, list[object]]:
    clauses: list[str] = []
    params: list[object] = []
    if query.student_id is not None:
        clauses.append("student_id=%s")
        params.append(int(query.student_id))
    if query.start_date is not None:
        clauses.append("date>=%s")
        params.append(query.start_date)
    if query.end_date is not None:
        clauses.append("date<=%s")
        params.append(query.end_date)
    if query.is_present is not None:
        clauses.append("is_present=%s")
        params.append(1 if query.is_present else 0)
    return (" WHERE " + " AND ".join(clauses)) if clauses else "", params


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(self, *, student_id: int, on_date: date, is_present: bool, recorded_at: datetime) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(student_id, date, is_present, recorded_at)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE is_present=VALUES(is_present), recorded_at=VALUES(recorded_at)
                """,
                (int(student_id), on_date, 1 if is_present else 0, recorded_at),
            )
            cur.execute(
                f"SELECT {COLUMNS} FROM attendance WHERE student_id=%s AND date=%s",
                (int(student_id), on_date),
            )
            return row_to_record(fetchone(cur))

    def get_for_date(self, student_id: int, on_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {COLUMNS} FROM attendance WHERE student_id=%s AND date=%s",
                (int(student_id), on_date),
            )
            r = fetchone(cur)
            return row_to_record(r) if r else None

    def list_page(self, query: AttendanceQuery, page: PageRequest) -> tuple[Sequence[AttendanceRecord], int]:
        where, params = _where(query)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {COLUMNS}
                FROM attendance{where}
                ORDER BY date DESC, recorded_at DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (page.limit, page.offset),
            )
            records = [row_to_record(r) for r in fetchall(cur)]
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance{where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
        return records, total

    def stats_for_student(self, student_id: int) -> AttendanceStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(is_present = 1), 0) AS present_days,
                       COALESCE(SUM(is_present = 0), 0) AS absent_days
                FROM attendance
                WHERE student_id=%s
                """,
                (int(student_id),),
            )
            r = fetchone(cur) or {}
        return AttendanceStats(
            present_days=int(r.get("present_days") or 0),
            absent_days=int(r.get("absent_days") or 0),
        )
