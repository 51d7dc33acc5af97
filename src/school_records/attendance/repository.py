from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..common.pagination import PageRequest
from .model import AttendanceQuery, AttendanceRecord, AttendanceStats


class AttendanceRepository(Protocol):
    def upsert(self, *, student_id: int, on_date: date, is_present: bool, recorded_at: datetime) -> AttendanceRecord:
        """Insert or overwrite the mark for (student_id, on_date)."""

        raise NotImplementedError

    def get_for_date(self, student_id: int, on_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_page(self, query: AttendanceQuery, page: PageRequest) -> tuple[Sequence[AttendanceRecord], int]:
        raise NotImplementedError

    def stats_for_student(self, student_id: int) -> AttendanceStats:
        raise NotImplementedError
