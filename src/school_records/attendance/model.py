from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AttendanceRecord:
    """One presence mark; at most one per (student, date)."""

    id: int
    student_id: int
    date: date
    is_present: bool
    recorded_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "date": self.date,
            "is_present": self.is_present,
            "recorded_at": self.recorded_at,
        }


@dataclass(frozen=True)
class AttendanceQuery:
    student_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_present: Optional[bool] = None


@dataclass(frozen=True)
class AttendanceStats:
    present_days: int
    absent_days: int

    @property
    def total_days(self) -> int:
        return self.present_days + self.absent_days

    @property
    def attendance_percentage(self) -> float:
        if not self.total_days:
            return 0
        return round(self.present_days * 100 / self.total_days, 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_days": self.total_days,
            "present_days": self.present_days,
            "absent_days": self.absent_days,
            "attendance_percentage": self.attendance_percentage,
        }
