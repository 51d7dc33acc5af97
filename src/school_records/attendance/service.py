from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.pagination import PageRequest
from ..common.validators import FieldErrors, optional_iso_date, require_bool, validation_error
from ..core.exceptions import not_found_error
from ..students.repository import StudentRepository
from .model import AttendanceQuery, AttendanceRecord, AttendanceStats
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_mark(data: Mapping[str, Any]) -> tuple[bool, Optional[date]]:
    errors = FieldErrors()
    if "is_present" not in data:
        errors.add("is_present", "is_present is required")
        is_present = None
    else:
        is_present = errors.check("is_present", require_bool, data["is_present"], "is_present")
    on_date = errors.check("date", optional_iso_date, data.get("date"), "date")
    errors.raise_if_any()
    return is_present, on_date


def parse_query(args: Mapping[str, Any], *, with_student: bool = True) -> AttendanceQuery:
    errors = FieldErrors()
    student_id = None
    if with_student and args.get("student_id"):
        try:
            student_id = int(args["student_id"])
        except (TypeError, ValueError):
            errors.add("student_id", "student_id must be an integer")
    start_date = errors.check("start_date", optional_iso_date, args.get("start_date"), "start_date")
    end_date = errors.check("end_date", optional_iso_date, args.get("end_date"), "end_date")
    is_present = None
    if args.get("is_present") not in (None, ""):
        is_present = errors.check("is_present", require_bool, args["is_present"], "is_present")
    errors.raise_if_any()

    if start_date and end_date and start_date > end_date:
        raise validation_error("start_date must not be after end_date", field="start_date")
    return AttendanceQuery(student_id=student_id, start_date=start_date, end_date=end_date, is_present=is_present)


class AttendanceService:
    """Use case: mark and read daily attendance."""

    def __init__(self, attendance: AttendanceRepository, students: StudentRepository):
        self._attendance = attendance
        self._students = students

    def _require_student(self, student_id: int) -> None:
        if self._students.get_by_id(student_id) is None:
            raise not_found_error("Student", student_id)

    def mark(self, student_id: int, data: Mapping[str, Any]) -> AttendanceRecord:
        is_present, on_date = parse_mark(data)
        self._require_student(student_id)

        now = now_local()
        record = self._attendance.upsert(
            student_id=student_id,
            on_date=on_date or now.date(),
            is_present=is_present,
            recorded_at=now,
        )
        logger.info("Marked student %s %s on %s", student_id, "present" if is_present else "absent", record.date)
        return record

    def today(self, student_id: int) -> Optional[AttendanceRecord]:
        self._require_student(student_id)
        return self._attendance.get_for_date(student_id, now_local().date())

    def list_records(self, query: AttendanceQuery, page: PageRequest) -> dict[str, Any]:
        records, total = self._attendance.list_page(query, page)
        return {
            "attendance": [r.to_dict() for r in records],
            "pagination": {
                "total_records": total,
                "current_page": page.page,
                "per_page": page.limit,
                "total_pages": page.total_pages(total),
            },
        }

    def stats(self, student_id: int) -> AttendanceStats:
        return self._attendance.stats_for_student(student_id)
