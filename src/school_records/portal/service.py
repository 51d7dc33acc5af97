from __future__ import annotations

import logging
from typing import Any, Mapping

from ..attendance.model import AttendanceQuery
from ..attendance.service import AttendanceService
from ..auth.service import AuthService
from ..common.pagination import PageRequest
from ..common.validators import FieldErrors, optional_iso_date, require_non_empty
from ..core.constants import LOGIN_ACTIVITY_DAYS
from ..core.exceptions import DomainError, ErrorKind
from ..students.model import ProfileUpdate, Student
from ..students.repository import StudentRepository

logger = logging.getLogger(__name__)


def parse_profile_update(data: Mapping[str, Any]) -> ProfileUpdate:
    errors = FieldErrors()
    first_name = errors.check("first_name", require_non_empty, data.get("first_name"), "first_name")
    last_name = errors.check("last_name", require_non_empty, data.get("last_name"), "last_name")
    date_of_birth = errors.check("date_of_birth", optional_iso_date, data.get("date_of_birth"), "date_of_birth")
    errors.raise_if_any()

    address = data.get("address")
    return ProfileUpdate(
        first_name=first_name,
        last_name=last_name,
        date_of_birth=date_of_birth,
        address=address.strip() if isinstance(address, str) and address.strip() else None,
    )


class StudentPortalService:
    """Use case: a signed-in student reads and edits their own records."""

    def __init__(self, students: StudentRepository, attendance: AttendanceService, auth: AuthService):
        self._students = students
        self._attendance = attendance
        self._auth = auth

    def _student_for(self, user_id: int) -> Student:
        student = self._students.get_by_user_id(user_id)
        if student is None:
            raise DomainError(ErrorKind.NOT_FOUND, "Student profile not found", resource="Student")
        return student

    def profile(self, user_id: int) -> dict[str, Any]:
        student = self._student_for(user_id)
        profile = self._students.get_profile(student.id)
        if profile is None:
            raise DomainError(ErrorKind.NOT_FOUND, "Student profile not found", resource="Student")
        return profile

    def update_profile(self, user_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        update = parse_profile_update(data)
        student = self._student_for(user_id)
        updated = self._students.update_profile(student.id, update)
        logger.info("Student %s updated their profile", student.id)
        return updated

    def attendance(self, user_id: int, query: AttendanceQuery, page: PageRequest) -> dict[str, Any]:
        student = self._student_for(user_id)
        own = AttendanceQuery(
            student_id=student.id,
            start_date=query.start_date,
            end_date=query.end_date,
            is_present=query.is_present,
        )
        return self._attendance.list_records(own, page)

    def attendance_stats(self, user_id: int) -> dict[str, Any]:
        student = self._student_for(user_id)
        return self._attendance.stats(student.id).to_dict()

    def login_activity(self, user_id: int) -> dict[str, Any]:
        entries = self._auth.login_activity(user_id, days=LOGIN_ACTIVITY_DAYS)
        return {
            "login_activity": [e.to_dict() for e in entries],
            "total_count": len(entries),
            "period": f"last_{LOGIN_ACTIVITY_DAYS}_days",
        }
