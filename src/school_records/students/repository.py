from __future__ import annotations

from datetime import date
from typing import Any, Iterator, Optional, Protocol, Sequence

from ..common.pagination import PageRequest
from ..users.model import NewAccount
from .model import (
    CreatedStudent,
    DashboardStats,
    NewStudentProfile,
    ProfileUpdate,
    Student,
    StudentListQuery,
    StudentUpdate,
)


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: int) -> Optional[Student]:
        raise NotImplementedError

    def create_account(self, account: NewAccount, profile: NewStudentProfile, *, role_id: int) -> CreatedStudent:
        """Insert user, user_roles link and student row in one transaction."""

        raise NotImplementedError

    def update(self, student: Student, changes: StudentUpdate) -> dict[str, Any]:
        raise NotImplementedError

    def deactivate(self, user_id: int) -> dict[str, Any]:
        raise NotImplementedError

    def list_page(self, query: StudentListQuery, page: PageRequest) -> tuple[Sequence[dict[str, Any]], int]:
        raise NotImplementedError

    def iter_export_rows(self, *, filter_by: Optional[str], filter_value: Optional[str]) -> Iterator[dict[str, Any]]:
        """Rows for CSV export, fetched incrementally from an open cursor."""

        raise NotImplementedError

    def dashboard_counts(self, on_date: date) -> DashboardStats:
        raise NotImplementedError

    def get_profile(self, student_id: int) -> Optional[dict[str, Any]]:
        raise NotImplementedError

    def update_profile(self, student_id: int, update: ProfileUpdate) -> dict[str, Any]:
        raise NotImplementedError
