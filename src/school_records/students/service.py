from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from werkzeug.security import generate_password_hash

from ..common.datetime_utils import today_local
from ..common.pagination import PageRequest
from ..common.validators import (
    FieldErrors,
    optional_iso_date,
    require_bool,
    require_email,
    require_mobile,
    require_non_empty,
    validation_error,
)
from ..core.enums import Role
from ..core.exceptions import DomainError, ErrorKind, not_found_error
from ..users.model import NewAccount
from ..users.repository import UserRepository
from ..users.validation import check_account_fields, check_username
from .model import CreatedStudent, DashboardStats, NewStudentProfile, StudentListQuery, StudentUpdate
from .repository import StudentRepository

logger = logging.getLogger(__name__)

SORT_ORDERS = ("asc", "desc")


def student_role_missing() -> DomainError:
    logger.error("Role %r missing from roles table", Role.STUDENT.value)
    return DomainError(ErrorKind.CONFIGURATION, "Student role not found in database")


def conflict_error(conflicts) -> DomainError:
    return DomainError(
        ErrorKind.DUPLICATE,
        f"User with this {', '.join(conflicts)} already exists",
        field=conflicts[0],
        resource="User",
        details={"fields": list(conflicts)},
    )


def parse_new_student(data: Mapping[str, Any]) -> tuple[dict[str, Any], NewStudentProfile]:
    errors = FieldErrors()
    account = check_account_fields(errors, data)
    first_name = errors.check("first_name", require_non_empty, data.get("first_name"), "first_name")
    last_name = errors.check("last_name", require_non_empty, data.get("last_name"), "last_name")
    date_of_birth = errors.check("date_of_birth", optional_iso_date, data.get("date_of_birth"), "date_of_birth")
    errors.raise_if_any()

    address = data.get("address")
    profile = NewStudentProfile(
        first_name=first_name,
        last_name=last_name,
        date_of_birth=date_of_birth,
        address=address.strip() if isinstance(address, str) and address.strip() else None,
    )
    return account, profile


def parse_student_update(data: Mapping[str, Any]) -> StudentUpdate:
    """Build a partial update from the keys actually present in ``data``."""

    errors = FieldErrors()
    validators: dict[str, Callable[[Any], Any]] = {
        "username": check_username,
        "email": require_email,
        "mobile": require_mobile,
        "is_active": lambda v: require_bool(v, "is_active"),
        "first_name": lambda v: require_non_empty(v, "first_name"),
        "last_name": lambda v: require_non_empty(v, "last_name"),
        "date_of_birth": lambda v: optional_iso_date(v, "date_of_birth"),
        "address": lambda v: v.strip() if isinstance(v, str) and v.strip() else None,
    }

    changes: dict[str, Any] = {}
    for name, validator in validators.items():
        if name not in data:
            continue
        changes[name] = errors.check(name, validator, data[name])
    errors.raise_if_any()
    return StudentUpdate(**changes)


def parse_list_query(args: Mapping[str, Any]) -> StudentListQuery:
    sort_order = (args.get("sort_order") or "asc").lower()
    if sort_order not in SORT_ORDERS:
        raise validation_error("sort_order must be asc or desc", field="sort_order")
    return StudentListQuery(
        filter_by=args.get("filter_by") or None,
        filter_value=args.get("filter_value"),
        sort_by=args.get("sort_by") or None,
        sort_order=sort_order,
    )


class StudentService:
    """Use case: teachers manage student accounts."""

    def __init__(
        self,
        students: StudentRepository,
        users: UserRepository,
        *,
        hasher: Callable[[str], str] = generate_password_hash,
    ):
        self._students = students
        self._users = users
        self._hash = hasher

    def dashboard(self) -> DashboardStats:
        return self._students.dashboard_counts(today_local())

    def list_students(self, query: StudentListQuery, page: PageRequest) -> dict[str, Any]:
        rows, total = self._students.list_page(query, page)
        return {
            "students": list(rows),
            "pagination": {
                "total_students": total,
                "current_page": page.page,
                "per_page": page.limit,
                "total_pages": page.total_pages(total),
            },
        }

    def student_role_id(self) -> int:
        role_id = self._users.get_role_id(Role.STUDENT.value)
        if role_id is None:
            raise student_role_missing()
        return role_id

    def add_student(self, data: Mapping[str, Any]) -> CreatedStudent:
        fields, profile = parse_new_student(data)

        conflicts = list(
            self._users.find_conflicts(username=fields["username"], email=fields["email"], mobile=fields["mobile"])
        )
        if conflicts:
            raise conflict_error(conflicts)

        role_id = self.student_role_id()
        account = NewAccount(
            username=fields["username"],
            email=fields["email"],
            mobile=fields["mobile"],
            password_hash=self._hash(fields["password"]),
        )
        created = self._students.create_account(account, profile, role_id=role_id)
        logger.info("Added student %s (user %s)", created.student_id, created.user_id)
        return created

    def edit_student(self, student_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        student = self._students.get_by_id(student_id)
        if student is None:
            raise not_found_error("Student", student_id)

        changes = parse_student_update(data)
        if changes.is_empty():
            raise validation_error("No fields to update")

        wanted = {col: val for col, val in changes.user_changes() if col != "is_active"}
        if wanted:
            conflicts = list(self._users.find_conflicts(exclude_user_id=student.user_id, **wanted))
            if conflicts:
                raise conflict_error(conflicts)

        updated = self._students.update(student, changes)
        logger.info("Updated student %s", student.id)
        return updated

    def deactivate_student(self, student_id: int) -> dict[str, Any]:
        student = self._students.get_by_id(student_id)
        if student is None:
            raise not_found_error("Student", student_id)
        user = self._students.deactivate(student.user_id)
        logger.info("Deactivated student %s (user %s)", student.id, student.user_id)
        return user
