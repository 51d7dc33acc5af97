from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime
from typing import Any, Optional


class _Unset:
    """Marker for "field not provided", distinct from an explicit ``None``."""

    _instance: Optional["_Unset"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class Student:
    id: int
    user_id: int
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "date_of_birth": self.date_of_birth,
            "address": self.address,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class NewStudentProfile:
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class CreatedStudent:
    user_id: int
    student_id: int
    username: str
    email: str
    mobile: str
    first_name: str
    last_name: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "student_id": self.student_id,
            "username": self.username,
            "email": self.email,
            "mobile": self.mobile,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }


@dataclass(frozen=True)
class StudentUpdate:
    """Partial update of a student account; only provided fields are written."""

    username: Any = UNSET
    email: Any = UNSET
    mobile: Any = UNSET
    is_active: Any = UNSET
    first_name: Any = UNSET
    last_name: Any = UNSET
    date_of_birth: Any = UNSET
    address: Any = UNSET

    USER_COLUMNS = ("username", "email", "mobile", "is_active")
    STUDENT_COLUMNS = ("first_name", "last_name", "date_of_birth", "address")

    def _set_fields(self, names: tuple[str, ...]) -> list[tuple[str, Any]]:
        return [(name, getattr(self, name)) for name in names if getattr(self, name) is not UNSET]

    def user_changes(self) -> list[tuple[str, Any]]:
        return self._set_fields(self.USER_COLUMNS)

    def student_changes(self) -> list[tuple[str, Any]]:
        return self._set_fields(self.STUDENT_COLUMNS)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is UNSET for f in fields(self))


@dataclass(frozen=True)
class ProfileUpdate:
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class StudentListQuery:
    filter_by: Optional[str] = None
    filter_value: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: str = "asc"


@dataclass(frozen=True)
class DashboardStats:
    total_students: int
    present_today: int
    absent_today: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total_students": self.total_students,
            "present_today": self.present_today,
            "absent_today": self.absent_today,
        }
