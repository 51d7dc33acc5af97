from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role names stored in the ``roles`` table and in the legacy ``users.role`` column."""

    TEACHER = "teacher"
    STUDENT = "student"


class Permission(str, Enum):
    MANAGE_STUDENTS = "manage_students"
    MANAGE_ATTENDANCE = "manage_attendance"
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_LOGIN_ACTIVITY = "view_login_activity"
    VIEW_OWN_PROFILE = "view_own_profile"
    VIEW_OWN_ATTENDANCE = "view_own_attendance"


class LoginStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


ROLE_PERMISSIONS: dict[Role, tuple[Permission, ...]] = {
    Role.TEACHER: (
        Permission.MANAGE_STUDENTS,
        Permission.MANAGE_ATTENDANCE,
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_LOGIN_ACTIVITY,
    ),
    Role.STUDENT: (
        Permission.VIEW_OWN_PROFILE,
        Permission.VIEW_OWN_ATTENDANCE,
    ),
}
