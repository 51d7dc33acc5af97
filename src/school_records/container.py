from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .auth.mysql_login_log_repository import MySQLLoginLogRepository
from .auth.service import AuthService, RegistrationService
from .auth.tokens import TokenService
from .database.connection import DBConfig, DatabaseConnection
from .portal.service import StudentPortalService
from .students.exporter import StudentExporter
from .students.importer import StudentImporter
from .students.mysql_student_repository import MySQLStudentRepository
from .students.service import StudentService
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    conn: Any

    users_repo: Any
    students_repo: Any
    attendance_repo: Any
    login_logs_repo: Any

    tokens: TokenService
    auth_service: AuthService
    registration_service: RegistrationService
    student_service: StudentService
    student_importer: StudentImporter
    student_exporter: StudentExporter
    attendance_service: AttendanceService
    portal_service: StudentPortalService


def build_services(
    *,
    conn: Any,
    users_repo: Any,
    students_repo: Any,
    attendance_repo: Any,
    login_logs_repo: Any,
    tokens: TokenService,
) -> Container:
    """Wire services on top of the given repositories (MySQL ones or test fakes)."""

    auth_service = AuthService(users_repo, login_logs_repo, tokens, students=students_repo)
    attendance_service = AttendanceService(attendance_repo, students_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        students_repo=students_repo,
        attendance_repo=attendance_repo,
        login_logs_repo=login_logs_repo,
        tokens=tokens,
        auth_service=auth_service,
        registration_service=RegistrationService(users_repo),
        student_service=StudentService(students_repo, users_repo),
        student_importer=StudentImporter(students_repo, users_repo),
        student_exporter=StudentExporter(students_repo),
        attendance_service=attendance_service,
        portal_service=StudentPortalService(students_repo, attendance_service, auth_service),
    )


def build_container(*, db_config: dict, settings: Any) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    tokens = TokenService(
        secret=str(getattr(settings, "JWT_SECRET", "")),
        algorithm=str(getattr(settings, "JWT_ALGORITHM", "HS256")),
        expires_minutes=int(getattr(settings, "JWT_EXPIRES_MINUTES", 60)),
    )
    return build_services(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        login_logs_repo=MySQLLoginLogRepository(conn),
        tokens=tokens,
    )
