from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from school_records.attendance.model import AttendanceRecord, AttendanceStats
from school_records.auth.model import ClientContext, LoginActivity
from school_records.auth.tokens import TokenService
from school_records.container import build_services
from school_records.core.enums import ROLE_PERMISSIONS, LoginStatus, Role
from school_records.core.exceptions import duplicate_error
from school_records.students.model import CreatedStudent, DashboardStats, Student
from school_records.users.model import RoleGrant, User, UserWithGrants

ROLE_IDS = {Role.TEACHER.value: 1, Role.STUDENT.value: 2}


class InMemoryStore:
    """Tables shared by the fake repositories."""

    def __init__(self):
        self.users: dict[int, User] = {}
        self.user_roles: dict[int, list[int]] = {}
        self.roles: dict[int, str] = {rid: name for name, rid in ROLE_IDS.items()}
        self.role_permissions: dict[int, list[str]] = {
            ROLE_IDS[role.value]: [p.value for p in perms] for role, perms in ROLE_PERMISSIONS.items()
        }
        self.students: dict[int, Student] = {}
        self._user_id = 0
        self._student_id = 0

    def add_user(self, username: str, *, password: str = "secret1", role: str = Role.TEACHER.value, is_active=True, email=None, mobile=None) -> User:
        self._user_id += 1
        user = User(
            id=self._user_id,
            username=username,
            email=email or f"{username}@school.test",
            mobile=mobile or f"+1555000{self._user_id:04d}",
            password_hash=generate_password_hash(password),
            role=role,
            is_active=is_active,
        )
        self.users[user.id] = user
        self.user_roles[user.id] = [ROLE_IDS[role]] if role in ROLE_IDS else []
        return user

    def add_student(self, username: str, **kwargs) -> Student:
        user = self.add_user(username, role=Role.STUDENT.value, **kwargs)
        self._student_id += 1
        student = Student(id=self._student_id, user_id=user.id, first_name=username.title(), last_name="Pupil")
        self.students[student.id] = student
        return student

    def conflicts(self, *, username=None, email=None, mobile=None, exclude_user_id=None) -> list[str]:
        wanted = {k: v for k, v in {"username": username, "email": email, "mobile": mobile}.items() if v}
        others = [u for u in self.users.values() if u.id != exclude_user_id]
        return [
            col for col, value in wanted.items()
            if any(str(getattr(u, col)).lower() == str(value).lower() for u in others)
        ]


class InMemoryUsers:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.store.users.get(user_id)

    def get_with_grants(self, username: str) -> Optional[UserWithGrants]:
        user = next((u for u in self.store.users.values() if u.username == username), None)
        if user is None:
            return None
        grants = []
        for role_id in self.store.user_roles.get(user.id, []):
            for perm in self.store.role_permissions.get(role_id, []) or [None]:
                grants.append(RoleGrant(role_id=role_id, role_name=self.store.roles[role_id], permission_name=perm))
        return UserWithGrants(user=user, grants=tuple(grants))

    def find_conflicts(self, **kwargs):
        return self.store.conflicts(**kwargs)

    def get_role_id(self, role_name: str) -> Optional[int]:
        return next((rid for rid, name in self.store.roles.items() if name == role_name), None)

    def create_with_role(self, account, *, legacy_role: str, role_id: int) -> User:
        if self.store.conflicts(username=account.username, email=account.email, mobile=account.mobile):
            raise duplicate_error("User", account.username)
        self.store._user_id += 1
        user = User(
            id=self.store._user_id,
            username=account.username,
            email=account.email,
            mobile=account.mobile,
            password_hash=account.password_hash,
            role=legacy_role,
        )
        self.store.users[user.id] = user
        self.store.user_roles[user.id] = [role_id]
        return user


class InMemoryStudents:
    def __init__(self, store: InMemoryStore):
        self.store = store
        self.export_rows: list[dict] = []
        self.profiles_updated: list = []

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self.store.students.get(student_id)

    def get_by_user_id(self, user_id: int) -> Optional[Student]:
        return next((s for s in self.store.students.values() if s.user_id == user_id), None)

    def create_account(self, account, profile, *, role_id: int) -> CreatedStudent:
        user = InMemoryUsers(self.store).create_with_role(account, legacy_role=Role.STUDENT.value, role_id=role_id)
        self.store._student_id += 1
        student = Student(
            id=self.store._student_id,
            user_id=user.id,
            first_name=profile.first_name,
            last_name=profile.last_name,
            date_of_birth=profile.date_of_birth,
            address=profile.address,
        )
        self.store.students[student.id] = student
        return CreatedStudent(
            user_id=user.id,
            student_id=student.id,
            username=user.username,
            email=user.email,
            mobile=user.mobile,
            first_name=student.first_name,
            last_name=student.last_name,
        )

    def update(self, student: Student, changes) -> dict:
        user = self.store.users[student.user_id]
        self.store.users[user.id] = replace(user, **dict(changes.user_changes()))
        self.store.students[student.id] = replace(student, **dict(changes.student_changes()))
        return {"user": self.store.users[user.id].public_dict(), "student": self.store.students[student.id].to_dict()}

    def deactivate(self, user_id: int) -> dict:
        self.store.users[user_id] = replace(self.store.users[user_id], is_active=False)
        return self.store.users[user_id].public_dict()

    def list_page(self, query, page):
        rows = [
            {**self.store.users[s.user_id].public_dict(), "student_id": s.id, "first_name": s.first_name}
            for s in self.store.students.values()
        ]
        return rows[page.offset : page.offset + page.limit], len(rows)

    def iter_export_rows(self, *, filter_by, filter_value):
        yield from self.export_rows

    def dashboard_counts(self, on_date: date) -> DashboardStats:
        return DashboardStats(total_students=len(self.store.students), present_today=0, absent_today=len(self.store.students))

    def get_profile(self, student_id: int):
        student = self.store.students.get(student_id)
        if student is None:
            return None
        return {**student.to_dict(), "present_days": 0, "absent_days": 0}

    def update_profile(self, student_id: int, update) -> dict:
        self.profiles_updated.append((student_id, update))
        student = replace(
            self.store.students[student_id],
            first_name=update.first_name,
            last_name=update.last_name,
            date_of_birth=update.date_of_birth,
            address=update.address,
        )
        self.store.students[student_id] = student
        return student.to_dict()


class InMemoryLoginLogs:
    def __init__(self):
        self.entries: list[dict] = []
        self.fail = False

    def record(self, *, user_id, ip_address, user_agent, status: LoginStatus) -> None:
        if self.fail:
            raise RuntimeError("login_logs table is gone")
        self.entries.append({"user_id": user_id, "ip_address": ip_address, "user_agent": user_agent, "status": status})

    def recent_for_user(self, user_id: int, *, days: int):
        return [
            LoginActivity(login_time=datetime(2024, 5, 1, 8, 0), ip_address=e["ip_address"], user_agent=e["user_agent"], status=e["status"].value)
            for e in reversed(self.entries)
            if e["user_id"] == user_id
        ]


class InMemoryAttendance:
    def __init__(self):
        self.rows: dict[tuple[int, date], AttendanceRecord] = {}
        self._id = 0

    def upsert(self, *, student_id: int, on_date: date, is_present: bool, recorded_at: datetime) -> AttendanceRecord:
        existing = self.rows.get((student_id, on_date))
        if existing is None:
            self._id += 1
            record_id = self._id
        else:
            record_id = existing.id
        record = AttendanceRecord(id=record_id, student_id=student_id, date=on_date, is_present=is_present, recorded_at=recorded_at)
        self.rows[(student_id, on_date)] = record
        return record

    def get_for_date(self, student_id: int, on_date: date):
        return self.rows.get((student_id, on_date))

    def list_page(self, query, page):
        records = [r for r in self.rows.values() if query.student_id is None or r.student_id == query.student_id]
        records.sort(key=lambda r: (r.date, r.recorded_at), reverse=True)
        return records[page.offset : page.offset + page.limit], len(records)

    def stats_for_student(self, student_id: int) -> AttendanceStats:
        mine = [r for r in self.rows.values() if r.student_id == student_id]
        present = sum(1 for r in mine if r.is_present)
        return AttendanceStats(present_days=present, absent_days=len(mine) - present)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def users(store):
    return InMemoryUsers(store)


@pytest.fixture
def students(store):
    return InMemoryStudents(store)


@pytest.fixture
def login_logs():
    return InMemoryLoginLogs()


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def tokens():
    return TokenService(secret="test-jwt-secret", expires_minutes=5)


@pytest.fixture
def client_ctx():
    return ClientContext(ip_address="10.0.0.1", user_agent="pytest")


@pytest.fixture
def container(users, students, attendance_repo, login_logs, tokens):
    return build_services(
        conn=None,
        users_repo=users,
        students_repo=students,
        attendance_repo=attendance_repo,
        login_logs_repo=login_logs,
        tokens=tokens,
    )


@pytest.fixture
def app(container, monkeypatch, tmp_path):
    monkeypatch.setenv("APP_ENV", "testing")
    from school_records.main import create_app

    app = create_app(container=container)
    app.config["UPLOAD_DIR"] = str(tmp_path / "uploads")
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(store, tokens):
    """Bearer header for a freshly created user of the given role."""

    from school_records.auth.model import Claims

    def make(role: str = Role.TEACHER.value, *, permissions=None, username=None):
        if role == Role.STUDENT.value:
            student = store.add_student(username or "pupil")
            user = store.users[student.user_id]
        else:
            user = store.add_user(username or "teacher1", role=role)
        perms = permissions
        if perms is None:
            perms = [p.value for r, ps in ROLE_PERMISSIONS.items() if r.value == role for p in ps]
        claims = Claims(id=user.id, username=user.username, role=role, roles=(role,), permissions=tuple(perms))
        return {"Authorization": f"Bearer {tokens.issue(claims)}"}

    return make
