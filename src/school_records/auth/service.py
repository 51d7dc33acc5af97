from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, Iterable, Optional, Protocol, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..core.constants import LOGIN_ACTIVITY_DAYS
from ..core.enums import LoginStatus, Role
from ..core.exceptions import DomainError, ErrorKind
from ..users.model import NewAccount, RoleGrant, User
from ..users.repository import UserRepository
from .login_logger import LoginAttemptLogger
from .model import Claims, ClientContext, LoginActivity, LoginResult, RoleSummary
from .repository import LoginLogRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


class StudentLookup(Protocol):
    def get_by_user_id(self, user_id: int):
        raise NotImplementedError


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return generate_password_hash("school-records-unknown-user")


def invalid_credentials() -> DomainError:
    return DomainError(ErrorKind.AUTHENTICATION, "Invalid credentials")


def account_deactivated() -> DomainError:
    return DomainError(ErrorKind.AUTHENTICATION, "Account deactivated. Please contact support.")


def fold_grants(grants: Iterable[RoleGrant]) -> tuple[list[RoleSummary], list[str]]:
    """Fold (role, permission) join rows into distinct roles and the permission union.

    Roles keep first-seen order; permission names come back sorted.
    """

    role_names: dict[int, str] = {}
    role_permissions: dict[int, set[str]] = {}
    permissions: set[str] = set()

    for grant in grants:
        if grant.role_id is None or grant.role_name is None:
            continue
        role_names.setdefault(grant.role_id, grant.role_name)
        perms = role_permissions.setdefault(grant.role_id, set())
        if grant.permission_name:
            perms.add(grant.permission_name)
            permissions.add(grant.permission_name)

    roles = [
        RoleSummary(id=role_id, name=name, permissions=tuple(sorted(role_permissions[role_id])))
        for role_id, name in role_names.items()
    ]
    return roles, sorted(permissions)


def _safe_check_password(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password)
    except (ValueError, TypeError):
        # e.g. placeholder or corrupted hashes
        return False


class AuthService:
    """Use case: sign in and read one's own login history."""

    def __init__(
        self,
        users: UserRepository,
        login_logs: LoginLogRepository,
        tokens: TokenService,
        students: Optional[StudentLookup] = None,
    ):
        self._users = users
        self._login_logs = login_logs
        self._attempts = LoginAttemptLogger(login_logs)
        self._tokens = tokens
        self._students = students

    def sign_in(self, username: str, password: str, client: ClientContext) -> LoginResult:
        found = self._users.get_with_grants(username)

        if found is None:
            _safe_check_password(_dummy_hash(), password)
            self._attempts.record(None, client, LoginStatus.FAILURE)
            raise invalid_credentials()

        user = found.user
        if not user.is_active:
            self._attempts.record(user.id, client, LoginStatus.FAILURE)
            raise account_deactivated()

        if not _safe_check_password(user.password_hash, password):
            self._attempts.record(user.id, client, LoginStatus.FAILURE)
            raise invalid_credentials()

        self._attempts.record(user.id, client, LoginStatus.SUCCESS)

        roles, permissions = fold_grants(found.grants)
        claims = Claims(
            id=user.id,
            username=user.username,
            role=user.role,
            roles=tuple(r.name for r in roles),
            permissions=tuple(permissions),
        )
        token = self._tokens.issue(claims)
        logger.info("User %s signed in", user.id)
        return LoginResult(token=token, user=self._profile(user, roles, permissions))

    def _profile(self, user: User, roles: Sequence[RoleSummary], permissions: Sequence[str]) -> dict:
        profile = {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "role": user.role,
            "roles": [r.to_dict() for r in roles],
            "permissions": list(permissions),
        }
        # Student PII goes into the response only, never into the token.
        if user.role == Role.STUDENT.value and self._students is not None:
            student = self._students.get_by_user_id(user.id)
            if student is not None:
                profile["student_id"] = student.id
                profile["first_name"] = student.first_name
                profile["last_name"] = student.last_name
        return profile

    def login_activity(self, user_id: int, *, days: int = LOGIN_ACTIVITY_DAYS) -> list[LoginActivity]:
        return list(self._login_logs.recent_for_user(int(user_id), days=days))


class RegistrationService:
    """Use case: teacher self-registration."""

    def __init__(self, users: UserRepository, *, hasher: Callable[[str], str] = generate_password_hash):
        self._users = users
        self._hash = hasher

    def register_teacher(self, *, username: str, email: str, password: str, mobile: str) -> User:
        conflicts = list(self._users.find_conflicts(username=username, email=email, mobile=mobile))
        if conflicts:
            raise DomainError(
                ErrorKind.DUPLICATE,
                f"User with this {', '.join(conflicts)} already exists",
                field=conflicts[0],
                resource="User",
                details={"fields": conflicts},
            )

        role_id = self._users.get_role_id(Role.TEACHER.value)
        if role_id is None:
            logger.error("Role %r missing from roles table", Role.TEACHER.value)
            raise DomainError(ErrorKind.CONFIGURATION, "Teacher role not found in database")

        account = NewAccount(
            username=username,
            email=email,
            mobile=mobile,
            password_hash=self._hash(password),
        )
        user = self._users.create_with_role(account, legacy_role=Role.TEACHER.value, role_id=role_id)
        logger.info("Registered teacher %s", user.id)
        return user
