from __future__ import annotations

import csv
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from werkzeug.security import generate_password_hash

from ..common.datetime_utils import parse_iso_date
from ..core.constants import IMPORT_REQUIRED_FIELDS
from ..core.enums import Role
from ..core.exceptions import DomainError, ErrorKind
from ..users.model import NewAccount
from ..users.repository import UserRepository
from .model import NewStudentProfile
from .repository import StudentRepository
from .service import student_role_missing

logger = logging.getLogger(__name__)

MISSING_FIELDS = "missing required fields"
DUPLICATE_ACCOUNT = "duplicate username, email, or mobile"
INVALID_DATE_OF_BIRTH = "invalid date_of_birth"


@dataclass
class ImportSummary:
    created: list[dict[str, Any]] = field(default_factory=list)
    rejected: list[dict[str, Any]] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    def reject(self, row: dict[str, Any], reason: str) -> None:
        shown = {k: v for k, v in row.items() if k != "password"}
        self.rejected.append({"row": shown, "reason": reason})

    def to_dict(self) -> dict[str, Any]:
        return {
            "createdCount": self.created_count,
            "rejectedCount": self.rejected_count,
            "created": list(self.created),
            "rejected": list(self.rejected),
        }


def normalize_row(raw: dict[Optional[str], Any]) -> dict[str, Any]:
    """Lower-case/strip header names and strip cell values; extra cells are dropped."""

    row: dict[str, Any] = {}
    for key, value in raw.items():
        if key is None:
            continue
        name = key.strip().lower()
        row[name] = value.strip() if isinstance(value, str) else value
    return row


class StudentImporter:
    """Bulk-create student accounts from an uploaded CSV file.

    Each row is validated and inserted on its own; a rejected row never aborts
    the batch. The uploaded file is removed once processing ends.
    """

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

    def import_file(self, path: Optional[str]) -> ImportSummary:
        if not path or not os.path.exists(path):
            raise DomainError(ErrorKind.FILE, "Please upload a CSV file")

        try:
            role_id = self._users.get_role_id(Role.STUDENT.value)
            if role_id is None:
                raise student_role_missing()

            summary = ImportSummary()
            try:
                with open(path, newline="", encoding="utf-8-sig") as fh:
                    for raw in csv.DictReader(fh):
                        self._import_row(normalize_row(raw), role_id, summary)
            except (UnicodeDecodeError, csv.Error) as exc:
                logger.warning(
                    "Unreadable CSV upload after %s rows: %s",
                    summary.created_count + summary.rejected_count,
                    exc,
                )
                raise DomainError(ErrorKind.FILE, "Could not read CSV file") from exc
        finally:
            self._discard(path)

        logger.info("Student import finished: %s created, %s rejected", summary.created_count, summary.rejected_count)
        return summary

    def _import_row(self, row: dict[str, Any], role_id: int, summary: ImportSummary) -> None:
        if any(not row.get(name) for name in IMPORT_REQUIRED_FIELDS):
            summary.reject(row, MISSING_FIELDS)
            return

        try:
            date_of_birth = parse_iso_date(row["date_of_birth"]) if row.get("date_of_birth") else None
        except ValueError:
            summary.reject(row, INVALID_DATE_OF_BIRTH)
            return

        email = row["email"].lower()
        if self._users.find_conflicts(username=row["username"], email=email, mobile=row["mobile"]):
            summary.reject(row, DUPLICATE_ACCOUNT)
            return

        account = NewAccount(
            username=row["username"],
            email=email,
            mobile=row["mobile"],
            password_hash=self._hash(row["password"]),
        )
        profile = NewStudentProfile(
            first_name=row["first_name"],
            last_name=row["last_name"],
            date_of_birth=date_of_birth,
            address=row.get("address") or None,
        )
        try:
            created = self._students.create_account(account, profile, role_id=role_id)
        except DomainError as e:
            # Lost a race with a concurrent insert of the same account.
            if e.kind is not ErrorKind.DUPLICATE:
                raise
            summary.reject(row, DUPLICATE_ACCOUNT)
            return

        summary.created.append(
            {"user_id": created.user_id, "student_id": created.student_id, "username": created.username}
        )

    @staticmethod
    def _discard(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception("Could not remove uploaded file %s", path)
