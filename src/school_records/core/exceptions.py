"""Operational error taxonomy.

Every expected failure is a ``DomainError`` tagged with an ``ErrorKind``. The
kind fixes the HTTP status and the default machine-readable code; the HTTP
boundary in ``core.error_handlers`` is the only place that turns them into
responses.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    AUTHENTICATION = (401, "AUTH_001")
    AUTHORIZATION = (403, "AUTH_002")
    VALIDATION = (400, "VAL_001")
    DUPLICATE = (409, "VAL_002")
    NOT_FOUND = (404, "DB_001")
    DATABASE = (500, "DB_002")
    FILE = (400, "FILE_001")
    FILE_TOO_LARGE = (413, "FILE_002")
    CONFIGURATION = (500, "CONFIG_001")

    def __init__(self, status: int, code: str):
        self.status = status
        self.default_code = code


class DomainError(Exception):
    """A categorized failure that is safe to describe to the caller."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        code: Optional[str] = None,
        details: Any = None,
        field: Optional[str] = None,
        resource: Optional[str] = None,
        operational: bool = True,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code or kind.default_code
        self.details = details
        self.field = field
        self.resource = resource
        self.operational = operational

    @property
    def status(self) -> int:
        return self.kind.status

    def __repr__(self) -> str:
        return f"DomainError({self.kind.name}, {self.message!r}, code={self.code!r})"


def duplicate_error(resource: str, value: str, *, field: Optional[str] = None) -> DomainError:
    return DomainError(
        ErrorKind.DUPLICATE,
        f"{resource} with {value} already exists",
        field=field,
        resource=resource,
    )


def not_found_error(resource: str, identifier: Any) -> DomainError:
    return DomainError(
        ErrorKind.NOT_FOUND,
        f"{resource} with id {identifier} not found",
        resource=resource,
    )


def database_error(operation: str, original: BaseException | None = None) -> DomainError:
    err = DomainError(ErrorKind.DATABASE, f"Database operation failed: {operation}")
    if original is not None:
        err.__cause__ = original
    return err
