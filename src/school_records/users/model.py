from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class User:
    """Domain entity: an account row.

    ``role`` is the legacy single role label kept next to the many-role model
    (``user_roles``). The two are not reconciled.
    """

    id: int
    username: str
    email: str
    mobile: str
    password_hash: str
    role: str
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def public_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "mobile": self.mobile,
            "role": self.role,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class RoleGrant:
    """One (role, permission) pair reachable from a user; LEFT JOIN nulls allowed."""

    role_id: Optional[int]
    role_name: Optional[str]
    permission_name: Optional[str]


@dataclass(frozen=True)
class UserWithGrants:
    user: User
    grants: tuple[RoleGrant, ...]


@dataclass(frozen=True)
class NewAccount:
    username: str
    email: str
    mobile: str
    password_hash: str
