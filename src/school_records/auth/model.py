from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Claims:
    """Identity and authorization claims carried inside a signed token."""

    id: int
    username: str
    role: str
    roles: tuple[str, ...] = ()
    permissions: tuple[str, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "roles": list(self.roles),
            "permissions": list(self.permissions),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Claims":
        return cls(
            id=int(payload["id"]),
            username=str(payload["username"]),
            role=str(payload["role"]),
            roles=tuple(str(r) for r in payload.get("roles") or ()),
            permissions=tuple(str(p) for p in payload.get("permissions") or ()),
        )


@dataclass(frozen=True)
class ClientContext:
    ip_address: Optional[str]
    user_agent: Optional[str]


@dataclass(frozen=True)
class RoleSummary:
    id: int
    name: str
    permissions: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "permissions": list(self.permissions)}


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: dict[str, Any]


@dataclass(frozen=True)
class LoginActivity:
    login_time: datetime
    ip_address: Optional[str]
    user_agent: Optional[str]
    status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "login_time": self.login_time.isoformat() if self.login_time else None,
            "formatted_time": self.login_time.strftime("%Y-%m-%d %H:%M:%S") if self.login_time else None,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "status": self.status,
        }
