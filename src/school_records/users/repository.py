from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import NewAccount, User, UserWithGrants


class UserRepository(Protocol):
    """Repository interface for accounts and their role links.

    Services depend on this protocol, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_with_grants(self, username: str) -> Optional[UserWithGrants]:
        """User by exact username plus every (role, permission) pair it reaches."""

        raise NotImplementedError

    def find_conflicts(
        self,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        mobile: Optional[str] = None,
        exclude_user_id: Optional[int] = None,
    ) -> Sequence[str]:
        """Names of the given fields already used by another user."""

        raise NotImplementedError

    def get_role_id(self, role_name: str) -> Optional[int]:
        raise NotImplementedError

    def create_with_role(self, account: NewAccount, *, legacy_role: str, role_id: int) -> User:
        """Insert the user and its ``user_roles`` link in one transaction."""

        raise NotImplementedError
