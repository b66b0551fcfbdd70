"""Abstract user directory used by role management.

The directory owns user identity, role assignments and block status. Role
management never mutates it through loose calls: every decision and its write
happen inside one ``atomic`` unit so no other mutation can interleave.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Iterable

from engagetrack.domain.entities.role import Role
from engagetrack.domain.entities.user import UserAccount


class DirectoryTransaction(ABC):
    """Operations available inside one atomic directory unit.

    Reads see the unit's own writes. Nothing is visible to other units until
    the enclosing ``atomic`` block exits cleanly.
    """

    @abstractmethod
    async def get_user(self, user_id: str) -> UserAccount | None:
        """Read a user, locking the row for the rest of the unit where supported."""

    @abstractmethod
    async def count_super_admins(self) -> int:
        """Count users currently holding SUPER_ADMIN, including uncommitted writes."""

    @abstractmethod
    async def replace_roles(self, user_id: str, roles: Iterable[Role]) -> UserAccount:
        """Set the user's role set to exactly ``roles``."""

    @abstractmethod
    async def set_block_status(
        self,
        user_id: str,
        blocked: bool,
        reason: str | None,
        at: datetime | None,
    ) -> UserAccount:
        """Set the block flag and metadata. Roles are left untouched."""


class UserDirectory(ABC):
    """Read access plus the atomic read-then-conditionally-write primitive."""

    @abstractmethod
    async def get_user(self, user_id: str) -> UserAccount | None:
        """Fetch one user by id."""

    @abstractmethod
    async def list_users(self) -> list[UserAccount]:
        """Fetch all users with their roles and block status."""

    @abstractmethod
    def atomic(
        self,
        user_ids: Iterable[str],
        guard_super_admins: bool = False,
    ) -> AbstractAsyncContextManager[DirectoryTransaction]:
        """Open an atomic unit over the given users.

        Args:
            user_ids: Every user read or written in the unit (actor included).
            guard_super_admins: Also serialize against every other unit that
                may remove a SUPER_ADMIN, so the super admin count read inside
                this unit cannot go stale.

        The unit commits when the block exits normally and rolls back when it
        raises.
        """
