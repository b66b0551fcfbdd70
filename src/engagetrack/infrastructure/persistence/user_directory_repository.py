"""SQLAlchemy implementation of the user directory.

Each atomic unit holds the keyed locks for every user it touches, runs in one
session and commits on clean exit. Rows are read ``FOR UPDATE`` on backends
that support row locks, so units from other processes also serialize.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from engagetrack.core.logging import get_logger
from engagetrack.domain.entities.role import Role
from engagetrack.domain.entities.user import UserAccount
from engagetrack.domain.exceptions import TransientBackendError, UserNotFoundError
from engagetrack.domain.services.user_directory import DirectoryTransaction, UserDirectory
from engagetrack.infrastructure.persistence.locks import (
    SUPER_ADMIN_GUARD_KEY,
    KeyedLockRegistry,
    get_lock_registry,
)
from engagetrack.infrastructure.persistence.models import UserModel
from engagetrack.infrastructure.persistence.repositories import UserRepository, to_account

logger = get_logger(__name__)


class SQLAlchemyDirectoryTransaction(DirectoryTransaction):
    """Directory operations bound to one open session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)

    async def get_user(self, user_id: str) -> UserAccount | None:
        user = await self.users.get_by_id(user_id, for_update=True)
        return to_account(user) if user else None

    async def count_super_admins(self) -> int:
        await self.session.flush()
        return await self.users.count_with_role(Role.SUPER_ADMIN)

    async def replace_roles(self, user_id: str, roles: Iterable[Role]) -> UserAccount:
        user = await self._require(user_id)
        await self.users.replace_roles(user, roles)
        return to_account(user)

    async def set_block_status(
        self,
        user_id: str,
        blocked: bool,
        reason: str | None,
        at: datetime | None,
    ) -> UserAccount:
        user = await self._require(user_id)
        await self.users.set_block_status(user, blocked, reason, at)
        return to_account(user)

    async def _require(self, user_id: str) -> UserModel:
        user = await self.users.get_by_id(user_id, for_update=True)
        if user is None:
            raise UserNotFoundError(user_id)
        return user


class SQLAlchemyUserDirectory(UserDirectory):
    """User directory stored in the ``users`` and ``user_roles`` tables."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        locks: KeyedLockRegistry | None = None,
    ) -> None:
        """Initialize the directory.

        Args:
            session_factory: Factory for one session per read or atomic unit.
            locks: Lock registry, defaults to the process-wide registry.
        """
        self.session_factory = session_factory
        self.locks = locks or get_lock_registry()

    async def get_user(self, user_id: str) -> UserAccount | None:
        try:
            async with self.session_factory() as session:
                user = await UserRepository(session).get_by_id(user_id)
                return to_account(user) if user else None
        except SQLAlchemyError as e:
            logger.error("Directory read failed", user_id=user_id, error=str(e))
            raise TransientBackendError("User directory is unavailable") from e

    async def list_users(self) -> list[UserAccount]:
        try:
            async with self.session_factory() as session:
                users = await UserRepository(session).list_all()
                return [to_account(user) for user in users]
        except SQLAlchemyError as e:
            logger.error("Directory listing failed", error=str(e))
            raise TransientBackendError("User directory is unavailable") from e

    @asynccontextmanager
    async def atomic(
        self,
        user_ids: Iterable[str],
        guard_super_admins: bool = False,
    ) -> AsyncIterator[DirectoryTransaction]:
        keys = set(user_ids)
        if guard_super_admins:
            keys.add(SUPER_ADMIN_GUARD_KEY)

        async with self.locks.hold(keys):
            async with self.session_factory() as session:
                try:
                    yield SQLAlchemyDirectoryTransaction(session)
                    await session.commit()
                except SQLAlchemyError as e:
                    await session.rollback()
                    logger.error(
                        "Directory unit rolled back",
                        user_ids=sorted(keys),
                        error=str(e),
                    )
                    raise TransientBackendError(
                        "Role change could not be saved; no change was made"
                    ) from e
                except Exception:
                    await session.rollback()
                    raise
