"""User repository for database operations."""

from datetime import datetime
from typing import Iterable

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from engagetrack.domain.entities.role import Role
from engagetrack.domain.entities.user import UserAccount, ensure_utc
from engagetrack.infrastructure.persistence.models import UserModel, UserRoleModel


def to_account(user: UserModel) -> UserAccount:
    """Map a user row and its role rows to the domain entity."""
    return UserAccount(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        roles=frozenset(Role(r.role) for r in user.roles),
        is_blocked=user.is_blocked,
        blocked_at=ensure_utc(user.blocked_at),
        block_reason=user.block_reason,
        last_login_at=ensure_utc(user.last_login_at),
        created_at=ensure_utc(user.created_at),
    )


class UserRepository:
    """Repository for user and role assignment database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, user: UserModel) -> UserModel:
        """Create a new user.

        Args:
            user: User model to create.

        Returns:
            Created user model.
        """
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: str, for_update: bool = False) -> UserModel | None:
        """Get a user by ID with roles loaded.

        Args:
            user_id: User ID (UUID string).
            for_update: Lock the row until the transaction ends, where supported.

        Returns:
            User model if found, None otherwise.
        """
        query = select(UserModel).where(UserModel.id == user_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> UserModel | None:
        """Get a user by email (case-insensitive).

        Args:
            email: User's email address.

        Returns:
            User model if found, None otherwise.
        """
        result = await self.session.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, UserModel]:
        """Get several users keyed by ID. Unknown IDs are left out."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        result = await self.session.execute(select(UserModel).where(UserModel.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    async def list_all(self) -> list[UserModel]:
        """List all users, newest first."""
        result = await self.session.execute(
            select(UserModel).order_by(UserModel.created_at.desc(), UserModel.email)
        )
        return list(result.scalars().all())

    async def count_with_role(self, role: Role) -> int:
        """Count distinct users holding ``role``.

        Pending role changes must be flushed first to be counted.
        """
        result = await self.session.execute(
            select(func.count(distinct(UserRoleModel.user_id))).where(
                UserRoleModel.role == role.value
            )
        )
        return result.scalar_one()

    async def replace_roles(self, user: UserModel, roles: Iterable[Role]) -> UserModel:
        """Make the user's role rows match ``roles`` exactly.

        Rows already present are kept; only missing rows are inserted and
        extra rows deleted.

        Args:
            user: User model with roles loaded.
            roles: Target role set.

        Returns:
            The updated user model.
        """
        wanted = {Role(r).value for r in roles}
        for row in list(user.roles):
            if row.role not in wanted:
                user.roles.remove(row)
        held = {row.role for row in user.roles}
        for value in sorted(wanted - held):
            user.roles.append(UserRoleModel(role=value))
        await self.session.flush()
        return user

    async def set_block_status(
        self,
        user: UserModel,
        blocked: bool,
        reason: str | None,
        at: datetime | None,
    ) -> UserModel:
        """Update the block flag and its metadata.

        Args:
            user: User model to update.
            blocked: New block flag.
            reason: Reason for blocking (None when unblocking).
            at: Block timestamp (None when unblocking).

        Returns:
            The updated user model.
        """
        user.is_blocked = blocked
        user.block_reason = reason
        user.blocked_at = at
        await self.session.flush()
        return user
