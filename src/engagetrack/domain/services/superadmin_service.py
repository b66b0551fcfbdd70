"""Service for bootstrapping and counting SUPER_ADMIN users.

The system must always have at least one SUPER_ADMIN. On a fresh install the
first one is created (or promoted) from configuration; afterwards ownership
moves only through the transfer operation.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from engagetrack.core.logging import get_logger
from engagetrack.domain.entities.role import Role

logger = get_logger(__name__)


class SuperadminBootstrapError(Exception):
    """Raised when the first SUPER_ADMIN cannot be created."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SuperadminService:
    """Service for managing SUPER_ADMIN holders outside the role console."""

    @staticmethod
    async def count_superadmins(session: AsyncSession) -> int:
        """Count users holding SUPER_ADMIN.

        Args:
            session: Database session.
        """
        from engagetrack.infrastructure.persistence.repositories import UserRepository

        return await UserRepository(session).count_with_role(Role.SUPER_ADMIN)

    @staticmethod
    async def has_superadmin(session: AsyncSession) -> bool:
        """Check if at least one SUPER_ADMIN exists.

        Args:
            session: Database session.

        Returns:
            True if a SUPER_ADMIN exists, False otherwise.
        """
        return await SuperadminService.count_superadmins(session) > 0

    @staticmethod
    async def ensure_superadmin(
        email: str,
        session: AsyncSession,
        full_name: str | None = None,
    ) -> tuple[str, bool]:
        """Make the user with ``email`` a SUPER_ADMIN, creating it if needed.

        Existing roles of a promoted user are kept.

        Args:
            email: Email address of the SUPER_ADMIN.
            session: Database session.
            full_name: Display name used when the user is created.

        Returns:
            Tuple of (user_id, created) where created is False when an
            existing user was promoted or already held the role.

        Raises:
            SuperadminBootstrapError: If the email is empty or the write fails.
        """
        from engagetrack.infrastructure.persistence.models import UserModel, UserRoleModel
        from engagetrack.infrastructure.persistence.repositories import UserRepository

        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise SuperadminBootstrapError(f"Invalid SUPER_ADMIN email '{email}'")

        user_repo = UserRepository(session)
        existing = await user_repo.get_by_email(email)

        try:
            if existing is not None:
                held = {Role(r.role) for r in existing.roles}
                if Role.SUPER_ADMIN not in held:
                    existing.roles.append(UserRoleModel(role=Role.SUPER_ADMIN.value))
                    await session.commit()
                    logger.info("Existing user promoted to SUPER_ADMIN", user_id=existing.id)
                return existing.id, False

            user = UserModel(
                id=str(uuid.uuid4()),
                email=email,
                full_name=full_name,
                roles=[UserRoleModel(role=Role.SUPER_ADMIN.value)],
            )
            await user_repo.create(user)
            await session.commit()
            logger.info("SUPER_ADMIN created", user_id=user.id, email=email)
            return user.id, True
        except Exception as e:
            await session.rollback()
            raise SuperadminBootstrapError(f"Failed to create SUPER_ADMIN: {e}") from e
