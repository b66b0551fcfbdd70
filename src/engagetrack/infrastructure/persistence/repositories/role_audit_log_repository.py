"""Role audit log repository for append-only audit trail operations.

UPDATE and DELETE are intentionally not provided; the table is append-only.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from engagetrack.infrastructure.persistence.models import RoleAuditLogModel


class RoleAuditLogRepository:
    """Repository for role audit log database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, entry: RoleAuditLogModel) -> RoleAuditLogModel:
        """Append an audit entry.

        Args:
            entry: Audit log model to create.

        Returns:
            Created audit log model with its sequence number.
        """
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_recent(self, limit: int = 50) -> list[RoleAuditLogModel]:
        """List the most recent entries, newest first.

        Args:
            limit: Maximum number of entries to return.
        """
        result = await self.session.execute(
            select(RoleAuditLogModel)
            .order_by(RoleAuditLogModel.occurred_at.desc(), RoleAuditLogModel.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str) -> list[RoleAuditLogModel]:
        """List entries targeting one user, oldest first."""
        result = await self.session.execute(
            select(RoleAuditLogModel)
            .where(RoleAuditLogModel.target_user_id == user_id)
            .order_by(RoleAuditLogModel.id)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(RoleAuditLogModel.id)))
        return result.scalar_one()
