"""Role audit trail service.

Appends one entry per accepted change and serves the most recent entries to
the super admin dashboard. Writes run in their own transaction after the role
change has committed; a failed write is logged and never undoes the change.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from engagetrack.core.logging import get_logger
from engagetrack.domain.entities.audit_entry import AuditAction, AuditEntry
from engagetrack.domain.entities.role import Role
from engagetrack.infrastructure.persistence.models import RoleAuditLogModel
from engagetrack.infrastructure.persistence.repositories import (
    RoleAuditLogRepository,
    UserRepository,
)

logger = get_logger(__name__)


class AuditRecorder(ABC):
    """Append-only sink for role audit entries."""

    @abstractmethod
    async def record(self, entry: AuditEntry) -> None:
        """Append an entry. May raise; callers treat failures as best-effort."""


@dataclass(frozen=True)
class AuditLogView:
    """Audit entry joined with the display names of both users."""

    entry: AuditEntry
    actor_name: str | None
    actor_email: str | None
    target_name: str | None
    target_email: str | None


class RoleAuditService(AuditRecorder):
    """Audit recorder backed by the ``role_audit_logs`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the service.

        Args:
            session_factory: Factory for independent sessions, one per write.
        """
        self.session_factory = session_factory

    async def record(self, entry: AuditEntry) -> None:
        async with self.session_factory() as session:
            repo = RoleAuditLogRepository(session)
            await repo.create(
                RoleAuditLogModel(
                    actor_id=entry.actor_id,
                    target_user_id=entry.target_id,
                    action=entry.action.value,
                    role=entry.role.value,
                    occurred_at=entry.occurred_at,
                )
            )
            await session.commit()
        logger.debug(
            "Role audit entry recorded",
            action=entry.action.value,
            target_id=entry.target_id,
            role=entry.role.value,
        )

    async def list_recent(self, limit: int = 50) -> list[AuditLogView]:
        """Most recent entries first, with actor and target names resolved.

        Args:
            limit: Maximum number of entries to return.
        """
        async with self.session_factory() as session:
            audit_repo = RoleAuditLogRepository(session)
            user_repo = UserRepository(session)

            rows = await audit_repo.list_recent(limit=limit)
            user_ids = {row.actor_id for row in rows} | {row.target_user_id for row in rows}
            users = await user_repo.get_many(user_ids)

        views = []
        for row in rows:
            actor = users.get(row.actor_id)
            target = users.get(row.target_user_id)
            views.append(
                AuditLogView(
                    entry=AuditEntry(
                        id=row.id,
                        actor_id=row.actor_id,
                        target_id=row.target_user_id,
                        action=AuditAction(row.action),
                        role=Role(row.role),
                        occurred_at=row.occurred_at,
                    ),
                    actor_name=actor.full_name if actor else None,
                    actor_email=actor.email if actor else None,
                    target_name=target.full_name if target else None,
                    target_email=target.email if target else None,
                )
            )
        return views
