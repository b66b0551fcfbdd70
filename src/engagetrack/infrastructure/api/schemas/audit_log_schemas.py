"""Role audit log API schemas."""

from datetime import datetime

from pydantic import BaseModel

from engagetrack.domain.entities.audit_entry import AuditAction
from engagetrack.domain.entities.role import Role
from engagetrack.domain.services.role_audit_service import AuditLogView


class RoleAuditLogItem(BaseModel):
    """One audit entry with actor and target names resolved."""

    id: int | None
    action: AuditAction
    role: Role
    occurred_at: datetime
    actor_id: str
    actor_name: str | None = None
    actor_email: str | None = None
    target_user_id: str
    target_name: str | None = None
    target_email: str | None = None

    @classmethod
    def from_view(cls, view: AuditLogView) -> "RoleAuditLogItem":
        return cls(
            id=view.entry.id,
            action=view.entry.action,
            role=view.entry.role,
            occurred_at=view.entry.occurred_at,
            actor_id=view.entry.actor_id,
            actor_name=view.actor_name,
            actor_email=view.actor_email,
            target_user_id=view.entry.target_id,
            target_name=view.target_name,
            target_email=view.target_email,
        )


class RoleAuditLogListResponse(BaseModel):
    items: list[RoleAuditLogItem]
    total: int
