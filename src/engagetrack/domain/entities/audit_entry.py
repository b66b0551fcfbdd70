"""Role audit entry entity.

One entry is appended for every accepted role or block change. Entries are
immutable and are never updated or deleted by this subsystem.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from engagetrack.domain.entities.role import Role


class AuditAction(str, Enum):
    """Kind of change recorded in the role audit trail."""

    ADD = "add"
    REMOVE = "remove"
    CHANGE = "change"
    TRANSFER = "transfer"
    BLOCK = "block"
    UNBLOCK = "unblock"


@dataclass(frozen=True)
class AuditEntry:
    """Immutable audit record of an accepted change.

    Attributes:
        actor_id: User who performed the change.
        target_id: User whose roles or block status changed.
        action: Kind of change.
        role: Role involved (the target's highest role for block/unblock).
        occurred_at: When the change was committed (UTC).
        id: Storage identifier, None until persisted.
    """

    actor_id: str
    target_id: str
    action: AuditAction
    role: Role
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: int | None = None

    def __post_init__(self) -> None:
        """Validate audit data after initialization."""
        if not self.actor_id:
            raise ValueError("Actor ID is required")
        if not self.target_id:
            raise ValueError("Target ID is required")
        if not isinstance(self.action, AuditAction):
            raise ValueError(f"Invalid audit action: {self.action}")
        if not isinstance(self.role, Role):
            raise ValueError(f"Invalid role: {self.role}")
