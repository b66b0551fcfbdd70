"""Value objects for role change requests, decisions and outcomes.

None of these are persisted. A request lives for one policy evaluation;
outcomes are what the management service reports back to its caller.
"""

from dataclasses import dataclass, field
from enum import Enum

from engagetrack.domain.entities.audit_entry import AuditAction
from engagetrack.domain.entities.role import Role


@dataclass(frozen=True)
class RoleChangeRequest:
    """A single requested role mutation.

    Attributes:
        actor_id: User initiating the change.
        actor_role: Actor's highest role at evaluation time.
        target_id: User whose roles change.
        target_roles: Roles the target currently holds.
        requested_role: Role being requested for the target.
    """

    actor_id: str
    actor_role: Role
    target_id: str
    target_roles: frozenset[Role]
    requested_role: Role

    @property
    def is_self_change(self) -> bool:
        return self.actor_id == self.target_id


@dataclass(frozen=True)
class PolicyDecision:
    """Result of a policy evaluation.

    Attributes:
        allowed: Whether the change is permitted.
        resulting_role: Role the target ends up with (allowed decisions only).
        warning: Non-blocking notice attached to an allowed decision.
        reason: Human-readable denial reason (denied decisions only).
    """

    allowed: bool
    resulting_role: Role | None = None
    warning: str | None = None
    reason: str | None = None

    @classmethod
    def allow(cls, resulting_role: Role | None, warning: str | None = None) -> "PolicyDecision":
        return cls(allowed=True, resulting_role=resulting_role, warning=warning)

    @classmethod
    def deny(cls, reason: str) -> "PolicyDecision":
        return cls(allowed=False, reason=reason)

    @property
    def denied(self) -> bool:
        return not self.allowed


@dataclass(frozen=True)
class RoleChangeOutcome:
    """A committed role mutation on one user."""

    user_id: str
    action: AuditAction
    role: Role
    resulting_role: Role
    roles: frozenset[Role]
    warning: str | None = None
    message: str = ""


@dataclass(frozen=True)
class BlockStatusOutcome:
    """A committed block or unblock on one user."""

    user_id: str
    blocked: bool
    message: str = ""


@dataclass(frozen=True)
class TransferOutcome:
    """A committed SUPER_ADMIN ownership transfer."""

    previous_super_admin_id: str
    new_super_admin_id: str
    downgraded: bool
    message: str = ""


class BulkItemStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class BulkItemResult:
    """Per-target result inside a bulk operation."""

    user_id: str
    status: BulkItemStatus
    message: str = ""
    error: str | None = None


@dataclass
class BulkRoleChangeResult:
    """Summary of a bulk operation.

    Partial success is the normal outcome: every target is evaluated and
    applied independently and counted into exactly one bucket.
    """

    action: AuditAction
    role: Role
    results: list[BulkItemResult] = field(default_factory=list)

    @property
    def success(self) -> int:
        return self._count(BulkItemStatus.SUCCESS)

    @property
    def skipped(self) -> int:
        return self._count(BulkItemStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(BulkItemStatus.FAILED)

    def _count(self, status: BulkItemStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    def counts(self) -> dict[str, int]:
        return {"success": self.success, "skipped": self.skipped, "failed": self.failed}


@dataclass(frozen=True)
class RoleOptions:
    """Roles the console may offer an actor for one target."""

    assignable: list[Role]
    removable: list[Role]
