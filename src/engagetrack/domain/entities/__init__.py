"""Domain entities for Engagement Tracker.

Entities are plain dataclasses and enums describing roles, users and role
changes. They have no dependencies on infrastructure or frameworks.
"""

from engagetrack.domain.entities.audit_entry import AuditAction, AuditEntry
from engagetrack.domain.entities.role import (
    ADMIN_ASSIGNABLE_ROLES,
    CONSOLE_ROLES,
    PROTECTED_ROLES,
    REMOVAL_DOWNGRADE,
    ROLE_HIERARCHY,
    Role,
    downgrade_target,
)
from engagetrack.domain.entities.role_change import (
    BlockStatusOutcome,
    BulkItemResult,
    BulkItemStatus,
    BulkRoleChangeResult,
    PolicyDecision,
    RoleChangeOutcome,
    RoleChangeRequest,
    RoleOptions,
    TransferOutcome,
)
from engagetrack.domain.entities.user import SessionStatus, UserAccount

__all__ = [
    "ADMIN_ASSIGNABLE_ROLES",
    "AuditAction",
    "AuditEntry",
    "BlockStatusOutcome",
    "BulkItemResult",
    "BulkItemStatus",
    "BulkRoleChangeResult",
    "CONSOLE_ROLES",
    "PROTECTED_ROLES",
    "PolicyDecision",
    "REMOVAL_DOWNGRADE",
    "ROLE_HIERARCHY",
    "Role",
    "RoleChangeOutcome",
    "RoleChangeRequest",
    "RoleOptions",
    "SessionStatus",
    "TransferOutcome",
    "UserAccount",
    "downgrade_target",
]
