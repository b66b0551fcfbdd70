"""Persistence repositories for database operations."""

from engagetrack.infrastructure.persistence.repositories.role_audit_log_repository import (
    RoleAuditLogRepository,
)
from engagetrack.infrastructure.persistence.repositories.user_repository import (
    UserRepository,
    to_account,
)

__all__ = [
    "RoleAuditLogRepository",
    "UserRepository",
    "to_account",
]
