"""SQLAlchemy models for Engagement Tracker tables.

All models inherit from the Base class defined in database.py and are
automatically created on application startup in development mode.
"""

from engagetrack.infrastructure.persistence.models.role_audit_log import RoleAuditLogModel
from engagetrack.infrastructure.persistence.models.user import UserModel, UserRoleModel

__all__ = [
    "RoleAuditLogModel",
    "UserModel",
    "UserRoleModel",
]
