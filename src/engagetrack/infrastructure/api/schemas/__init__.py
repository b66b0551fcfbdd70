"""API request and response schemas."""

from engagetrack.infrastructure.api.schemas.audit_log_schemas import (
    RoleAuditLogItem,
    RoleAuditLogListResponse,
)
from engagetrack.infrastructure.api.schemas.role_schemas import (
    BlockStatusRequest,
    BlockStatusResponse,
    BulkItemResponse,
    BulkRoleRequest,
    BulkRoleResponse,
    ErrorResponse,
    RoleAssignmentRequest,
    RoleChangeResponse,
    SkippedResponse,
    TransferRequest,
    TransferResponse,
)
from engagetrack.infrastructure.api.schemas.user_schemas import (
    RoleOptionsResponse,
    UserListResponse,
    UserResponse,
)

__all__ = [
    "BlockStatusRequest",
    "BlockStatusResponse",
    "BulkItemResponse",
    "BulkRoleRequest",
    "BulkRoleResponse",
    "ErrorResponse",
    "RoleAssignmentRequest",
    "RoleAuditLogItem",
    "RoleAuditLogListResponse",
    "RoleChangeResponse",
    "RoleOptionsResponse",
    "SkippedResponse",
    "TransferRequest",
    "TransferResponse",
    "UserListResponse",
    "UserResponse",
]
