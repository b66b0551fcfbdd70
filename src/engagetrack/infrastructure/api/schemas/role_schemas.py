"""Role change API schemas for request/response validation."""

from pydantic import BaseModel, Field, field_validator

from engagetrack.domain.entities.audit_entry import AuditAction
from engagetrack.domain.entities.role import Role
from engagetrack.domain.entities.role_change import (
    BlockStatusOutcome,
    BulkItemStatus,
    BulkRoleChangeResult,
    RoleChangeOutcome,
    TransferOutcome,
)


class RoleAssignmentRequest(BaseModel):
    """Request schema for changing or adding a role.

    Attributes:
        role: Role to assign.
    """

    role: Role


class RoleChangeResponse(BaseModel):
    """Response schema for an applied role change."""

    success: bool = True
    skipped: bool = False
    message: str
    user_id: str
    action: AuditAction
    role: Role
    resulting_role: Role
    roles: list[Role]
    warning: str | None = None

    @classmethod
    def from_outcome(cls, outcome: RoleChangeOutcome) -> "RoleChangeResponse":
        return cls(
            message=outcome.message,
            user_id=outcome.user_id,
            action=outcome.action,
            role=outcome.role,
            resulting_role=outcome.resulting_role,
            roles=sorted(outcome.roles, key=list(Role).index),
            warning=outcome.warning,
        )


class BlockStatusRequest(BaseModel):
    """Request schema for blocking or unblocking a user.

    Attributes:
        blocked: True to block, False to unblock.
        reason: Optional reason, ignored when unblocking.
    """

    blocked: bool
    reason: str | None = Field(default=None, max_length=500)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class BlockStatusResponse(BaseModel):
    success: bool = True
    skipped: bool = False
    message: str
    user_id: str
    blocked: bool

    @classmethod
    def from_outcome(cls, outcome: BlockStatusOutcome) -> "BlockStatusResponse":
        return cls(message=outcome.message, user_id=outcome.user_id, blocked=outcome.blocked)


class BulkRoleRequest(BaseModel):
    """Request schema for bulk role operations.

    Attributes:
        user_ids: Target users. Duplicates are processed once.
        role: Role to add, remove or assign.
    """

    user_ids: list[str] = Field(min_length=1)
    role: Role


class BulkItemResponse(BaseModel):
    user_id: str
    status: BulkItemStatus
    message: str
    error: str | None = None


class BulkRoleResponse(BaseModel):
    """Per-bucket counts plus per-user results of a bulk operation."""

    action: AuditAction
    role: Role
    success: int
    skipped: int
    failed: int
    results: list[BulkItemResponse]

    @classmethod
    def from_result(cls, result: BulkRoleChangeResult) -> "BulkRoleResponse":
        return cls(
            action=result.action,
            role=result.role,
            success=result.success,
            skipped=result.skipped,
            failed=result.failed,
            results=[
                BulkItemResponse(
                    user_id=item.user_id,
                    status=item.status,
                    message=item.message,
                    error=item.error,
                )
                for item in result.results
            ],
        )


class TransferRequest(BaseModel):
    """Request schema for SUPER_ADMIN ownership transfer.

    Attributes:
        new_super_admin_id: User receiving SUPER_ADMIN.
        downgrade_current: Downgrade the current SUPER_ADMIN to ADMIN.
    """

    new_super_admin_id: str = Field(min_length=1)
    downgrade_current: bool = True


class TransferResponse(BaseModel):
    success: bool = True
    message: str
    previous_super_admin_id: str
    new_super_admin_id: str
    downgraded: bool

    @classmethod
    def from_outcome(cls, outcome: TransferOutcome) -> "TransferResponse":
        return cls(
            message=outcome.message,
            previous_super_admin_id=outcome.previous_super_admin_id,
            new_super_admin_id=outcome.new_super_admin_id,
            downgraded=outcome.downgraded,
        )


class SkippedResponse(BaseModel):
    """Returned when the target already has the requested state."""

    success: bool = True
    skipped: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
