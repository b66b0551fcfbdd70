"""Role audit log routes (SUPER_ADMIN only)."""

from fastapi import APIRouter, Query

from engagetrack.core.config import get_settings
from engagetrack.infrastructure.api.dependencies import AuditService, SuperAdminUser
from engagetrack.infrastructure.api.schemas import RoleAuditLogItem, RoleAuditLogListResponse

router = APIRouter()


@router.get("", response_model=RoleAuditLogListResponse)
async def list_role_audit_logs(
    current_user: SuperAdminUser,
    audit_service: AuditService,
    limit: int | None = Query(default=None, ge=1, le=500),
) -> RoleAuditLogListResponse:
    """Most recent role changes, newest first."""
    views = await audit_service.list_recent(limit or get_settings().audit_log_default_limit)
    items = [RoleAuditLogItem.from_view(view) for view in views]
    return RoleAuditLogListResponse(items=items, total=len(items))
