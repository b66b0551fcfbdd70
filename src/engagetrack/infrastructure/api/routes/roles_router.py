"""Bulk role operation routes.

Each target is evaluated and applied on its own. The response reports how
many succeeded, were skipped because nothing would change, or failed.
"""

from fastapi import APIRouter

from engagetrack.infrastructure.api.dependencies import ManagementService, RoleManager
from engagetrack.infrastructure.api.schemas import BulkRoleRequest, BulkRoleResponse

router = APIRouter()


@router.post("/bulk/add", response_model=BulkRoleResponse)
async def bulk_add_role(
    request: BulkRoleRequest,
    current_user: RoleManager,
    service: ManagementService,
) -> BulkRoleResponse:
    result = await service.bulk_add_role(current_user.user_id, request.user_ids, request.role)
    return BulkRoleResponse.from_result(result)


@router.post("/bulk/remove", response_model=BulkRoleResponse)
async def bulk_remove_role(
    request: BulkRoleRequest,
    current_user: RoleManager,
    service: ManagementService,
) -> BulkRoleResponse:
    result = await service.bulk_remove_role(current_user.user_id, request.user_ids, request.role)
    return BulkRoleResponse.from_result(result)


@router.post("/bulk/change", response_model=BulkRoleResponse)
async def bulk_change_role(
    request: BulkRoleRequest,
    current_user: RoleManager,
    service: ManagementService,
) -> BulkRoleResponse:
    result = await service.bulk_change_role(current_user.user_id, request.user_ids, request.role)
    return BulkRoleResponse.from_result(result)
