"""SUPER_ADMIN ownership transfer route."""

from fastapi import APIRouter

from engagetrack.infrastructure.api.dependencies import ManagementService, TransferOwner
from engagetrack.infrastructure.api.schemas import (
    ErrorResponse,
    TransferRequest,
    TransferResponse,
)

router = APIRouter()


@router.post(
    "/transfer",
    response_model=TransferResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not permitted"},
        404: {"model": ErrorResponse, "description": "User not found"},
        409: {"model": ErrorResponse, "description": "Would leave no SUPER_ADMIN"},
        503: {"model": ErrorResponse, "description": "Transfer could not be saved"},
    },
)
async def transfer_super_admin(
    request: TransferRequest,
    current_user: TransferOwner,
    service: ManagementService,
) -> TransferResponse:
    """Grant SUPER_ADMIN to another ADMIN, optionally downgrading the caller to ADMIN."""
    outcome = await service.transfer_super_admin(
        current_user.user_id,
        request.new_super_admin_id,
        downgrade_current=request.downgrade_current,
    )
    return TransferResponse.from_outcome(outcome)
