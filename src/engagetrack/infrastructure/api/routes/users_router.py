"""User directory and single-user role management routes.

Every route requires an ADMIN or SUPER_ADMIN caller. Policy denials and other
role management errors propagate to the application's exception handler.
"""

from fastapi import APIRouter, HTTPException, Query

from engagetrack.core.logging import get_logger
from engagetrack.domain.entities.role import Role
from engagetrack.domain.exceptions import UserNotFoundError
from engagetrack.domain.services.directory_query import (
    DirectoryQuery,
    DirectorySort,
    is_visible_to,
)
from engagetrack.infrastructure.api.dependencies import (
    Directory,
    ManagementService,
    QueryService,
    RoleManager,
)
from engagetrack.infrastructure.api.schemas import (
    BlockStatusRequest,
    BlockStatusResponse,
    ErrorResponse,
    RoleAssignmentRequest,
    RoleChangeResponse,
    RoleOptionsResponse,
    UserListResponse,
    UserResponse,
)

logger = get_logger(__name__)

router = APIRouter()

_MUTATION_RESPONSES = {
    200: {"description": "Applied, or skipped when already in the requested state"},
    403: {"model": ErrorResponse, "description": "Not permitted"},
    404: {"model": ErrorResponse, "description": "User not found"},
    409: {"model": ErrorResponse, "description": "Would leave no SUPER_ADMIN"},
    503: {"model": ErrorResponse, "description": "Change could not be saved"},
}


@router.get("", response_model=UserListResponse)
async def list_users(
    current_user: RoleManager,
    directory: Directory,
    query_service: QueryService,
    search: str | None = Query(default=None, max_length=255),
    role: str | None = Query(default=None, description="Role value or 'no-roles'"),
    session: str | None = Query(
        default=None, description="active, expiring, expired, never or inactive"
    ),
    sort: DirectorySort | None = Query(default=None),
) -> UserListResponse:
    """List users visible to the caller. ADMIN callers never see SUPER_ADMIN users."""
    try:
        query = DirectoryQuery(search=search, role=role, session=session, sort=sort)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    users = query_service.apply(await directory.list_users(), current_user.role, query)

    logger.debug("Users listed", count=len(users), requested_by=current_user.user_id)

    return UserListResponse(
        items=[UserResponse.from_account(u, query_service.session_status(u)) for u in users],
        total=len(users),
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def get_user(
    user_id: str,
    current_user: RoleManager,
    directory: Directory,
    query_service: QueryService,
) -> UserResponse:
    user = await directory.get_user(user_id)
    if user is None or not is_visible_to(current_user.role, user):
        raise UserNotFoundError(user_id)
    return UserResponse.from_account(user, query_service.session_status(user))


@router.get("/{user_id}/assignable-roles", response_model=RoleOptionsResponse)
async def get_assignable_roles(
    user_id: str,
    current_user: RoleManager,
    service: ManagementService,
) -> RoleOptionsResponse:
    """Roles the caller may add to or remove from the user."""
    options = await service.role_options(current_user.user_id, user_id)
    return RoleOptionsResponse(
        user_id=user_id,
        assignable=options.assignable,
        removable=options.removable,
    )


@router.put(
    "/{user_id}/role",
    response_model=RoleChangeResponse,
    responses=_MUTATION_RESPONSES,
)
async def change_role(
    user_id: str,
    request: RoleAssignmentRequest,
    current_user: RoleManager,
    service: ManagementService,
) -> RoleChangeResponse:
    """Replace the user's roles with exactly the requested role."""
    outcome = await service.change_role(current_user.user_id, user_id, request.role)
    return RoleChangeResponse.from_outcome(outcome)


@router.post(
    "/{user_id}/roles",
    response_model=RoleChangeResponse,
    responses=_MUTATION_RESPONSES,
)
async def add_role(
    user_id: str,
    request: RoleAssignmentRequest,
    current_user: RoleManager,
    service: ManagementService,
) -> RoleChangeResponse:
    outcome = await service.add_role(current_user.user_id, user_id, request.role)
    return RoleChangeResponse.from_outcome(outcome)


@router.delete(
    "/{user_id}/roles/{role}",
    response_model=RoleChangeResponse,
    responses=_MUTATION_RESPONSES,
)
async def remove_role(
    user_id: str,
    role: Role,
    current_user: RoleManager,
    service: ManagementService,
) -> RoleChangeResponse:
    """Remove a role. The user falls back to the role's fixed downgrade target."""
    outcome = await service.remove_role(current_user.user_id, user_id, role)
    return RoleChangeResponse.from_outcome(outcome)


@router.put(
    "/{user_id}/block",
    response_model=BlockStatusResponse,
    responses=_MUTATION_RESPONSES,
)
async def set_block_status(
    user_id: str,
    request: BlockStatusRequest,
    current_user: RoleManager,
    service: ManagementService,
) -> BlockStatusResponse:
    """Block or unblock a user (SUPER_ADMIN only). Roles are preserved."""
    outcome = await service.set_block_status(
        current_user.user_id, user_id, request.blocked, request.reason
    )
    return BlockStatusResponse.from_outcome(outcome)
