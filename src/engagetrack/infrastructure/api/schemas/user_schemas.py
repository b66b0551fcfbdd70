"""User directory API schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel

from engagetrack.domain.entities.role import Role
from engagetrack.domain.entities.user import SessionStatus, UserAccount


class UserResponse(BaseModel):
    """One directory entry as shown in the role management console."""

    id: str
    email: str
    full_name: str | None = None
    roles: list[Role]
    highest_role: Role
    is_blocked: bool
    blocked_at: datetime | None = None
    block_reason: str | None = None
    last_login_at: datetime | None = None
    created_at: datetime | None = None
    session_status: SessionStatus

    @classmethod
    def from_account(cls, user: UserAccount, session_status: SessionStatus) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            roles=sorted(user.roles, key=list(Role).index),
            highest_role=user.highest_role,
            is_blocked=user.is_blocked,
            blocked_at=user.blocked_at,
            block_reason=user.block_reason,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            session_status=session_status,
        )


class UserListResponse(BaseModel):
    """Response schema for the directory listing."""

    items: list[UserResponse]
    total: int


class RoleOptionsResponse(BaseModel):
    """Roles the current user may add to or remove from a user."""

    user_id: str
    assignable: list[Role]
    removable: list[Role]
