"""FastAPI dependencies for authentication, authorization and services.

The access token only identifies the caller. Roles and block status are
loaded from the directory on every request.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from engagetrack.core.config import get_settings
from engagetrack.core.logging import bind_actor, get_logger
from engagetrack.domain.entities.role import Role
from engagetrack.domain.entities.user import UserAccount
from engagetrack.domain.exceptions import PermissionDeniedError
from engagetrack.domain.services.directory_query import DirectoryQueryService
from engagetrack.domain.services.role_audit_service import RoleAuditService
from engagetrack.domain.services.role_management_service import RoleManagementService
from engagetrack.domain.services.role_policy import ONLY_SUPER_ADMIN_TRANSFERS, role_policy
from engagetrack.domain.services.user_directory import UserDirectory
from engagetrack.infrastructure.auth import InvalidTokenError, TokenExpiredError, jwt_service
from engagetrack.infrastructure.persistence.database import get_session_factory
from engagetrack.infrastructure.persistence.user_directory_repository import (
    SQLAlchemyUserDirectory,
)
from engagetrack.infrastructure.services.email import build_email_provider
from engagetrack.infrastructure.services.notification_service import RoleChangeNotifier

logger = get_logger(__name__)

SUPER_ADMIN_REQUIRED = "SUPER_ADMIN access required"


@dataclass
class CurrentUser:
    """The authenticated caller as currently stored in the directory."""

    user_id: str
    email: str
    role: Role
    account: UserAccount

    @property
    def is_super_admin(self) -> bool:
        return self.role is Role.SUPER_ADMIN


def get_user_directory(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> UserDirectory:
    return SQLAlchemyUserDirectory(session_factory)


def get_role_audit_service(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> RoleAuditService:
    return RoleAuditService(session_factory)


def get_role_change_notifier(
    request: Request,
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
) -> RoleChangeNotifier:
    """Get the notifier from app state, creating it on first use.

    The notifier outlives requests so its pending sends can be drained at
    shutdown.
    """
    notifier = getattr(request.app.state, "role_change_notifier", None)
    if notifier is None:
        settings = get_settings()
        notifier = RoleChangeNotifier(directory, build_email_provider(settings), settings)
        request.app.state.role_change_notifier = notifier
    return notifier


def get_role_management_service(
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
    audit_service: Annotated[RoleAuditService, Depends(get_role_audit_service)],
    notifier: Annotated[RoleChangeNotifier, Depends(get_role_change_notifier)],
) -> RoleManagementService:
    return RoleManagementService(
        directory,
        audit_recorder=audit_service,
        notifier=notifier,
        timeout_seconds=get_settings().role_change_timeout_seconds,
    )


def get_directory_query_service() -> DirectoryQueryService:
    settings = get_settings()
    return DirectoryQueryService(
        expiry_hours=settings.session_expiry_hours,
        expiring_window_hours=settings.session_expiring_window_hours,
    )


async def get_current_user(
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Extract the caller from the Authorization header and load it.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired.
        PermissionDeniedError: If the token's user is not in the directory.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if authorization is None:
        logger.info("Authentication failed: missing Authorization header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.info("Authentication failed: invalid Authorization header format")
        raise credentials_exception

    try:
        payload = jwt_service.validate_access_token(parts[1])
    except TokenExpiredError:
        logger.info("Authentication failed: token expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidTokenError as e:
        logger.info("Authentication failed: invalid token", error=str(e))
        raise credentials_exception

    user_id = jwt_service.user_id_from(payload)
    account = await directory.get_user(user_id)
    if account is None:
        logger.info("Authentication failed: unknown user", user_id=user_id)
        raise PermissionDeniedError("User not found in directory")

    bind_actor(account.id)
    return CurrentUser(
        user_id=account.id,
        email=account.email,
        role=account.highest_role,
        account=account,
    )


# Type alias for dependency injection
AuthenticatedUser = Annotated[CurrentUser, Depends(get_current_user)]


async def require_role_manager(current_user: AuthenticatedUser) -> CurrentUser:
    """Ensure the caller may open role management (ADMIN or SUPER_ADMIN, not blocked).

    Raises:
        PermissionDeniedError: Otherwise.
    """
    decision = role_policy.evaluate_console_access(
        current_user.role, current_user.account.is_blocked
    )
    if decision.denied:
        logger.info(
            "Role management access denied",
            user_id=current_user.user_id,
            role=current_user.role.value,
            blocked=current_user.account.is_blocked,
        )
        raise PermissionDeniedError(decision.reason or "Role management not permitted")
    return current_user


async def require_super_admin(
    current_user: Annotated[CurrentUser, Depends(require_role_manager)],
) -> CurrentUser:
    """Ensure the caller is a SUPER_ADMIN.

    Raises:
        PermissionDeniedError: If the caller is not a SUPER_ADMIN.
    """
    if not current_user.is_super_admin:
        logger.info("Superadmin access denied", user_id=current_user.user_id)
        raise PermissionDeniedError(SUPER_ADMIN_REQUIRED)
    return current_user


async def require_transfer_owner(
    current_user: Annotated[CurrentUser, Depends(require_role_manager)],
) -> CurrentUser:
    """Ensure the caller may hand over the SUPER_ADMIN role.

    Raises:
        PermissionDeniedError: If the caller is not a SUPER_ADMIN.
    """
    if not current_user.is_super_admin:
        raise PermissionDeniedError(ONLY_SUPER_ADMIN_TRANSFERS)
    return current_user


# Type aliases for dependency injection
RoleManager = Annotated[CurrentUser, Depends(require_role_manager)]
SuperAdminUser = Annotated[CurrentUser, Depends(require_super_admin)]
TransferOwner = Annotated[CurrentUser, Depends(require_transfer_owner)]
ManagementService = Annotated[RoleManagementService, Depends(get_role_management_service)]
AuditService = Annotated[RoleAuditService, Depends(get_role_audit_service)]
Directory = Annotated[UserDirectory, Depends(get_user_directory)]
QueryService = Annotated[DirectoryQueryService, Depends(get_directory_query_service)]
