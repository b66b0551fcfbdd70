"""API routes for Engagement Tracker role management."""

from engagetrack.infrastructure.api.routes.audit_log_router import router as audit_log_router
from engagetrack.infrastructure.api.routes.roles_router import router as roles_router
from engagetrack.infrastructure.api.routes.super_admin_router import router as super_admin_router
from engagetrack.infrastructure.api.routes.users_router import router as users_router

__all__ = [
    "audit_log_router",
    "roles_router",
    "super_admin_router",
    "users_router",
]
