"""Domain services for Engagement Tracker.

Only infrastructure-free services are re-exported here. Services that touch
the database are imported from their modules directly.
"""

from engagetrack.domain.services.directory_query import (
    DirectoryQuery,
    DirectoryQueryService,
    DirectorySort,
    is_visible_to,
)
from engagetrack.domain.services.role_policy import RolePolicyEngine, role_policy
from engagetrack.domain.services.user_directory import DirectoryTransaction, UserDirectory

__all__ = [
    "DirectoryQuery",
    "DirectoryQueryService",
    "DirectorySort",
    "DirectoryTransaction",
    "RolePolicyEngine",
    "UserDirectory",
    "is_visible_to",
    "role_policy",
]
