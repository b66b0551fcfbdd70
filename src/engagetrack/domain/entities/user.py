"""User account entity as seen by the role directory.

Accounts are created by the external signup flow. The role subsystem only
mutates the role set and the block flag with its metadata.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable

from engagetrack.domain.entities.role import Role


class SessionStatus(str, Enum):
    """Freshness of a user's last login, as shown in the directory."""

    ACTIVE = "active"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    NEVER = "never"


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class UserAccount:
    """A user in the directory with the roles currently held.

    Attributes:
        id: Opaque user identifier.
        email: Email address (unique).
        full_name: Display name chosen by the user, if any.
        roles: Set of roles currently held.
        is_blocked: Whether the user is blocked from the system.
        blocked_at: When the user was blocked.
        block_reason: Optional reason given by the super admin.
        last_login_at: Timestamp of the last successful login.
        created_at: Signup timestamp.
    """

    id: str
    email: str
    full_name: str | None = None
    roles: frozenset[Role] = field(default_factory=frozenset)
    is_blocked: bool = False
    blocked_at: datetime | None = None
    block_reason: str | None = None
    last_login_at: datetime | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate user data after initialization."""
        if not self.id:
            raise ValueError("User ID is required")
        if not self.email:
            raise ValueError("Email is required")
        if not isinstance(self.roles, frozenset):
            object.__setattr__(self, "roles", frozenset(self.roles))

    @property
    def highest_role(self) -> Role:
        """Highest-ranked role held, used as the 'current role' in decisions."""
        return Role.highest(self.roles)

    @property
    def display_name(self) -> str:
        """Full name when set, email otherwise."""
        return self.full_name or self.email

    def holds(self, role: Role) -> bool:
        return role in self.roles

    def with_roles(self, roles: Iterable[Role]) -> "UserAccount":
        return replace(self, roles=frozenset(roles))

    def session_status(
        self,
        now: datetime | None = None,
        expiry_hours: int = 168,
        expiring_window_hours: int = 24,
    ) -> SessionStatus:
        """Classify the last login against the session expiry window.

        Args:
            now: Reference time (defaults to current UTC time).
            expiry_hours: Hours after login at which a session is expired.
            expiring_window_hours: Hours before expiry flagged as expiring.
        """
        last_login = ensure_utc(self.last_login_at)
        if last_login is None:
            return SessionStatus.NEVER
        now = ensure_utc(now) or datetime.now(timezone.utc)
        elapsed = now - last_login
        if elapsed >= timedelta(hours=expiry_hours):
            return SessionStatus.EXPIRED
        if elapsed >= timedelta(hours=expiry_hours - expiring_window_hours):
            return SessionStatus.EXPIRING
        return SessionStatus.ACTIVE
