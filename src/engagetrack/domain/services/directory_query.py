"""Directory listing for the role management console.

Filtering and sorting run over the full user list in memory; the directory
is small and the console shows every user at once.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from engagetrack.domain.entities.role import Role
from engagetrack.domain.entities.user import SessionStatus, UserAccount, ensure_utc

NO_ROLES = "no-roles"
INACTIVE = "inactive"


class DirectorySort(str, Enum):
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    EMAIL_ASC = "email-asc"
    EMAIL_DESC = "email-desc"
    ROLES_ASC = "roles-asc"
    ROLES_DESC = "roles-desc"
    LOGIN_RECENT = "login-recent"
    LOGIN_OLDEST = "login-oldest"


@dataclass(frozen=True)
class DirectoryQuery:
    """Listing criteria.

    Attributes:
        search: Case-insensitive substring matched against email and name.
        role: A role value, ``"no-roles"`` for users without roles, or None.
        session: A ``SessionStatus`` value, ``"inactive"`` (expired or never),
            or None.
        sort: Sort order, None keeps directory order.
    """

    search: str | None = None
    role: str | None = None
    session: str | None = None
    sort: DirectorySort | None = None

    def __post_init__(self) -> None:
        """Validate filter values after initialization."""
        if self.role is not None and self.role != NO_ROLES:
            Role.parse(self.role)
        if self.session is not None and self.session != INACTIVE:
            try:
                SessionStatus(self.session)
            except ValueError as e:
                raise ValueError(f"Unknown session filter '{self.session}'") from e


def is_visible_to(viewer_role: Role, user: UserAccount) -> bool:
    """ADMIN viewers never see SUPER_ADMIN users."""
    if viewer_role is Role.SUPER_ADMIN:
        return True
    return not user.holds(Role.SUPER_ADMIN)


class DirectoryQueryService:
    """Applies visibility, filters and sort order to a user list."""

    def __init__(self, expiry_hours: int = 168, expiring_window_hours: int = 24) -> None:
        self.expiry_hours = expiry_hours
        self.expiring_window_hours = expiring_window_hours

    def session_status(self, user: UserAccount, now: datetime | None = None) -> SessionStatus:
        return user.session_status(now, self.expiry_hours, self.expiring_window_hours)

    def apply(
        self,
        users: list[UserAccount],
        viewer_role: Role,
        query: DirectoryQuery,
        now: datetime | None = None,
    ) -> list[UserAccount]:
        """Return the users the viewer may see that match the query, sorted."""
        now = now or datetime.now(timezone.utc)
        matched = [
            user
            for user in users
            if is_visible_to(viewer_role, user)
            and self._matches_search(user, query.search)
            and self._matches_role(user, query.role)
            and self._matches_session(user, query.session, now)
        ]
        return self._sort(matched, query.sort)

    @staticmethod
    def _matches_search(user: UserAccount, search: str | None) -> bool:
        if not search:
            return True
        needle = search.lower()
        return needle in user.email.lower() or needle in (user.full_name or "").lower()

    @staticmethod
    def _matches_role(user: UserAccount, role: str | None) -> bool:
        if role is None:
            return True
        if role == NO_ROLES:
            return not user.roles
        return user.holds(Role.parse(role))

    def _matches_session(self, user: UserAccount, session: str | None, now: datetime) -> bool:
        if session is None:
            return True
        status = self.session_status(user, now)
        if session == INACTIVE:
            return status in (SessionStatus.EXPIRED, SessionStatus.NEVER)
        return status.value == session

    @staticmethod
    def _sort(users: list[UserAccount], sort: DirectorySort | None) -> list[UserAccount]:
        if sort is None:
            return users
        if sort in (DirectorySort.NAME_ASC, DirectorySort.NAME_DESC):
            return sorted(
                users,
                key=lambda u: (u.full_name or "").lower(),
                reverse=sort is DirectorySort.NAME_DESC,
            )
        if sort in (DirectorySort.EMAIL_ASC, DirectorySort.EMAIL_DESC):
            return sorted(
                users,
                key=lambda u: u.email.lower(),
                reverse=sort is DirectorySort.EMAIL_DESC,
            )
        if sort in (DirectorySort.ROLES_ASC, DirectorySort.ROLES_DESC):
            return sorted(
                users,
                key=lambda u: len(u.roles),
                reverse=sort is DirectorySort.ROLES_DESC,
            )

        # Users who never logged in sort last for "recent" and first for "oldest"
        logged_in = [u for u in users if u.last_login_at is not None]
        never = [u for u in users if u.last_login_at is None]
        if sort is DirectorySort.LOGIN_RECENT:
            return sorted(logged_in, key=_login_key, reverse=True) + never
        return never + sorted(logged_in, key=_login_key)


def _login_key(user: UserAccount) -> datetime:
    return ensure_utc(user.last_login_at)
