"""Role enumeration and the fixed tables derived from it.

Roles are global. A user may hold several; decisions use the highest-ranked
one. Hierarchy levels only drive the self-downgrade warning, never permissions.
"""

from enum import Enum
from typing import Iterable


class Role(str, Enum):
    """Platform roles, listed from lowest to highest rank."""

    PARTICIPANT = "participant"
    VIEWER = "viewer"
    HOST = "host"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def level(self) -> int:
        """Hierarchy level (participant/viewer = 0 ... super_admin = 3)."""
        return ROLE_HIERARCHY[self]

    @property
    def label(self) -> str:
        """Upper-case label used in user-facing messages (e.g. SUPER_ADMIN)."""
        return self.value.upper()

    @property
    def display_name(self) -> str:
        """Capitalized name used in emails (e.g. Host, Super_admin)."""
        return self.value[:1].upper() + self.value[1:]

    @classmethod
    def parse(cls, value: "str | Role") -> "Role":
        """Parse a role from its string value.

        Raises:
            ValueError: If the value is not a known role.
        """
        if isinstance(value, Role):
            return value
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as e:
            allowed = ", ".join(r.value for r in cls)
            raise ValueError(f"Unknown role '{value}'. Expected one of: {allowed}") from e

    @classmethod
    def highest(cls, roles: Iterable["Role"]) -> "Role":
        """Return the highest-ranked role held.

        A user holding no role at all is treated as a participant.
        """
        held = list(roles)
        if not held:
            return cls.PARTICIPANT
        # Declaration order breaks ties between equal levels (viewer > participant)
        order = list(cls)
        return max(held, key=lambda r: (r.level, order.index(r)))


ROLE_HIERARCHY: dict[Role, int] = {
    Role.PARTICIPANT: 0,
    Role.VIEWER: 0,
    Role.HOST: 1,
    Role.ADMIN: 2,
    Role.SUPER_ADMIN: 3,
}

# Roles an ADMIN may hand out
ADMIN_ASSIGNABLE_ROLES: frozenset[Role] = frozenset(
    {Role.PARTICIPANT, Role.VIEWER, Role.HOST}
)

# Roles that are immutable downward once granted
PROTECTED_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

# Roles allowed to open the role management console
CONSOLE_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

# Removing a role downgrades the user to this role. Not configurable per call.
REMOVAL_DOWNGRADE: dict[Role, Role] = {
    Role.PARTICIPANT: Role.PARTICIPANT,
    Role.VIEWER: Role.PARTICIPANT,
    Role.HOST: Role.PARTICIPANT,
    Role.ADMIN: Role.PARTICIPANT,
    Role.SUPER_ADMIN: Role.ADMIN,
}


def downgrade_target(role: Role) -> Role:
    """Role a user falls back to when ``role`` is removed."""
    return REMOVAL_DOWNGRADE[role]
