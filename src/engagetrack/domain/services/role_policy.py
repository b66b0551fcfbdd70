"""Role change authorization policy.

The single place where role assignment rules live. Every caller (single
change, add, remove, bulk, console role pickers) goes through this engine.

Rules are evaluated in order and the first match wins:

1. A target whose highest role is ADMIN or SUPER_ADMIN cannot be moved to a
   different role.
2. Only a SUPER_ADMIN may grant SUPER_ADMIN.
3. An ADMIN actor may only assign PARTICIPANT, VIEWER or HOST, and may not
   touch ADMIN or SUPER_ADMIN accounts.
4. Only a SUPER_ADMIN may grant ADMIN.
5. A SUPER_ADMIN target may not be moved off SUPER_ADMIN by a plain role
   change (ownership transfer is the dedicated path).
6. Ownership transfer is evaluated separately, see ``evaluate_transfer``.
7. Downgrading one's own role is allowed with a warning.
8. Anything else is allowed.

Rules 1, 3b and 5 protect *other* users' elevated roles. A user changing
their own role is not subject to them; the at-least-one-SUPER_ADMIN invariant
is still enforced by the directory when the change is written.

The engine is pure: it never reads or writes the directory.
"""

from typing import Iterable

from engagetrack.domain.entities.role import (
    ADMIN_ASSIGNABLE_ROLES,
    CONSOLE_ROLES,
    PROTECTED_ROLES,
    Role,
    downgrade_target,
)
from engagetrack.domain.entities.role_change import PolicyDecision, RoleChangeRequest

PROTECTED_ROLE_IMMUTABLE = "Admin and SUPER_ADMIN roles cannot be downgraded or removed"
ONLY_SUPER_ADMIN_GRANTS_SUPER_ADMIN = "Only SUPER_ADMIN can assign SUPER_ADMIN role"
ADMIN_ASSIGNABLE_ONLY = (
    "ADMIN can only assign PARTICIPANT, VIEWER, or HOST roles "
    "(only SUPER_ADMIN can assign ADMIN)"
)
ADMIN_CANNOT_MODIFY_PROTECTED = "ADMIN cannot change ADMIN or SUPER_ADMIN roles"
ONLY_SUPER_ADMIN_GRANTS_ADMIN = "Only SUPER_ADMIN can assign ADMIN role"
LAST_SUPER_ADMIN = (
    "Cannot remove the last SUPER_ADMIN. Assign SUPER_ADMIN to another user first."
)
ONLY_SUPER_ADMIN_BLOCKS = "Only SUPER_ADMIN can block or unblock users"
ONLY_SUPER_ADMIN_TRANSFERS = "Only SUPER_ADMIN can transfer ownership"
TRANSFER_REQUIRES_ADMIN = "New SUPER_ADMIN must currently hold ADMIN or SUPER_ADMIN role"
SELF_DOWNGRADE_WARNING = "downgrading own role"
CONSOLE_ACCESS_REQUIRED = "Only ADMIN or SUPER_ADMIN can manage user roles"
BLOCKED_ACTOR = "Blocked users cannot manage user roles"


class RolePolicyEngine:
    """Decides whether a requested role mutation is permitted."""

    def evaluate_console_access(self, actor_role: Role, actor_blocked: bool = False) -> PolicyDecision:
        """Gate for opening role management at all, checked before any rule."""
        if actor_blocked:
            return PolicyDecision.deny(BLOCKED_ACTOR)
        if actor_role not in CONSOLE_ROLES:
            return PolicyDecision.deny(CONSOLE_ACCESS_REQUIRED)
        return PolicyDecision.allow(None)

    def evaluate(
        self,
        actor_role: Role,
        target_roles: Iterable[Role],
        requested_role: Role,
        is_self_change: bool = False,
    ) -> PolicyDecision:
        """Evaluate a role change.

        Args:
            actor_role: Highest role of the user initiating the change.
            target_roles: Roles the target currently holds.
            requested_role: Role requested for the target.
            is_self_change: Whether actor and target are the same user.

        Returns:
            PolicyDecision: Allowed with the resulting role, or denied with a reason.
        """
        target_role = Role.highest(target_roles)
        protects_target = not is_self_change

        # 1. Elevated roles are immutable downward
        if (
            protects_target
            and target_role in PROTECTED_ROLES
            and requested_role is not target_role
        ):
            return PolicyDecision.deny(PROTECTED_ROLE_IMMUTABLE)

        # 2. SUPER_ADMIN is granted by SUPER_ADMIN only
        if requested_role is Role.SUPER_ADMIN and actor_role is not Role.SUPER_ADMIN:
            return PolicyDecision.deny(ONLY_SUPER_ADMIN_GRANTS_SUPER_ADMIN)

        # 3. ADMIN actors
        if actor_role is Role.ADMIN:
            if requested_role not in ADMIN_ASSIGNABLE_ROLES:
                return PolicyDecision.deny(ADMIN_ASSIGNABLE_ONLY)
            if protects_target and target_role in PROTECTED_ROLES:
                return PolicyDecision.deny(ADMIN_CANNOT_MODIFY_PROTECTED)

        # 4. ADMIN is granted by SUPER_ADMIN only
        if requested_role is Role.ADMIN and actor_role is not Role.SUPER_ADMIN:
            return PolicyDecision.deny(ONLY_SUPER_ADMIN_GRANTS_ADMIN)

        # 5. Plain role changes never strip SUPER_ADMIN
        if (
            protects_target
            and target_role is Role.SUPER_ADMIN
            and requested_role is not Role.SUPER_ADMIN
        ):
            return PolicyDecision.deny(LAST_SUPER_ADMIN)

        # 7. Self downgrade
        if is_self_change and requested_role.level < actor_role.level:
            return PolicyDecision.allow(requested_role, warning=SELF_DOWNGRADE_WARNING)

        # 8.
        return PolicyDecision.allow(requested_role)

    def evaluate_request(self, request: RoleChangeRequest) -> PolicyDecision:
        """Evaluate a ``RoleChangeRequest`` value object."""
        return self.evaluate(
            actor_role=request.actor_role,
            target_roles=request.target_roles,
            requested_role=request.requested_role,
            is_self_change=request.is_self_change,
        )

    def evaluate_removal(
        self,
        actor_role: Role,
        target_roles: Iterable[Role],
        removed_role: Role,
        is_self_change: bool = False,
    ) -> PolicyDecision:
        """Evaluate removing a role, modeled as a change to its downgrade target."""
        return self.evaluate(
            actor_role=actor_role,
            target_roles=target_roles,
            requested_role=downgrade_target(removed_role),
            is_self_change=is_self_change,
        )

    def evaluate_block(self, actor_role: Role) -> PolicyDecision:
        """Block and unblock are gated solely on the actor being SUPER_ADMIN."""
        if actor_role is not Role.SUPER_ADMIN:
            return PolicyDecision.deny(ONLY_SUPER_ADMIN_BLOCKS)
        return PolicyDecision.allow(None)

    def evaluate_transfer(
        self,
        actor_role: Role,
        new_holder_roles: Iterable[Role],
    ) -> PolicyDecision:
        """Check the preconditions of a SUPER_ADMIN ownership transfer (rule 6).

        The super admin count is verified by the directory during the write.
        """
        if actor_role is not Role.SUPER_ADMIN:
            return PolicyDecision.deny(ONLY_SUPER_ADMIN_TRANSFERS)
        if Role.highest(new_holder_roles) not in PROTECTED_ROLES:
            return PolicyDecision.deny(TRANSFER_REQUIRES_ADMIN)
        return PolicyDecision.allow(Role.SUPER_ADMIN)

    def assignable_roles(
        self,
        actor_role: Role,
        target_roles: Iterable[Role],
        is_self_change: bool = False,
    ) -> list[Role]:
        """Roles the actor may add to the target, lowest rank first."""
        held = frozenset(target_roles)
        return [
            role
            for role in Role
            if role not in held
            and self.evaluate(actor_role, held, role, is_self_change).allowed
        ]

    def removable_roles(
        self,
        actor_role: Role,
        target_roles: Iterable[Role],
        is_self_change: bool = False,
    ) -> list[Role]:
        """Roles held by the target that the actor may remove.

        PARTICIPANT is the floor role and is never offered for removal.
        """
        held = frozenset(target_roles)
        return [
            role
            for role in Role
            if role in held
            and downgrade_target(role) is not role
            and self.evaluate_removal(actor_role, held, role, is_self_change).allowed
        ]


# Default engine instance
role_policy = RolePolicyEngine()
