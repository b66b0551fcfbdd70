"""Role management service.

Runs every role mutation as one atomic directory unit: the actor and target
are read, the policy engine decides, and the write happens without another
mutation interleaving. After commit the change is recorded in the audit trail
and the affected user is notified. Neither side effect can undo the change.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from engagetrack.core.config import get_settings
from engagetrack.core.logging import get_logger
from engagetrack.domain.entities.audit_entry import AuditAction, AuditEntry
from engagetrack.domain.entities.role import Role, downgrade_target
from engagetrack.domain.entities.role_change import (
    BlockStatusOutcome,
    BulkItemResult,
    BulkItemStatus,
    BulkRoleChangeResult,
    RoleChangeOutcome,
    RoleOptions,
    TransferOutcome,
)
from engagetrack.domain.entities.user import UserAccount
from engagetrack.domain.exceptions import (
    AlreadyInStateError,
    InvariantViolationError,
    PermissionDeniedError,
    RoleManagementError,
    TransientBackendError,
    UserNotFoundError,
)
from engagetrack.domain.services.directory_query import is_visible_to
from engagetrack.domain.services.role_audit_service import AuditRecorder
from engagetrack.domain.services.role_policy import (
    LAST_SUPER_ADMIN,
    RolePolicyEngine,
    role_policy,
)
from engagetrack.domain.services.user_directory import DirectoryTransaction, UserDirectory

logger = get_logger(__name__)

T = TypeVar("T")

ALREADY_HAS_ROLE = "User already has this role"
DOES_NOT_HAVE_ROLE = "User does not have this role"
BASE_ROLE_NOT_REMOVABLE = "PARTICIPANT is the base role and cannot be removed"
ALREADY_BLOCKED = "User is already blocked"
NOT_BLOCKED = "User is not blocked"
ALREADY_SUPER_ADMIN = "User already holds SUPER_ADMIN"
TIMED_OUT = "Role change timed out; no change was made"
BACKEND_FAILURE = "Role change could not be saved; no change was made"


class NotificationDispatcher(ABC):
    """Schedules role change notifications without waiting for delivery."""

    @abstractmethod
    def dispatch(
        self,
        target_id: str,
        action: AuditAction,
        role: Role,
        actor_display_name: str,
    ) -> None:
        """Schedule a notification and return immediately."""


class RoleManagementService:
    """Applies role changes, block status and ownership transfers."""

    def __init__(
        self,
        directory: UserDirectory,
        audit_recorder: AuditRecorder | None = None,
        notifier: NotificationDispatcher | None = None,
        policy: RolePolicyEngine | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            directory: User directory providing the atomic unit.
            audit_recorder: Sink for audit entries (None disables auditing).
            notifier: Role change notifier (None disables notifications).
            policy: Policy engine, defaults to the shared instance.
            timeout_seconds: Limit for one atomic unit, defaults to settings.
        """
        self.directory = directory
        self.audit_recorder = audit_recorder
        self.notifier = notifier
        self.policy = policy or role_policy
        if timeout_seconds is None:
            timeout_seconds = get_settings().role_change_timeout_seconds
        self.timeout_seconds = timeout_seconds

    # Single-target role mutations

    async def change_role(
        self, actor_id: str, target_id: str, new_role: Role | str
    ) -> RoleChangeOutcome:
        """Replace the target's role set with exactly ``new_role``."""
        return await self._mutate_roles(actor_id, target_id, Role.parse(new_role), AuditAction.CHANGE)

    async def add_role(self, actor_id: str, target_id: str, role: Role | str) -> RoleChangeOutcome:
        """Add ``role`` to the target's role set."""
        return await self._mutate_roles(actor_id, target_id, Role.parse(role), AuditAction.ADD)

    async def remove_role(
        self, actor_id: str, target_id: str, role: Role | str
    ) -> RoleChangeOutcome:
        """Remove ``role`` from the target, falling back to its downgrade target."""
        return await self._mutate_roles(actor_id, target_id, Role.parse(role), AuditAction.REMOVE)

    async def _mutate_roles(
        self,
        actor_id: str,
        target_id: str,
        role: Role,
        action: AuditAction,
    ) -> RoleChangeOutcome:
        is_self_change = actor_id == target_id

        async def unit() -> tuple[UserAccount, UserAccount, str | None]:
            async with self.directory.atomic(
                [actor_id, target_id], guard_super_admins=is_self_change
            ) as tx:
                actor = await self._load_actor(tx, actor_id)
                target = (
                    actor
                    if is_self_change
                    else await self._load_target(tx, target_id, actor.highest_role)
                )

                if action is AuditAction.REMOVE:
                    decision = self.policy.evaluate_removal(
                        actor.highest_role, target.roles, role, is_self_change
                    )
                else:
                    decision = self.policy.evaluate(
                        actor.highest_role, target.roles, role, is_self_change
                    )
                if decision.denied:
                    raise PermissionDeniedError(decision.reason or "Role change not permitted")

                new_roles = self._planned_roles(action, target.roles, role)
                if new_roles == target.roles:
                    raise AlreadyInStateError(self._already_message(action, role))

                updated = await tx.replace_roles(target_id, new_roles)
                if target.holds(Role.SUPER_ADMIN) and not updated.holds(Role.SUPER_ADMIN):
                    await self._ensure_super_admin_remains(tx)
                # Only warn when the actor's highest role actually drops.
                warning = decision.warning
                if updated.highest_role.level >= actor.highest_role.level:
                    warning = None
                return actor, updated, warning

        try:
            actor, updated, warning = await self._run_atomic(unit)
        except AlreadyInStateError as e:
            logger.info(
                "role_change.skipped",
                action=action.value,
                actor_id=actor_id,
                target_id=target_id,
                role=role.value,
                reason=e.message,
            )
            raise
        except RoleManagementError as e:
            logger.info(
                "role_change.rejected",
                action=action.value,
                actor_id=actor_id,
                target_id=target_id,
                role=role.value,
                error=e.kind.value,
                reason=e.message,
            )
            raise

        logger.info(
            "role_change.applied",
            action=action.value,
            actor_id=actor_id,
            target_id=target_id,
            role=role.value,
            resulting_role=updated.highest_role.value,
            warning=warning,
        )

        await self._record_audit([AuditEntry(actor_id, target_id, action, role)])
        self._notify(target_id, action, role, actor.display_name)

        return RoleChangeOutcome(
            user_id=target_id,
            action=action,
            role=role,
            resulting_role=updated.highest_role,
            roles=updated.roles,
            warning=warning,
            message=self._applied_message(action, role, updated),
        )

    @staticmethod
    def _planned_roles(action: AuditAction, current: frozenset[Role], role: Role) -> frozenset[Role]:
        if action is AuditAction.CHANGE:
            return frozenset({role})
        if action is AuditAction.ADD:
            return current | {role}
        # Removing the floor role, or a role not held, changes nothing
        fallback = downgrade_target(role)
        if role not in current or fallback is role:
            return current
        return (current - {role}) | {fallback}

    @staticmethod
    def _already_message(action: AuditAction, role: Role) -> str:
        if action is not AuditAction.REMOVE:
            return ALREADY_HAS_ROLE
        if downgrade_target(role) is role:
            return BASE_ROLE_NOT_REMOVABLE
        return DOES_NOT_HAVE_ROLE

    @staticmethod
    def _applied_message(action: AuditAction, role: Role, updated: UserAccount) -> str:
        if action is AuditAction.ADD:
            return f"Added {role.label} role to {updated.display_name}"
        if action is AuditAction.REMOVE:
            return (
                f"Removed {role.label} role - user now has "
                f"{downgrade_target(role).label} role"
            )
        return f"Changed {updated.display_name}'s role to {role.label}"

    # Block status

    async def set_block_status(
        self,
        actor_id: str,
        target_id: str,
        blocked: bool,
        reason: str | None = None,
    ) -> BlockStatusOutcome:
        """Block or unblock a user. Role assignments are never touched.

        Raises:
            PermissionDeniedError: If the actor is not SUPER_ADMIN.
            AlreadyInStateError: If the user already has the requested status.
        """
        reason = (reason or "").strip() or None

        async def unit() -> UserAccount:
            async with self.directory.atomic([actor_id, target_id]) as tx:
                actor = await self._load_actor(tx, actor_id)
                decision = self.policy.evaluate_block(actor.highest_role)
                if decision.denied:
                    raise PermissionDeniedError(decision.reason or "Block not permitted")

                target = await self._load_target(tx, target_id)
                if target.is_blocked == blocked:
                    raise AlreadyInStateError(ALREADY_BLOCKED if blocked else NOT_BLOCKED)

                if blocked:
                    return await tx.set_block_status(
                        target_id, True, reason, datetime.now(timezone.utc)
                    )
                return await tx.set_block_status(target_id, False, None, None)

        try:
            updated = await self._run_atomic(unit)
        except RoleManagementError as e:
            logger.info(
                "role_block.rejected",
                actor_id=actor_id,
                target_id=target_id,
                blocked=blocked,
                error=e.kind.value,
                reason=e.message,
            )
            raise

        logger.info(
            "role_block.applied",
            actor_id=actor_id,
            target_id=target_id,
            blocked=blocked,
            block_reason=reason if blocked else None,
        )

        action = AuditAction.BLOCK if blocked else AuditAction.UNBLOCK
        await self._record_audit([AuditEntry(actor_id, target_id, action, updated.highest_role)])

        return BlockStatusOutcome(
            user_id=target_id,
            blocked=blocked,
            message="User blocked successfully" if blocked else "User unblocked successfully",
        )

    # Ownership transfer

    async def transfer_super_admin(
        self,
        current_id: str,
        new_id: str,
        downgrade_current: bool = True,
    ) -> TransferOutcome:
        """Grant SUPER_ADMIN to ``new_id`` and optionally downgrade ``current_id``.

        The grant is written and counted before the downgrade, so the number
        of super admins never drops to zero at any step.

        Raises:
            PermissionDeniedError: If the current user is not SUPER_ADMIN or the
                new holder is not ADMIN or SUPER_ADMIN.
            AlreadyInStateError: If nothing would change.
            InvariantViolationError: If the transfer would leave no SUPER_ADMIN.
        """
        if current_id == new_id:
            raise AlreadyInStateError(ALREADY_SUPER_ADMIN)

        async def unit() -> tuple[UserAccount, UserAccount, bool]:
            async with self.directory.atomic(
                [current_id, new_id], guard_super_admins=True
            ) as tx:
                current = await self._load_actor(tx, current_id)
                new_holder = await self._load_target(tx, new_id)

                decision = self.policy.evaluate_transfer(current.highest_role, new_holder.roles)
                if decision.denied:
                    raise PermissionDeniedError(decision.reason or "Transfer not permitted")

                granted = not new_holder.holds(Role.SUPER_ADMIN)
                if not granted and not downgrade_current:
                    raise AlreadyInStateError(ALREADY_SUPER_ADMIN)

                if granted:
                    new_holder = await tx.replace_roles(
                        new_id, (new_holder.roles - {Role.ADMIN}) | {Role.SUPER_ADMIN}
                    )

                if downgrade_current:
                    # Both holders are counted here; the downgrade removes one
                    if await tx.count_super_admins() < 2:
                        raise InvariantViolationError(LAST_SUPER_ADMIN)
                    current = await tx.replace_roles(
                        current_id, (current.roles - {Role.SUPER_ADMIN}) | {Role.ADMIN}
                    )
                    await self._ensure_super_admin_remains(tx)
                    refreshed = await tx.get_user(new_id)
                    if refreshed is None or not refreshed.holds(Role.SUPER_ADMIN):
                        raise InvariantViolationError(LAST_SUPER_ADMIN)

                return current, new_holder, granted

        try:
            current, new_holder, granted = await self._run_atomic(unit)
        except RoleManagementError as e:
            logger.info(
                "role_transfer.rejected",
                current_id=current_id,
                new_id=new_id,
                downgrade_current=downgrade_current,
                error=e.kind.value,
                reason=e.message,
            )
            raise

        logger.info(
            "role_transfer.applied",
            current_id=current_id,
            new_id=new_id,
            granted=granted,
            downgraded=downgrade_current,
        )

        entries = []
        if granted:
            entries.append(AuditEntry(current_id, new_id, AuditAction.TRANSFER, Role.SUPER_ADMIN))
        if downgrade_current:
            entries.append(AuditEntry(current_id, current_id, AuditAction.TRANSFER, Role.ADMIN))
        await self._record_audit(entries)

        if granted:
            self._notify(new_id, AuditAction.TRANSFER, Role.SUPER_ADMIN, current.display_name)
        if downgrade_current:
            self._notify(current_id, AuditAction.CHANGE, Role.ADMIN, current.display_name)

        if downgrade_current:
            message = (
                f"Ownership transferred to {new_holder.display_name}. "
                "Your role is now ADMIN."
            )
        else:
            message = f"SUPER_ADMIN granted to {new_holder.display_name}"

        return TransferOutcome(
            previous_super_admin_id=current_id,
            new_super_admin_id=new_id,
            downgraded=downgrade_current,
            message=message,
        )

    # Bulk operations

    async def bulk_add_role(
        self, actor_id: str, target_ids: Iterable[str], role: Role | str
    ) -> BulkRoleChangeResult:
        return await self._bulk(AuditAction.ADD, actor_id, target_ids, role, self.add_role)

    async def bulk_remove_role(
        self, actor_id: str, target_ids: Iterable[str], role: Role | str
    ) -> BulkRoleChangeResult:
        return await self._bulk(AuditAction.REMOVE, actor_id, target_ids, role, self.remove_role)

    async def bulk_change_role(
        self, actor_id: str, target_ids: Iterable[str], role: Role | str
    ) -> BulkRoleChangeResult:
        return await self._bulk(AuditAction.CHANGE, actor_id, target_ids, role, self.change_role)

    async def _bulk(
        self,
        action: AuditAction,
        actor_id: str,
        target_ids: Iterable[str],
        role: Role | str,
        apply: Callable[[str, str, Role], Awaitable[RoleChangeOutcome]],
    ) -> BulkRoleChangeResult:
        """Apply one operation to each target independently, in order.

        Duplicate ids are processed once. No failure aborts the batch.
        """
        role = Role.parse(role)
        result = BulkRoleChangeResult(action=action, role=role)

        for target_id in dict.fromkeys(target_ids):
            try:
                outcome = await apply(actor_id, target_id, role)
            except AlreadyInStateError as e:
                result.results.append(
                    BulkItemResult(target_id, BulkItemStatus.SKIPPED, e.message)
                )
            except RoleManagementError as e:
                result.results.append(
                    BulkItemResult(target_id, BulkItemStatus.FAILED, e.message, e.kind.value)
                )
            else:
                result.results.append(
                    BulkItemResult(target_id, BulkItemStatus.SUCCESS, outcome.message)
                )

        logger.info(
            "role_bulk.completed",
            action=action.value,
            actor_id=actor_id,
            role=role.value,
            **result.counts(),
        )
        return result

    # Role pickers

    async def role_options(self, actor_id: str, target_id: str) -> RoleOptions:
        """Roles the actor may add to and remove from the target."""
        actor = await self.directory.get_user(actor_id)
        if actor is None:
            raise UserNotFoundError(actor_id, "Acting user not found")
        self._check_console_access(actor)

        target = await self.directory.get_user(target_id)
        if target is None or not is_visible_to(actor.highest_role, target):
            raise UserNotFoundError(target_id)

        is_self_change = actor_id == target_id
        return RoleOptions(
            assignable=self.policy.assignable_roles(
                actor.highest_role, target.roles, is_self_change
            ),
            removable=self.policy.removable_roles(
                actor.highest_role, target.roles, is_self_change
            ),
        )

    async def assignable_roles(self, actor_id: str, target_id: str) -> list[Role]:
        return (await self.role_options(actor_id, target_id)).assignable

    async def removable_roles(self, actor_id: str, target_id: str) -> list[Role]:
        return (await self.role_options(actor_id, target_id)).removable

    # Internals

    async def _run_atomic(self, unit: Callable[[], Awaitable[T]]) -> T:
        """Run one atomic unit under the configured timeout, failing closed."""
        try:
            return await asyncio.wait_for(unit(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error("role_change.timeout", timeout_seconds=self.timeout_seconds)
            raise TransientBackendError(TIMED_OUT) from e
        except SQLAlchemyError as e:
            logger.error("role_change.backend_failure", error=str(e))
            raise TransientBackendError(BACKEND_FAILURE) from e

    async def _load_actor(self, tx: DirectoryTransaction, actor_id: str) -> UserAccount:
        actor = await tx.get_user(actor_id)
        if actor is None:
            raise UserNotFoundError(actor_id, "Acting user not found")
        self._check_console_access(actor)
        return actor

    @staticmethod
    async def _load_target(
        tx: DirectoryTransaction, target_id: str, viewer_role: Role = Role.SUPER_ADMIN
    ) -> UserAccount:
        """Load a target the viewer may see; hidden users read as missing."""
        target = await tx.get_user(target_id)
        if target is None or not is_visible_to(viewer_role, target):
            raise UserNotFoundError(target_id)
        return target

    def _check_console_access(self, actor: UserAccount) -> None:
        decision = self.policy.evaluate_console_access(actor.highest_role, actor.is_blocked)
        if decision.denied:
            raise PermissionDeniedError(decision.reason or "Role management not permitted")

    @staticmethod
    async def _ensure_super_admin_remains(tx: DirectoryTransaction) -> None:
        if await tx.count_super_admins() < 1:
            raise InvariantViolationError(LAST_SUPER_ADMIN)

    async def _record_audit(self, entries: list[AuditEntry]) -> None:
        """Write audit entries one by one; failures are logged, never raised."""
        if self.audit_recorder is None:
            return
        for entry in entries:
            try:
                await self.audit_recorder.record(entry)
            except Exception as e:
                logger.error(
                    "role_audit.write_failed",
                    action=entry.action.value,
                    actor_id=entry.actor_id,
                    target_id=entry.target_id,
                    role=entry.role.value,
                    error=str(e),
                )

    def _notify(
        self,
        target_id: str,
        action: AuditAction,
        role: Role,
        actor_display_name: str,
    ) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.dispatch(target_id, action, role, actor_display_name)
        except Exception as e:
            logger.warning(
                "role_notification.dispatch_failed",
                target_id=target_id,
                action=action.value,
                error=str(e),
            )
