"""Role change email notifications.

Notifications are fire-and-forget: ``dispatch`` schedules delivery on the
running loop and returns at once. Delivery failures are logged and never
reach the caller, whose role change has already committed.
"""

import asyncio

from engagetrack.core.config import Settings, get_settings
from engagetrack.core.logging import get_logger
from engagetrack.domain.entities.audit_entry import AuditAction
from engagetrack.domain.entities.role import Role
from engagetrack.domain.services.role_management_service import NotificationDispatcher
from engagetrack.domain.services.user_directory import UserDirectory
from engagetrack.infrastructure.services.email.email_provider import EmailProvider
from engagetrack.infrastructure.services.email.template_renderer import (
    TemplateRenderer,
    get_template_renderer,
)
from engagetrack.infrastructure.services.email.templates import (
    ROLE_CHANGE_HTML,
    ROLE_CHANGE_SUBJECT,
    ROLE_CHANGE_TEXT,
)

logger = get_logger(__name__)

# action -> (verb used in the subject, label, color)
_ACTION_PRESENTATION: dict[AuditAction, tuple[str, str, str]] = {
    AuditAction.ADD: ("granted", "✓ Role Granted", "#10b981"),
    AuditAction.TRANSFER: ("granted", "✓ Role Granted", "#10b981"),
    AuditAction.REMOVE: ("removed", "✗ Role Removed", "#ef4444"),
    AuditAction.CHANGE: ("changed", "Role Changed", "#6366f1"),
}


class RoleChangeNotifier(NotificationDispatcher):
    """Emails users when their roles change."""

    def __init__(
        self,
        directory: UserDirectory,
        provider: EmailProvider,
        settings: Settings | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            directory: Directory used to resolve the recipient's email and name.
            provider: Email provider used for delivery.
            settings: Application settings (sender identity, app name).
            renderer: Template renderer, defaults to the shared instance.
        """
        self.directory = directory
        self.provider = provider
        self.settings = settings or get_settings()
        self.renderer = renderer or get_template_renderer()
        self._pending: set[asyncio.Task] = set()

    def dispatch(
        self,
        target_id: str,
        action: AuditAction,
        role: Role,
        actor_display_name: str,
    ) -> None:
        task = asyncio.create_task(self.notify(target_id, action, role, actor_display_name))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every scheduled notification to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def render(
        self,
        user_name: str,
        action: AuditAction,
        role: Role,
        actor_display_name: str | None,
    ) -> tuple[str, str, str]:
        """Render (subject, html, text) for one notification."""
        action_text, action_label, action_color = _ACTION_PRESENTATION.get(
            action, _ACTION_PRESENTATION[AuditAction.CHANGE]
        )
        variables = {
            "user_name": user_name,
            "role_display_name": role.display_name,
            "action_text": action_text,
            "action_label": action_label,
            "action_color": action_color,
            "changed_by": actor_display_name or "",
            "app_name": self.settings.email_from_name,
        }
        subject = self.renderer.render(ROLE_CHANGE_SUBJECT, variables, html=False)
        html_body = self.renderer.render(ROLE_CHANGE_HTML, variables)
        text_body = self.renderer.render(ROLE_CHANGE_TEXT, variables, html=False)
        return subject, html_body, text_body

    async def notify(
        self,
        target_id: str,
        action: AuditAction,
        role: Role,
        actor_display_name: str | None = None,
    ) -> bool:
        """Send one notification now.

        Returns:
            True if the provider accepted the email, False otherwise.
        """
        try:
            user = await self.directory.get_user(target_id)
            if user is None:
                logger.warning("Role change notification skipped, user not found", user_id=target_id)
                return False

            subject, html_body, text_body = self.render(
                user.display_name, action, role, actor_display_name
            )
            sent = await self.provider.send_email(
                to=user.email,
                subject=subject,
                html_body=html_body,
                text_body=text_body,
                from_email=self.settings.email_from_address,
                from_name=self.settings.email_from_name,
                reply_to=self.settings.email_reply_to,
            )
        except Exception as e:
            logger.error(
                "Role change notification failed",
                user_id=target_id,
                action=action.value,
                role=role.value,
                error=str(e),
            )
            return False

        if sent:
            logger.info(
                "Role change notification sent",
                user_id=target_id,
                action=action.value,
                role=role.value,
            )
        else:
            logger.warning(
                "Role change notification not delivered",
                user_id=target_id,
                action=action.value,
                role=role.value,
            )
        return sent
