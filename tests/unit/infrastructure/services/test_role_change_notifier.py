"""Unit tests for role change email notifications."""

import asyncio

import pytest

from engagetrack.core.config import Settings
from engagetrack.domain.entities.audit_entry import AuditAction
from engagetrack.domain.entities.role import Role
from engagetrack.infrastructure.services.email.console_provider import ConsoleProvider
from engagetrack.infrastructure.services.email.email_provider import EmailProvider
from engagetrack.infrastructure.services.notification_service import RoleChangeNotifier


class FailingProvider(EmailProvider):
    def __init__(self) -> None:
        self.attempts = 0

    async def send_email(self, to, subject, html_body, text_body, from_email, from_name, reply_to=None):
        self.attempts += 1
        raise ConnectionError("mail server unavailable")


class SlowProvider(ConsoleProvider):
    async def send_email(self, *args, **kwargs):
        await asyncio.sleep(0.02)
        return await super().send_email(*args, **kwargs)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        email_from_address="roles@example.com",
        email_from_name="Engagement Tracker",
        email_reply_to="support@example.com",
    )


@pytest.fixture
def provider() -> ConsoleProvider:
    return ConsoleProvider()


@pytest.fixture
def role_notifier(directory, provider, settings) -> RoleChangeNotifier:
    return RoleChangeNotifier(directory, provider, settings=settings)


class TestRender:
    def test_grant_subject_and_body(self, role_notifier):
        subject, html_body, text_body = role_notifier.render(
            "Hank Host", AuditAction.ADD, Role.VIEWER, "Adam Admin"
        )

        assert subject == "Your Viewer role has been granted"
        assert "Hello Hank Host" in text_body
        assert "Changed by: Adam Admin" in text_body
        assert "Role Granted" in html_body

    def test_removal_presentation(self, role_notifier):
        subject, html_body, _ = role_notifier.render("Hank", AuditAction.REMOVE, Role.HOST, None)

        assert subject == "Your Host role has been removed"
        assert "#ef4444" in html_body
        assert "Changed by" not in html_body

    def test_names_are_escaped_in_html(self, role_notifier):
        _, html_body, text_body = role_notifier.render(
            "<script>x</script>", AuditAction.CHANGE, Role.HOST, "Adam"
        )
        assert "<script>" not in html_body
        assert "<script>x</script>" in text_body


class TestNotify:
    @pytest.mark.asyncio
    async def test_sends_to_target_email(self, role_notifier, provider):
        sent = await role_notifier.notify("host", AuditAction.CHANGE, Role.VIEWER, "Olivia Owner")

        assert sent is True
        assert len(provider.sent) == 1
        email = provider.sent[0]
        assert email["to"] == "host@example.com"
        assert email["subject"] == "Your Viewer role has been changed"
        assert email["from"] == "Engagement Tracker <roles@example.com>"
        assert email["reply_to"] == "support@example.com"

    @pytest.mark.asyncio
    async def test_unnamed_user_is_greeted_by_email(self, role_notifier, provider):
        await role_notifier.notify("participant", AuditAction.ADD, Role.HOST)
        assert "Hello participant@example.com" in provider.sent[0]["text_body"]

    @pytest.mark.asyncio
    async def test_unknown_user_is_skipped(self, role_notifier, provider):
        assert await role_notifier.notify("ghost", AuditAction.ADD, Role.HOST) is False
        assert provider.sent == []

    @pytest.mark.asyncio
    async def test_provider_failure_is_swallowed(self, directory, settings):
        failing = FailingProvider()
        notifier = RoleChangeNotifier(directory, failing, settings=settings)

        assert await notifier.notify("host", AuditAction.ADD, Role.VIEWER, "Adam") is False
        assert failing.attempts == 1


class TestDispatch:
    @pytest.mark.asyncio
    async def test_dispatch_returns_before_delivery(self, directory, settings):
        provider = SlowProvider()
        notifier = RoleChangeNotifier(directory, provider, settings=settings)

        notifier.dispatch("host", AuditAction.ADD, Role.VIEWER, "Adam Admin")
        assert provider.sent == []
        assert notifier.pending == 1

        await notifier.drain()
        assert len(provider.sent) == 1
        assert notifier.pending == 0

    @pytest.mark.asyncio
    async def test_failed_delivery_does_not_reach_caller(self, directory, settings):
        notifier = RoleChangeNotifier(directory, FailingProvider(), settings=settings)

        notifier.dispatch("host", AuditAction.ADD, Role.VIEWER, "Adam Admin")
        notifier.dispatch("viewer", AuditAction.REMOVE, Role.VIEWER, "Adam Admin")
        await notifier.drain()

        assert notifier.pending == 0
