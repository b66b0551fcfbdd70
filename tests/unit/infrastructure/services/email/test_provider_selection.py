"""Unit tests for email provider selection from settings."""

from engagetrack.core.config import Settings
from engagetrack.infrastructure.services.email import (
    ConsoleProvider,
    ResendProvider,
    SMTPProvider,
    build_email_provider,
)


def test_console_is_the_default():
    assert isinstance(build_email_provider(Settings(email_provider="console")), ConsoleProvider)


def test_resend_with_api_key():
    provider = build_email_provider(
        Settings(email_provider="resend", resend_api_key="re_test_key", email_reply_to="r@example.com")
    )
    assert isinstance(provider, ResendProvider)
    assert provider.settings.reply_to == "r@example.com"


def test_resend_without_api_key_falls_back_to_console():
    provider = build_email_provider(Settings(email_provider="resend", resend_api_key=None))
    assert isinstance(provider, ConsoleProvider)


def test_smtp_with_host():
    provider = build_email_provider(
        Settings(email_provider="smtp", smtp_host="mail.example.com", smtp_port=2525)
    )
    assert isinstance(provider, SMTPProvider)
    assert provider.settings.host == "mail.example.com"
    assert provider.settings.port == 2525


def test_smtp_without_host_falls_back_to_console():
    provider = build_email_provider(Settings(email_provider="smtp", smtp_host=None))
    assert isinstance(provider, ConsoleProvider)
