"""Unit tests for the SMTP email provider."""

import unittest.mock as mock

import pytest

from engagetrack.infrastructure.services.email.smtp_provider import (
    SMTPProvider,
    SMTPSettings,
)


@pytest.fixture
def smtp_settings() -> SMTPSettings:
    """Fixture for SMTP settings."""
    return SMTPSettings(
        host="smtp.example.com",
        port=587,
        username="test_user",
        password="test_password",
        from_email="noreply@example.com",
        from_name="Engagement Tracker Test",
    )


def _patched_smtp():
    """Patch ``aiosmtplib.SMTP`` and return (class mock, connection mock)."""
    patcher = mock.patch("aiosmtplib.SMTP")
    smtp_class = patcher.start()
    connection = mock.AsyncMock()
    smtp_class.return_value.__aenter__.return_value = connection
    return patcher, smtp_class, connection


@pytest.mark.asyncio
async def test_smtp_send_email_with_starttls(smtp_settings: SMTPSettings) -> None:
    patcher, smtp_class, connection = _patched_smtp()
    try:
        success = await SMTPProvider(smtp_settings).send_email(
            to="recipient@example.com",
            subject="Test Subject",
            html_body="<p>HTML Body</p>",
            text_body="Text Body",
            from_email="sender@example.com",
            from_name="Sender Name",
        )
    finally:
        patcher.stop()

    assert success is True
    smtp_class.assert_called_once_with(
        hostname="smtp.example.com",
        port=587,
        use_tls=False,
        start_tls=True,
        timeout=10,
    )
    connection.login.assert_awaited_once_with("test_user", "test_password")
    sent_message = connection.send_message.call_args[0][0]
    assert sent_message["Subject"] == "Test Subject"
    assert sent_message["To"] == "recipient@example.com"
    assert sent_message["From"] == "Sender Name <sender@example.com>"


@pytest.mark.asyncio
async def test_smtp_ssl_disables_starttls(smtp_settings: SMTPSettings) -> None:
    settings = smtp_settings.model_copy(
        update={"port": 465, "use_ssl": True, "use_tls": False, "username": None}
    )
    patcher, smtp_class, connection = _patched_smtp()
    try:
        await SMTPProvider(settings).send_email(
            to="recipient@example.com",
            subject="Subject",
            html_body="<p>x</p>",
            text_body="x",
            from_email="",
            from_name="",
        )
    finally:
        patcher.stop()

    kwargs = smtp_class.call_args.kwargs
    assert kwargs["use_tls"] is True
    assert kwargs["start_tls"] is False
    connection.login.assert_not_called()


@pytest.mark.asyncio
async def test_smtp_failure_propagates(smtp_settings: SMTPSettings) -> None:
    patcher, _, connection = _patched_smtp()
    connection.send_message.side_effect = ConnectionError("connection refused")
    try:
        with pytest.raises(ConnectionError):
            await SMTPProvider(smtp_settings).send_email(
                to="recipient@example.com",
                subject="Subject",
                html_body="<p>x</p>",
                text_body="x",
                from_email="sender@example.com",
                from_name="Sender",
            )
    finally:
        patcher.stop()


def test_message_falls_back_to_configured_sender(smtp_settings: SMTPSettings) -> None:
    provider = SMTPProvider(smtp_settings.model_copy(update={"reply_to": "help@example.com"}))
    message = provider.build_message("to@example.com", "Hi", "<p>Hi</p>", "Hi", "", "")

    assert message["From"] == "Engagement Tracker Test <noreply@example.com>"
    assert message["Reply-To"] == "help@example.com"
    assert [part.get_content_type() for part in message.get_payload()] == [
        "text/plain",
        "text/html",
    ]
