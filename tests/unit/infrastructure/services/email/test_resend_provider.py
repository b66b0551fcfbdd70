"""Unit tests for the Resend email provider."""

import unittest.mock as mock

import pytest

from engagetrack.infrastructure.services.email.resend_provider import (
    ResendProvider,
    ResendSettings,
    is_domain_verification_error,
)


@pytest.fixture
def resend_settings() -> ResendSettings:
    """Fixture for Resend settings."""
    return ResendSettings(
        api_key="re_test_api_key_123456789",
        from_email="noreply@example.com",
        from_name="Engagement Tracker Test",
    )


@pytest.fixture
def resend_provider(resend_settings: ResendSettings) -> ResendProvider:
    """Fixture for Resend provider."""
    return ResendProvider(resend_settings)


async def _send(provider: ResendProvider, **overrides) -> bool:
    kwargs = {
        "to": "recipient@example.com",
        "subject": "Test Subject",
        "html_body": "<p>HTML Body</p>",
        "text_body": "Text Body",
        "from_email": "sender@example.com",
        "from_name": "Sender Name",
    }
    kwargs.update(overrides)
    return await provider.send_email(**kwargs)


@pytest.mark.asyncio
async def test_resend_send_email_success(resend_provider: ResendProvider) -> None:
    """Test successful email sending via Resend."""
    with mock.patch("resend.Emails.send") as mock_send:
        mock_send.return_value = {"id": "test-email-id-123"}

        success = await _send(resend_provider)

        assert success is True
        call_args = mock_send.call_args[0][0]
        assert call_args["from"] == "Sender Name <sender@example.com>"
        assert call_args["to"] == ["recipient@example.com"]
        assert call_args["html"] == "<p>HTML Body</p>"
        assert call_args["text"] == "Text Body"
        assert "reply_to" not in call_args


@pytest.mark.asyncio
async def test_resend_uses_configured_reply_to(resend_settings: ResendSettings) -> None:
    provider = ResendProvider(resend_settings.model_copy(update={"reply_to": "help@example.com"}))

    with mock.patch("resend.Emails.send") as mock_send:
        mock_send.return_value = {"id": "abc"}
        await _send(provider)

    assert mock_send.call_args[0][0]["reply_to"] == "help@example.com"


@pytest.mark.asyncio
async def test_resend_unverified_domain_returns_false(resend_provider: ResendProvider) -> None:
    """An unverified sending domain is not retried, so it is reported as not sent."""
    with mock.patch("resend.Emails.send") as mock_send:
        mock_send.side_effect = Exception(
            "You can only send testing emails to your own email address. "
            "To send emails to other recipients, please verify a domain."
        )

        assert await _send(resend_provider) is False


@pytest.mark.asyncio
async def test_resend_other_errors_propagate(resend_provider: ResendProvider) -> None:
    with mock.patch("resend.Emails.send") as mock_send:
        mock_send.side_effect = Exception("Invalid API key")

        with pytest.raises(Exception, match="Invalid API key"):
            await _send(resend_provider)


def test_domain_verification_markers():
    assert is_domain_verification_error("The example.com domain is not verified")
    assert not is_domain_verification_error("rate limit exceeded")
