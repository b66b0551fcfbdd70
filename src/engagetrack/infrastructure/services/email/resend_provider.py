"""Resend email provider implementation.

Uses the Resend Python SDK for email sending via Resend API.
"""

import asyncio

import resend
from pydantic import BaseModel, ConfigDict

from engagetrack.core.logging import get_logger
from engagetrack.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)

# Resend refuses to deliver to arbitrary recipients until a domain is verified
_DOMAIN_VERIFICATION_MARKERS = ("verify a domain", "testing emails", "not verified")


class ResendSettings(BaseModel):
    """Configuration settings for the Resend provider."""

    model_config = ConfigDict(from_attributes=True)

    api_key: str
    from_email: str
    from_name: str = "Engagement Tracker"
    reply_to: str | None = None


def is_domain_verification_error(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _DOMAIN_VERIFICATION_MARKERS)


class ResendProvider(EmailProvider):
    """Resend email provider implementation.

    Sends emails using the Resend API via the Resend Python SDK.
    """

    def __init__(self, settings: ResendSettings) -> None:
        """Initialize the Resend provider.

        Args:
            settings: Resend configuration settings.
        """
        self.settings = settings
        # Set the API key for the Resend SDK
        resend.api_key = settings.api_key

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
        from_email: str,
        from_name: str,
        reply_to: str | None = None,
    ) -> bool:
        """Send an email via Resend.

        Returns:
            True if the email was accepted, False if Resend refused it because
            the sending domain is not verified.

        Raises:
            Exception: If Resend sending fails for any other reason.
        """
        sender = (
            f"{from_name or self.settings.from_name} <{from_email or self.settings.from_email}>"
        )

        params = {
            "from": sender,
            "to": [to],
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }

        reply_addr = reply_to or self.settings.reply_to
        if reply_addr:
            params["reply_to"] = reply_addr

        try:
            # Resend SDK is synchronous, so we run it in a thread pool
            def _send():
                return resend.Emails.send(params)

            response = await asyncio.to_thread(_send)

            logger.info(
                "Email sent via Resend",
                email_id=response.get("id") if isinstance(response, dict) else None,
                to=to,
            )
            return True

        except Exception as e:
            error_message = str(e)

            if is_domain_verification_error(error_message):
                logger.warning(
                    "Resend domain not verified, email not sent. "
                    "Verify a domain at resend.com/domains to enable notifications.",
                    error=error_message,
                    from_email=from_email or self.settings.from_email,
                    to=to,
                )
                return False
            if "Invalid API key" in error_message or "Unauthorized" in error_message:
                logger.error("Resend authentication failed", error=error_message, to=to)
            elif "rate limit" in error_message.lower():
                logger.error("Resend rate limit exceeded", error=error_message, to=to)
            else:
                logger.error("Resend API error", error=error_message, to=to)
            raise
