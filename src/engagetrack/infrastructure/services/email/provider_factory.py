"""Builds the configured email provider."""

from engagetrack.core.config import Settings
from engagetrack.core.logging import get_logger
from engagetrack.infrastructure.services.email.console_provider import ConsoleProvider
from engagetrack.infrastructure.services.email.email_provider import EmailProvider
from engagetrack.infrastructure.services.email.resend_provider import (
    ResendProvider,
    ResendSettings,
)
from engagetrack.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings

logger = get_logger(__name__)


def build_email_provider(settings: Settings) -> EmailProvider:
    """Create the provider named by ``settings.email_provider``.

    Falls back to the console provider when the chosen provider is missing
    its credentials.
    """
    if settings.email_provider == "resend":
        if settings.resend_api_key:
            return ResendProvider(
                ResendSettings(
                    api_key=settings.resend_api_key,
                    from_email=settings.email_from_address,
                    from_name=settings.email_from_name,
                    reply_to=settings.email_reply_to,
                )
            )
        logger.warning("Resend selected but no API key configured, using console provider")
    elif settings.email_provider == "smtp":
        if settings.smtp_host:
            return SMTPProvider(
                SMTPSettings(
                    host=settings.smtp_host,
                    port=settings.smtp_port,
                    username=settings.smtp_username,
                    password=settings.smtp_password,
                    use_tls=settings.smtp_use_tls,
                    use_ssl=settings.smtp_use_ssl,
                    from_email=settings.email_from_address,
                    from_name=settings.email_from_name,
                    reply_to=settings.email_reply_to,
                )
            )
        logger.warning("SMTP selected but no host configured, using console provider")
    return ConsoleProvider()
