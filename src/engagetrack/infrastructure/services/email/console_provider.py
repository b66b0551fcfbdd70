"""Console email provider.

Writes outgoing emails to the log instead of sending them. Used in
development and whenever no real provider is configured.
"""

from engagetrack.core.logging import get_logger
from engagetrack.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)


class ConsoleProvider(EmailProvider):
    """Logs emails and reports them as sent."""

    def __init__(self) -> None:
        self.sent: list[dict[str, str | None]] = []

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
        self.sent.append(
            {
                "to": to,
                "subject": subject,
                "html_body": html_body,
                "text_body": text_body,
                "from": f"{from_name} <{from_email}>",
                "reply_to": reply_to,
            }
        )
        logger.info(
            "Email written to console",
            to=to,
            subject=subject,
            from_email=from_email,
            body=text_body,
        )
        return True
