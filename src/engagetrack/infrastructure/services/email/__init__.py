"""Email providers and template rendering for role change notifications."""

from engagetrack.infrastructure.services.email.console_provider import ConsoleProvider
from engagetrack.infrastructure.services.email.email_provider import EmailProvider
from engagetrack.infrastructure.services.email.provider_factory import build_email_provider
from engagetrack.infrastructure.services.email.resend_provider import (
    ResendProvider,
    ResendSettings,
)
from engagetrack.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from engagetrack.infrastructure.services.email.template_renderer import (
    TemplateRenderer,
    get_template_renderer,
)

__all__ = [
    "ConsoleProvider",
    "EmailProvider",
    "ResendProvider",
    "ResendSettings",
    "SMTPProvider",
    "SMTPSettings",
    "TemplateRenderer",
    "build_email_provider",
    "get_template_renderer",
]
