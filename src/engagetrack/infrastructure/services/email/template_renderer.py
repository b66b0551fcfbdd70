"""Jinja2 template renderer for email templates.

Provides safe template rendering with HTML escaping and error handling.
"""

from jinja2 import StrictUndefined, TemplateSyntaxError, UndefinedError
from jinja2.sandbox import SandboxedEnvironment

from engagetrack.core.logging import get_logger

logger = get_logger(__name__)


class TemplateRenderer:
    """Jinja2 template renderer with security features.

    Uses sandboxed environments to prevent code execution in templates. HTML
    templates are autoescaped; plain text templates are not.
    """

    def __init__(self) -> None:
        """Initialize the template renderer with sandboxed environments."""
        self.env = SandboxedEnvironment(
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.text_env = SandboxedEnvironment(
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def render(self, template_string: str, variables: dict[str, str], html: bool = True) -> str:
        """Render a template string with variables.

        Args:
            template_string: Jinja2 template string.
            variables: Dictionary of variables to substitute.
            html: Escape variables for HTML output.

        Returns:
            Rendered template string.

        Raises:
            TemplateSyntaxError: If template syntax is invalid.
            UndefinedError: If required variable is missing.
        """
        env = self.env if html else self.text_env
        try:
            rendered = env.from_string(template_string).render(**variables)
            logger.debug("Template rendered successfully", variable_count=len(variables))
            return rendered
        except TemplateSyntaxError as e:
            logger.error("Template syntax error", error=str(e), line=e.lineno)
            raise
        except UndefinedError as e:
            logger.error("Undefined variable in template", error=str(e))
            raise


# Global template renderer instance
_template_renderer: TemplateRenderer | None = None


def get_template_renderer() -> TemplateRenderer:
    """Get the global template renderer instance.

    Returns:
        TemplateRenderer: Global template renderer instance.
    """
    global _template_renderer
    if _template_renderer is None:
        _template_renderer = TemplateRenderer()
    return _template_renderer
