"""Unit tests for sandboxed email template rendering."""

import pytest
from jinja2 import TemplateSyntaxError, UndefinedError
from jinja2.exceptions import SecurityError

from engagetrack.infrastructure.services.email.template_renderer import (
    TemplateRenderer,
    get_template_renderer,
)


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


def test_html_output_is_escaped(renderer):
    rendered = renderer.render("<p>{{ name }}</p>", {"name": "<b>Eve</b>"})
    assert rendered == "<p>&lt;b&gt;Eve&lt;/b&gt;</p>"


def test_text_output_is_not_escaped(renderer):
    rendered = renderer.render("Hello {{ name }}", {"name": "Tom & Jerry"}, html=False)
    assert rendered == "Hello Tom & Jerry"


def test_missing_variable_raises(renderer):
    with pytest.raises(UndefinedError):
        renderer.render("Hello {{ name }}", {})


def test_syntax_error_raises(renderer):
    with pytest.raises(TemplateSyntaxError):
        renderer.render("Hello {{ name ", {"name": "x"})


def test_sandbox_blocks_attribute_escape(renderer):
    with pytest.raises(SecurityError):
        renderer.render("{{ name.__class__ }}", {"name": "x"})


def test_shared_instance():
    assert get_template_renderer() is get_template_renderer()
