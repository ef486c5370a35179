"""Template rendering engine for Folio.

This module uses Jinja2 to render pages. Templates are looked up in the
site's ``templates/`` directory first and then in the built-in templates
shipped with the package, so a site only needs to override what it changes.

Key class:
- TemplateEngine: Handles template rendering and provides context to templates.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)
from markupsafe import Markup

from .config import SiteConfig
from .errors import RenderError
from .html_utils import escape_html, join_root_url, quote_path
from .renderers import Heading
from .utils import tag_dirname

__all__ = ["TemplateEngine", "render_toc"]


def render_toc(headings: list[Heading]) -> Markup:
    """Render a list of headings as nested HTML.

    Generates properly nested `<ul><li><a href="#id">text</a></li></ul>` structure
    based on heading levels.

    Args:
        headings: List of Heading objects.

    Returns:
        Markup-safe HTML string of the nested TOC, or empty Markup if no headings.
    """
    if not headings:
        return Markup("")

    html_parts: list[str] = []
    level_stack: list[int] = []

    for heading in headings:
        level = heading.level

        # Close nested lists if going to a shallower level
        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        elif not level_stack or level > level_stack[-1]:  # pragma: no branch
            html_parts.append("<ul>")
            level_stack.append(level)

        html_parts.append(
            f'<li><a href="#{escape_html(heading.id)}">{escape_html(heading.text)}</a>'
        )

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")

    return Markup("".join(html_parts))


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        config: Site configuration, exposed to templates as ``config``.
        templates_dir: Site template directory searched before the built-ins.
        env: Jinja2 environment.
    """

    def __init__(self, config: SiteConfig, templates_dir: Path | None = None):
        self.config = config
        self.templates_dir = templates_dir
        loaders = []
        if templates_dir is not None and templates_dir.is_dir():
            loaders.append(FileSystemLoader(str(templates_dir)))
        loaders.append(PackageLoader("folio", "templates"))
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "xml"]),
            keep_trailing_newline=True,
        )
        self._install_globals()

    def _install_globals(self) -> None:
        """Install global variables and functions in the Jinja environment."""
        self.env.globals["config"] = self.config
        self.env.globals["url_for"] = self.url_for
        self.env.globals["tag_url"] = self.tag_url
        self.env.globals["render_toc"] = render_toc

    def url_for(self, path: str) -> str:
        """Generate a URL for a site path, applying base_url if configured.

        Args:
            path: Root-relative path such as ``/hello/``.

        Returns:
            Percent-encoded URL, absolute when a base URL is configured.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        return join_root_url(self.config.base_url, quote_path(path))

    def tag_url(self, tag: str) -> str:
        return self.url_for(f"/tags/{tag_dirname(tag)}/")

    def render(self, template_name: str, context: dict[str, Any], source_path: Path) -> str:
        """Render a named template.

        Args:
            template_name: Template to render, e.g. ``page.html``.
            context: Variables to make available in the template.
            source_path: File reported when rendering fails.

        Returns:
            Rendered string.

        Raises:
            RenderError: If the template is missing, malformed, or fails at runtime.
        """
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except TemplateSyntaxError as exc:
            raise RenderError(
                Path(exc.filename or exc.name or template_name),
                f"Template syntax error: {exc.message}",
                line=exc.lineno,
                original_error=exc,
            ) from exc
        except TemplateNotFound as exc:
            raise RenderError(
                source_path, f"Template not found: {exc.name}", original_error=exc
            ) from exc
        except (TemplateError, TypeError, AttributeError) as exc:
            raise RenderError(
                source_path,
                f"{template_name}: {_format_error_message(exc)}",
                original_error=exc,
            ) from exc

