"""Markdown rendering for Folio.

This module turns a document body into HTML with mistune, adding:
- Pygments syntax highlighting for fenced code with a language tag,
  degrading to plain ``<pre><code>`` for unknown languages.
- Slug ids on every heading, collected for the table of contents.
- Footnotes with back-references.
- Optional math markers (see markdown_math).
- A record of every link target, for internal link checking.

Key classes:
- MarkdownRenderer: Renders a Markdown body to a RenderedMarkdown.
- Heading: A heading extracted for TOC generation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .html_utils import escape_html, strip_tags
from .markdown_math import math

_FENCED_CODE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,}).*?^ {0,3}\1[ \t]*$", re.MULTILINE | re.DOTALL)
_CODE_SPAN_RE = re.compile(r"`[^`\n]+`")
_FOOTNOTE_DEF_RE = re.compile(r"^ {0,3}\[\^([^\]\s]+)\]:", re.MULTILINE)
_FOOTNOTE_REF_RE = re.compile(r"\[\^([^\]\s]+)\](?!:)")

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]


class HighlightError(Exception):
    """Pygments failed on a code block it had a lexer for."""


@dataclass
class Heading:
    """Represents a heading extracted from markdown content for TOC generation.

    Attributes:
        id: Anchor ID for the heading (URL-friendly slug).
        text: The plain text content of the heading.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


@dataclass
class RenderedMarkdown:
    """Output of rendering one Markdown body.

    Attributes:
        html: Rendered HTML.
        headings: Every heading in document order.
        links: Every link target in document order.
    """

    html: str
    headings: list[Heading] = field(default_factory=list)
    links: list[str] = field(default_factory=list)


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "section"


class _HighlightRenderer(mistune.HTMLRenderer):
    """Custom Markdown renderer with heading ids, link tracking and syntax highlighting.

    Attributes:
        highlight_code: Whether fenced code with a language goes through Pygments.
        headings: List of Heading objects extracted during rendering.
        links: Link targets seen during rendering.
    """

    def __init__(self, highlight_code: bool = True):
        super().__init__(escape=False)
        self.highlight_code = highlight_code
        self.headings: list[Heading] = []
        self.links: list[str] = []
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with auto-generated ID and track for TOC."""
        plain = strip_tags(text)
        base_id = _generate_heading_id(plain)

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        self.headings.append(Heading(id=heading_id, text=plain, level=level))

        # h1 is the article title and never a TOC target
        if level == 1:
            return f"<h1>{text}</h1>\n"
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def link(self, text: str, url: str, title: str | None = None) -> str:
        self.links.append(url)
        return super().link(text, url, title)

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Args:
            code: The code content.
            info: Fence info string; its first word names the language.

        Returns:
            HTML string with highlighted code, or plain monospace when the
            language is unknown.
        """
        lang = info.split()[0] if info and info.strip() else ""
        if lang and self.highlight_code:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                try:
                    return highlight(code, lexer, formatter)
                except Exception as exc:
                    raise HighlightError(f"Highlighting '{lang}' failed: {exc}") from exc
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown bodies to HTML.

    Attributes:
        highlight_code: Whether to syntax-highlight fenced code blocks.
    """

    def __init__(self, highlight_code: bool = True):
        self.highlight_code = highlight_code

    def render(self, body: str, math_enabled: bool = False) -> RenderedMarkdown:
        """Render Markdown content to HTML.

        Args:
            body: Markdown source without front-matter.
            math_enabled: Wrap ``$...$`` and ``$$...$$`` spans in math markers.

        Returns:
            RenderedMarkdown with the HTML, headings and links.
        """
        renderer = _HighlightRenderer(self.highlight_code)
        plugins: list = list(MARKDOWN_PLUGINS)
        if math_enabled:
            plugins.append(math)
        markdown = mistune.create_markdown(renderer=renderer, plugins=plugins)
        html = markdown(body)
        return RenderedMarkdown(html=html, headings=renderer.headings, links=renderer.links)


def check_footnotes(body: str) -> list[tuple[int, str]]:
    """Find footnote definitions never referenced and references never defined.

    Code blocks and code spans are ignored.

    Args:
        body: Markdown source.

    Returns:
        List of (line number within body, message) pairs in line order.
    """
    text = _FENCED_CODE_RE.sub(lambda m: "\n" * m.group(0).count("\n"), body)
    text = _CODE_SPAN_RE.sub(lambda m: " " * len(m.group(0)), text)

    definitions: dict[str, int] = {}
    for match in _FOOTNOTE_DEF_RE.finditer(text):
        definitions.setdefault(match.group(1), text.count("\n", 0, match.start()) + 1)
    references: dict[str, int] = {}
    for match in _FOOTNOTE_REF_RE.finditer(text):
        references.setdefault(match.group(1), text.count("\n", 0, match.start()) + 1)

    problems = [
        (line, f"Footnote '{key}' is defined but never referenced")
        for key, line in definitions.items()
        if key not in references
    ]
    problems.extend(
        (line, f"Footnote '{key}' is referenced but never defined")
        for key, line in references.items()
        if key not in definitions
    )
    return sorted(problems)
