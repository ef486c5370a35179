"""Content processing for Folio.

This module turns a loaded source file into a Document: it validates the
front-matter, renders the Markdown body, extracts the table of contents,
and records footnote problems as warnings.

Key classes:
- Document: Dataclass representing one article with all its metadata.
- DocumentParser: Builds Document instances from SourceFile objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from .errors import FOOTNOTE_WARNING, BuildWarning, MarkdownError, RenderError
from .frontmatter import parse_frontmatter
from .loader import SourceFile
from .renderers import Heading, HighlightError, MarkdownRenderer, check_footnotes
from .utils import titleize

TOC_LEVELS = range(2, 5)


@dataclass
class Document:
    """Represents a single article with all its metadata and content.

    Attributes:
        slug: Stable identifier derived from the path relative to the content root.
        title: Human-readable title.
        date: Publication date (None only for undated drafts).
        draft: Whether the document is excluded from output.
        tags: Tag set from ``taxonomies.tags``.
        extra: The ``extra`` table plus unknown front-matter fields.
        body: Raw Markdown body without front-matter.
        content: Rendered HTML body.
        path: Path to the source file.
        body_offset: Number of file lines before the body starts.
        toc: Headings of levels 2-4 when ``extra.toc`` is set.
        links: Link targets found in the body, in order.
        taxonomies: The whole ``taxonomies`` table.
        warnings: Non-fatal findings made while parsing.
    """

    slug: str
    title: str
    date: date | None
    draft: bool
    tags: frozenset[str]
    extra: dict[str, Any]
    body: str
    content: str
    path: Path
    body_offset: int = 0
    toc: list[Heading] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    taxonomies: dict[str, list[str]] = field(default_factory=dict)
    warnings: list[BuildWarning] = field(default_factory=list)

    @property
    def url(self) -> str:
        return f"/{self.slug}/"

    @property
    def sorted_tags(self) -> list[str]:
        return sorted(self.tags)

    @property
    def toc_enabled(self) -> bool:
        return bool(self.extra.get("toc", False))

    @property
    def math(self) -> bool:
        return bool(self.extra.get("math", False))

    @property
    def math_auto_render(self) -> bool:
        return bool(self.extra.get("math_auto_render", False))

    @property
    def keywords(self) -> str:
        return str(self.extra.get("keywords", ""))

    def line_of(self, needle: str) -> int | None:
        """Return the file line number of the first occurrence of ``needle`` in the body."""
        index = self.body.find(needle)
        if index < 0:
            return None
        return self.body_offset + self.body.count("\n", 0, index) + 1


def document_slug(rel_path: Path) -> str:
    """Derive a document identifier from its path relative to the content root.

    Examples:
        >>> document_slug(Path("hello.md"))
        'hello'
        >>> document_slug(Path("notes/cpp-moves.markdown"))
        'notes/cpp-moves'
    """
    return rel_path.with_suffix("").as_posix()


class DocumentParser:
    """Builds Document objects from loaded source files.

    Attributes:
        markdown: Renderer used for document bodies.
    """

    def __init__(self, markdown: MarkdownRenderer | None = None):
        self.markdown = markdown or MarkdownRenderer()

    def parse(self, source: SourceFile) -> Document:
        """Parse one source file.

        Args:
            source: Loaded content file.

        Returns:
            Document with rendered body.

        Raises:
            FrontMatterError: If the front-matter is invalid.
            MarkdownError: If the body cannot be rendered.
            RenderError: If syntax highlighting fails.
        """
        path = source.path
        frontmatter, body, offset = parse_frontmatter(source.text, path)
        math_enabled = bool(frontmatter.extra.get("math", False))
        try:
            rendered = self.markdown.render(body, math_enabled=math_enabled)
        except HighlightError as exc:
            raise RenderError(path, str(exc), original_error=exc) from exc
        except Exception as exc:
            raise MarkdownError(
                path, f"{type(exc).__name__}: {exc}", original_error=exc
            ) from exc

        toc: list[Heading] = []
        if frontmatter.extra.get("toc", False):
            toc = [h for h in rendered.headings if h.level in TOC_LEVELS]

        warnings = [
            BuildWarning(FOOTNOTE_WARNING, path, message, line=offset + line)
            for line, message in check_footnotes(body)
        ]

        return Document(
            slug=document_slug(source.rel_path),
            title=frontmatter.title or titleize(path.name),
            date=frontmatter.date,
            draft=frontmatter.draft,
            tags=frontmatter.tags,
            extra=frontmatter.extra,
            body=body,
            content=rendered.html,
            path=path,
            body_offset=offset,
            toc=toc,
            links=rendered.links,
            taxonomies=frontmatter.taxonomies,
            warnings=warnings,
        )
