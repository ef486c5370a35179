"""Front-matter extraction for Folio.

A content file opens with a TOML table fenced by two lines consisting of
exactly ``+++``. This module splits the file into that table and the
Markdown body, then validates the recognised fields:

- title (string, required unless draft)
- date (calendar date, required unless draft)
- draft (boolean, default false)
- taxonomies.tags (list of strings)
- extra.toc, extra.math, extra.math_auto_render (booleans)
- extra.keywords (string)

Unknown top-level fields are kept in the extra map so templates can read them.
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from .errors import FrontMatterError

FENCE = "+++"

_TOML_LINE_RE = re.compile(r"at line (\d+)")
_KNOWN_FIELDS = ("title", "date", "draft", "taxonomies", "extra")
_EXTRA_BOOLEANS = ("toc", "math", "math_auto_render")


@dataclass
class FrontMatter:
    """Validated front-matter of one document.

    Attributes:
        title: Page title, None only for drafts that omit it.
        date: Publication date, None only for drafts that omit it.
        draft: Whether the document is excluded from output.
        tags: Tags from ``taxonomies.tags``.
        taxonomies: The whole ``taxonomies`` table.
        extra: The ``extra`` table plus any unknown top-level fields.
    """

    title: str | None = None
    date: date | None = None
    draft: bool = False
    tags: frozenset[str] = frozenset()
    taxonomies: dict[str, list[str]] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)


def split_frontmatter(text: str, path: Path) -> tuple[str, str, int]:
    """Split a content file into its front-matter block and body.

    Args:
        text: Decoded file contents.
        path: Path to the file, used in error messages.

    Returns:
        Tuple of (front-matter source, body, number of lines before the body).

    Raises:
        FrontMatterError: If either fence is missing.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != FENCE:
        raise FrontMatterError(path, "File must start with a '+++' front-matter fence", line=1)
    for index in range(1, len(lines)):
        if lines[index].rstrip("\r\n") == FENCE:
            return "".join(lines[1:index]), "".join(lines[index + 1 :]), index + 1
    raise FrontMatterError(path, "Front-matter is missing its closing '+++' fence", line=1)


def parse_frontmatter(text: str, path: Path) -> tuple[FrontMatter, str, int]:
    """Parse and validate the front-matter of a content file.

    Args:
        text: Decoded file contents.
        path: Path to the file, used in error messages.

    Returns:
        Tuple of (FrontMatter, Markdown body, number of lines before the body).

    Raises:
        FrontMatterError: If the block is malformed or a required field is missing.
    """
    source, body, offset = split_frontmatter(text, path)
    try:
        data = tomllib.loads(source)
    except tomllib.TOMLDecodeError as exc:
        match = _TOML_LINE_RE.search(str(exc))
        line = int(match.group(1)) + 1 if match else 1
        raise FrontMatterError(
            path, f"Invalid front-matter: {exc}", line=line, original_error=exc
        ) from exc

    def fail(message: str, key: str | None = None) -> FrontMatterError:
        return FrontMatterError(path, message, line=_line_of(source, key) if key else 1)

    draft = data.get("draft", False)
    if not isinstance(draft, bool):
        raise fail("'draft' must be a boolean", "draft")

    title = data.get("title")
    if title is not None and not isinstance(title, str):
        raise fail("'title' must be a string", "title")
    if not draft and not title:
        raise fail("Missing required field 'title'")

    published = _coerce_date(data.get("date"))
    if data.get("date") is not None and published is None:
        raise fail(f"Cannot parse date {data['date']!r}", "date")
    if not draft and published is None:
        raise fail("Missing required field 'date'")

    taxonomies = data.get("taxonomies", {})
    if not isinstance(taxonomies, dict):
        raise fail("'taxonomies' must be a table", "taxonomies")
    for name, terms in taxonomies.items():
        if not isinstance(terms, list) or not all(isinstance(t, str) for t in terms):
            raise fail(f"'taxonomies.{name}' must be a list of strings", name)

    extra = data.get("extra", {})
    if not isinstance(extra, dict):
        raise fail("'extra' must be a table", "extra")
    extra = dict(extra)
    for key in _EXTRA_BOOLEANS:
        if key in extra and not isinstance(extra[key], bool):
            raise fail(f"'extra.{key}' must be a boolean", key)
    if "keywords" in extra and not isinstance(extra["keywords"], str):
        raise fail("'extra.keywords' must be a string", "keywords")
    for key, value in data.items():
        if key not in _KNOWN_FIELDS:
            extra.setdefault(key, value)

    frontmatter = FrontMatter(
        title=title,
        date=published,
        draft=draft,
        tags=frozenset(taxonomies.get("tags", [])),
        taxonomies=taxonomies,
        extra=extra,
    )
    return frontmatter, body, offset


def _coerce_date(value: Any) -> date | None:
    """Convert a TOML date, datetime or ISO string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            return None
    return None


def _line_of(source: str, key: str) -> int:
    """Return the file line number where ``key`` is assigned, or 1."""
    pattern = re.compile(rf"^\s*{re.escape(key)}\s*=", re.MULTILINE)
    match = pattern.search(source)
    if not match:
        return 1
    return source.count("\n", 0, match.start()) + 2
