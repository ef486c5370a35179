"""Utility functions for Folio.

Key functions:
    titleize: Convert filenames to human-readable titles.
    tag_dirname: Directory name used for a tag's index page.
    newest_first: Sort key ordering documents by date descending, then slug.
"""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Any


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'

        >>> titleize("getting-started.md")
        'Getting Started'
    """
    base = Path(filename).stem
    if "-" in base:
        parts = base.split("-")
        if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
            base = "-".join(parts[3:])
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def tag_dirname(tag: str) -> str:
    """Return the output directory name for a tag.

    Tags are used verbatim except for path separators.

    Examples:
        >>> tag_dirname("C++")
        'C++'
        >>> tag_dirname("C/C++")
        'C-C++'
    """
    name = tag.replace("/", "-").replace("\\", "-").strip()
    if name in ("", ".", ".."):
        return "-"
    return name


def newest_first(document: Any) -> tuple[int, str]:
    """Sort key: date descending, then identifier ascending.

    Undated documents (drafts) sort last.
    """
    published: date = document.date or date.min
    return (-published.toordinal(), document.slug)
