"""HTML utility functions for Folio.

Functions:
    escape_html: Escape special HTML characters in a string.
    strip_tags: Drop markup from an HTML fragment, keeping its text.
    join_root_url: Join a base URL with a path.
    quote_path: Percent-encode a URL path, keeping its slashes.
"""

from __future__ import annotations

import html
import re
from urllib.parse import quote

_TAG_RE = re.compile(r"<[^>]+>")


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Converts the following characters to their HTML entity equivalents:
    - & becomes &amp;
    - < becomes &lt;
    - > becomes &gt;
    - " becomes &quot;

    Examples:
        >>> escape_html('<script>alert("XSS")</script>')
        '&lt;script&gt;alert(&quot;XSS&quot;)&lt;/script&gt;'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def strip_tags(fragment: str) -> str:
    """Return the plain text of an inline HTML fragment.

    Examples:
        >>> strip_tags("Using <code>std::move</code> &amp; friends")
        'Using std::move & friends'
    """
    return html.unescape(_TAG_RE.sub("", fragment)).strip()


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Args:
        root_url: Base URL (e.g., https://example.com/blog).
        path: Path beginning with or without a leading slash.

    Returns:
        Combined URL with proper slash handling.

    Examples:
        >>> join_root_url('https://example.com', '/about')
        'https://example.com/about'

        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    suffix = path if path.startswith("/") else f"/{path}"
    if not root_url:
        return suffix
    return f"{root_url.rstrip('/')}{suffix}"


def quote_path(path: str) -> str:
    """Percent-encode a URL path, leaving ``/`` intact.

    Examples:
        >>> quote_path('/tags/C++/')
        '/tags/C%2B%2B/'
    """
    return quote(path, safe="/")
