"""Taxonomy and internal link resolution for Folio.

After every document is parsed this stage builds the tag index and checks
that ``/blog/<slug>`` links point at documents that will be published.
Resolution is pure: the same corpus always yields the same result.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from urllib.parse import unquote

from .collections import DocumentCollection, TaxonomyIndex
from .content import Document
from .errors import LINK_WARNING, BuildWarning

INTERNAL_LINK_PREFIX = "/blog/"
_INTERNAL_LINK_RE = re.compile(r"^/blog/(?P<slug>[^?#]*?)/?(?:[?#].*)?$")


@dataclass
class Resolution:
    """Indices built over the publishable part of the corpus.

    Attributes:
        documents: Documents to emit, newest first.
        taxonomy: Tag name to documents carrying it.
        warnings: Unresolved internal links.
    """

    documents: DocumentCollection
    taxonomy: TaxonomyIndex
    warnings: list[BuildWarning] = field(default_factory=list)


def build_taxonomy(documents: Iterable[Document]) -> TaxonomyIndex:
    """Build an index mapping tags to the documents carrying them.

    Args:
        documents: Documents to index; drafts should already be filtered out.

    Returns:
        TaxonomyIndex ordered by tag, each entry newest first.
    """
    tags: dict[str, list[Document]] = {}
    for document in documents:
        for tag in document.tags:
            tags.setdefault(tag, []).append(document)
    return TaxonomyIndex(tags)


def internal_link_slug(url: str, base_url: str = "") -> str | None:
    """Return the slug an internal link points at, or None for other links.

    Examples:
        >>> internal_link_slug("/blog/hello/#intro")
        'hello'
        >>> internal_link_slug("https://example.com/blog/hello", "https://example.com")
        'hello'
        >>> internal_link_slug("https://elsewhere.org/blog/hello") is None
        True
    """
    if base_url:
        root = base_url.rstrip("/")
        if url.startswith(root + "/"):
            url = url[len(root) :]
    match = _INTERNAL_LINK_RE.match(url)
    if not match:
        return None
    return unquote(match.group("slug"))


def check_links(
    documents: Iterable[Document], known: set[str], base_url: str = ""
) -> list[BuildWarning]:
    """Report every ``/blog/<slug>`` link whose slug is not a known document.

    A link resolves when either ``<slug>`` or ``blog/<slug>`` is a known
    identifier. Each unresolved target is reported once per document.
    """
    warnings: list[BuildWarning] = []
    for document in documents:
        seen: set[str] = set()
        for url in document.links:
            slug = internal_link_slug(url, base_url)
            if slug is None or url in seen:
                continue
            seen.add(url)
            if slug in known or f"blog/{slug}" in known:
                continue
            warnings.append(
                BuildWarning(
                    LINK_WARNING,
                    document.path,
                    f"Unresolved internal link '{url}'",
                    line=document.line_of(url),
                )
            )
    return warnings


def resolve(
    corpus: Iterable[Document], include_drafts: bool = False, base_url: str = ""
) -> Resolution:
    """Build the taxonomy index and validate internal links.

    Args:
        corpus: Every parsed document, drafts included.
        include_drafts: Treat drafts as publishable.
        base_url: Site base URL; absolute links under it count as internal.

    Returns:
        Resolution over the publishable documents.
    """
    publishable = DocumentCollection(corpus)
    if not include_drafts:
        publishable = publishable.published()
    documents = publishable.sorted()
    known = set(documents.slugs())
    return Resolution(
        documents=documents,
        taxonomy=build_taxonomy(documents),
        warnings=check_links(documents, known, base_url),
    )
