"""Feed generation for Folio.

Generates sitemap.xml and an RSS 2.0 feed from the published documents.
Both are skipped when the site has no base URL, since feeds need absolute
links. Neither embeds the build time, so rebuilding an unchanged site
produces identical bytes.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates rss.xml.

Functions:
    feed_generators: The generators enabled by a site configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date
from typing import TYPE_CHECKING

from .html_utils import escape_html, join_root_url, quote_path
from .utils import tag_dirname

if TYPE_CHECKING:
    from .config import SiteConfig
    from .resolver import Resolution

RSS_DATE_FORMAT = "%a, %d %b %Y 00:00:00 +0000"


class FeedGenerator(ABC):
    """Base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(self, resolution: Resolution, config: SiteConfig) -> str | None:
        """Generate feed content.

        Args:
            resolution: Published documents and their indices.
            config: Site configuration containing the base URL.

        Returns:
            Feed content, or None if the feed cannot be generated.
        """
        ...


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml listing every page the build emits."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, resolution: Resolution, config: SiteConfig) -> str | None:
        base_url = config.base_url.rstrip("/")
        if not base_url:
            return None

        def entry(path: str, lastmod: date | None) -> str:
            loc = escape_html(join_root_url(base_url, quote_path(path)))
            if lastmod is None:
                return f"  <url><loc>{loc}</loc></url>"
            return f"  <url><loc>{loc}</loc><lastmod>{lastmod.isoformat()}</lastmod></url>"

        documents = resolution.documents
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            entry("/", _newest(documents)),
        ]
        lines.extend(entry(document.url, document.date) for document in documents)
        lines.append(entry("/tags/", None))
        for tag, tagged in resolution.taxonomy.items():
            lines.append(entry(f"/tags/{tag_dirname(tag)}/", _newest(tagged)))
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the published documents, newest first."""

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, resolution: Resolution, config: SiteConfig) -> str | None:
        base_url = config.base_url.rstrip("/")
        if not base_url:
            return None

        items = []
        for document in resolution.documents:
            link = escape_html(join_root_url(base_url, quote_path(document.url)))
            description = str(document.extra.get("description", "")) or document.title
            item = [
                "<item>",
                f"<title>{escape_html(document.title)}</title>",
                f"<link>{link}</link>",
                f"<guid>{link}</guid>",
                f"<description>{escape_html(description)}</description>",
            ]
            if document.date is not None:
                item.append(f"<pubDate>{document.date.strftime(RSS_DATE_FORMAT)}</pubDate>")
            item.extend(f"<category>{escape_html(tag)}</category>" for tag in document.sorted_tags)
            item.append("</item>")
            items.append("".join(item))

        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{escape_html(config.title or base_url)}</title>",
            f"<link>{escape_html(base_url)}</link>",
            f"<description>{escape_html(config.description)}</description>",
            f"<language>{escape_html(config.default_language)}</language>",
        ]
        newest = _newest(resolution.documents)
        if newest is not None:
            rss.append(f"<lastBuildDate>{newest.strftime(RSS_DATE_FORMAT)}</lastBuildDate>")
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


def _newest(documents: Sequence) -> date | None:
    dates = [d.date for d in documents if d.date is not None]
    return max(dates) if dates else None


def feed_generators(config: SiteConfig) -> list[FeedGenerator]:
    """Return the feed generators enabled by the configuration."""
    generators: list[FeedGenerator] = []
    if config.generate_sitemap:
        generators.append(SitemapGenerator())
    if config.generate_feed:
        generators.append(RSSGenerator())
    return generators
