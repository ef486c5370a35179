"""Page rendering for Folio.

Turns the resolved corpus into artifacts: one page per document, the root
index, one index per tag, the tag list, the 404 page, feeds, and the
Pygments stylesheet. Documents are independent, so their pages render in
parallel; the returned list is always in the same order. Two artifacts,
rendered or static, may never share an output path.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

from .cancel import CancelToken
from .config import SiteConfig
from .content import Document
from .emitter import Artifact
from .errors import RenderError
from .feeds import feed_generators
from .resolver import Resolution
from .templates import TemplateEngine
from .utils import tag_dirname


class SiteRenderer:
    """Renders a Resolution into output artifacts.

    Attributes:
        engine: Template engine used for every HTML page.
        config: Site configuration.
        workers: Maximum number of documents rendered concurrently.
    """

    def __init__(self, engine: TemplateEngine, config: SiteConfig, workers: int | None = None):
        self.engine = engine
        self.config = config
        self.workers = workers

    def render(
        self,
        resolution: Resolution,
        cancel: CancelToken | None = None,
        static: Sequence[Artifact] = (),
    ) -> list[Artifact]:
        """Render every page of the site.

        Args:
            resolution: Published documents and their indices.
            cancel: Checked between documents.
            static: Files copied verbatim from the static directory.

        Returns:
            The rendered artifacts followed by the static ones.

        Raises:
            RenderError: If a template, the highlighter, or the tag layout
                fails, or two artifacts would be written to the same path.
            BuildCancelled: If the token is set between documents.
        """
        cancel = cancel or CancelToken()

        def render_one(document: Document) -> Artifact:
            cancel.raise_if_cancelled()
            return self.render_document(document, resolution)

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            artifacts = list(pool.map(render_one, resolution.documents))

        cancel.raise_if_cancelled()
        artifacts.append(self._render_index(resolution))
        artifacts.extend(self._render_tags(resolution, cancel))
        artifacts.append(
            Artifact.text(
                "404.html",
                self.engine.render("404.html", {}, Path("404.html")),
                Path("404.html"),
            )
        )
        for generator in feed_generators(self.config):
            content = generator.generate(resolution, self.config)
            if content is not None:
                artifacts.append(Artifact.text(generator.filename, content, Path(generator.filename)))
        if self.config.highlight_code:
            artifacts.append(self._highlight_css())
        artifacts.extend(static)
        check_unique_paths(artifacts)
        return artifacts

    def render_document(self, document: Document, resolution: Resolution) -> Artifact:
        html = self.engine.render(
            "page.html",
            {"document": document, "taxonomy": resolution.taxonomy},
            document.path,
        )
        return Artifact.text(f"{document.slug}/index.html", html, document.path)

    def _render_index(self, resolution: Resolution) -> Artifact:
        html = self.engine.render(
            "index.html",
            {"documents": resolution.documents, "taxonomy": resolution.taxonomy},
            Path("index.html"),
        )
        return Artifact.text("index.html", html, Path("index.html"))

    def _render_tags(self, resolution: Resolution, cancel: CancelToken) -> list[Artifact]:
        taxonomy = resolution.taxonomy
        artifacts = [
            Artifact.text(
                "tags/index.html",
                self.engine.render("tags.html", {"taxonomy": taxonomy}, Path("tags.html")),
                Path("tags.html"),
            )
        ]
        claimed: dict[str, str] = {}
        for tag, documents in taxonomy.items():
            cancel.raise_if_cancelled()
            dirname = tag_dirname(tag)
            if dirname in claimed:
                raise RenderError(
                    documents[0].path,
                    f"Tags '{claimed[dirname]}' and '{tag}' map to the same page /tags/{dirname}/",
                )
            claimed[dirname] = tag
            html = self.engine.render(
                "tag.html", {"tag": tag, "documents": documents}, Path("tag.html")
            )
            artifacts.append(Artifact.text(f"tags/{dirname}/index.html", html, Path("tag.html")))
        return artifacts

    def _highlight_css(self) -> Artifact:
        try:
            formatter = HtmlFormatter(style=self.config.highlight_theme)
        except ClassNotFound as exc:
            raise RenderError(
                Path("highlight.css"),
                f"Unknown highlight theme '{self.config.highlight_theme}'",
                original_error=exc,
            ) from exc
        return Artifact.text(
            "highlight.css", formatter.get_style_defs(".highlight") + "\n", Path("highlight.css")
        )


def check_unique_paths(artifacts: Iterable[Artifact]) -> None:
    """Reject two artifacts that would be written to the same output path.

    Raises:
        RenderError: Naming the sources of both artifacts.
    """
    seen: dict[str, Artifact] = {}
    for artifact in artifacts:
        previous = seen.get(artifact.path)
        if previous is not None:
            raise RenderError(
                previous.source or artifact.source or Path(artifact.path),
                f"Output path '{artifact.path}' is produced by both "
                f"{previous.source} and {artifact.source}",
            )
        seen[artifact.path] = artifact
