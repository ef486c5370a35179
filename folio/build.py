"""Site building functionality for Folio.

This module drives one build through its stages:

    Idle -> Loading -> Parsing -> Resolving -> Rendering -> Emitting -> Done

Any error moves the build to Failed. Nothing touches the output tree before
Emitting, so a build that fails while loading, parsing, resolving or
rendering leaves the previous site exactly as it was.

Key functions:
- build_site: Build the whole site and return a BuildResult.
- SiteBuilder: The stage machine behind build_site.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .cancel import CancelToken
from .collections import DocumentCollection, TaxonomyIndex
from .config import SiteConfig, load_config
from .content import Document, DocumentParser
from .emitter import EmitReport, Emitter, collect_static
from .errors import BuildWarning, FrontMatterError
from .loader import SourceFile, SourceLoader
from .render import SiteRenderer
from .renderers import MarkdownRenderer
from .resolver import resolve
from .templates import TemplateEngine


class BuildState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    PARSING = "parsing"
    RESOLVING = "resolving"
    RENDERING = "rendering"
    EMITTING = "emitting"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({BuildState.DONE, BuildState.FAILED})


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        documents: Published documents, newest first.
        taxonomy: Tag index over the published documents.
        warnings: Non-fatal findings, sorted by file and line.
        output_dir: Directory the site was written to.
        report: What emission changed, or None when nothing was emitted.
    """

    documents: DocumentCollection
    taxonomy: TaxonomyIndex
    warnings: list[BuildWarning]
    output_dir: Path
    report: EmitReport | None = None
    corpus: list[Document] = field(default_factory=list)


class SiteBuilder:
    """Runs the build pipeline once.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration, read once before the build starts.
        output_dir: Directory the site is emitted to.
        include_drafts: Whether drafts are published.
        cancel: Token checked between documents and before each write.
        workers: Thread pool size for the parallel stages (None for the default).
        state: Current BuildState.
    """

    def __init__(
        self,
        project_root: Path,
        config: SiteConfig,
        *,
        output_dir: Path | None = None,
        include_drafts: bool = False,
        cancel: CancelToken | None = None,
        workers: int | None = None,
        on_state: Callable[[BuildState], None] | None = None,
    ):
        self.project_root = project_root
        self.config = config
        self.output_dir = output_dir or project_root / config.output_dir
        self.include_drafts = include_drafts
        self.cancel = cancel or CancelToken()
        self.workers = workers
        self.state = BuildState.IDLE
        self._on_state = on_state

    def _transition(self, state: BuildState) -> None:
        self.state = state
        if self._on_state is not None:
            self._on_state(state)

    def run(self, emit: bool = True) -> BuildResult:
        """Run every stage of the build.

        Args:
            emit: Write the output tree; False stops after rendering.

        Returns:
            BuildResult of the finished build.

        Raises:
            BuildError: Any fatal error; the build ends in FAILED.
            BuildCancelled: If the cancel token was set; the build ends in FAILED.
        """
        if self.state is not BuildState.IDLE:
            raise RuntimeError(f"Build already ran (state: {self.state.value})")
        try:
            return self._run(emit)
        except Exception:
            self._transition(BuildState.FAILED)
            raise

    def _run(self, emit: bool) -> BuildResult:
        config = self.config
        cancel = self.cancel
        loader = SourceLoader(self.project_root / config.content_dir)
        parser = DocumentParser(MarkdownRenderer(highlight_code=config.highlight_code))

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            self._transition(BuildState.LOADING)
            paths = loader.discover()

            def read(path: Path) -> SourceFile:
                cancel.raise_if_cancelled()
                return loader.read(path)

            sources = list(pool.map(read, paths))

            self._transition(BuildState.PARSING)

            def parse(source: SourceFile) -> Document:
                cancel.raise_if_cancelled()
                return parser.parse(source)

            corpus = list(pool.map(parse, sources))
        _check_unique_slugs(corpus)

        cancel.raise_if_cancelled()
        self._transition(BuildState.RESOLVING)
        resolution = resolve(corpus, include_drafts=self.include_drafts, base_url=config.base_url)

        cancel.raise_if_cancelled()
        self._transition(BuildState.RENDERING)
        engine = TemplateEngine(config, self.project_root / config.templates_dir)
        static = collect_static(self.project_root / config.static_dir)
        artifacts = SiteRenderer(engine, config, workers=self.workers).render(
            resolution, cancel, static=static
        )

        warnings = [w for document in resolution.documents for w in document.warnings]
        warnings.extend(resolution.warnings)
        warnings.sort(key=lambda w: (str(w.source_path), w.line or 0, w.kind, w.message))

        report = None
        if emit:
            cancel.raise_if_cancelled()
            self._transition(BuildState.EMITTING)
            report = Emitter(self.output_dir).emit(artifacts, cancel)

        self._transition(BuildState.DONE)
        return BuildResult(
            documents=resolution.documents,
            taxonomy=resolution.taxonomy,
            warnings=warnings,
            output_dir=self.output_dir,
            report=report,
            corpus=corpus,
        )


def _check_unique_slugs(corpus: list[Document]) -> None:
    """Reject two source files that map to the same identifier."""
    seen: dict[str, Document] = {}
    for document in corpus:
        previous = seen.get(document.slug)
        if previous is not None:
            raise FrontMatterError(
                document.path,
                f"Duplicate slug '{document.slug}' (also produced by {previous.path.name})",
            )
        seen[document.slug] = document


def build_site(
    project_root: Path,
    *,
    config: SiteConfig | None = None,
    config_path: Path | None = None,
    output_dir: Path | None = None,
    base_url: str | None = None,
    include_drafts: bool = False,
    cancel: CancelToken | None = None,
    emit: bool = True,
    on_state: Callable[[BuildState], None] | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        config: Pre-loaded configuration; read from the project root when None.
        config_path: Explicit configuration file to read when config is None.
        output_dir: Output directory instead of the configured one.
        base_url: Base URL overriding the configured one for this build.
        include_drafts: Whether to publish draft documents.
        cancel: Token that aborts the build when set.
        emit: Write the output tree; False only checks the site.
        on_state: Called with every state the build enters.

    Returns:
        BuildResult containing the published documents, indices and warnings.
    """
    if config is None:
        config = load_config(project_root, config_path)
    if base_url is not None:
        config = dataclasses.replace(config, base_url=base_url)
    builder = SiteBuilder(
        project_root,
        config,
        output_dir=output_dir,
        include_drafts=include_drafts,
        cancel=cancel,
        on_state=on_state,
    )
    return builder.run(emit=emit)
