"""Artifact emission for Folio.

The emitter owns the output directory for the duration of a build. Each
artifact is written to a sibling temporary file and renamed into place, so
readers never see a half-written page. Files the current build no longer
produces are removed only after every new artifact is in place.

Key components:
- Artifact: A relative output path and its bytes.
- collect_static: Reads the static directory into artifacts.
- Emitter: Writes artifacts atomically and prunes stale files.
"""

from __future__ import annotations

import contextlib
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .cancel import CancelToken
from .errors import EmitError, IoError

TEMP_SUFFIX = ".folio-tmp"


@dataclass(frozen=True)
class Artifact:
    """A file to be written to the output tree.

    Attributes:
        path: POSIX path relative to the output root, e.g. ``hello/index.html``.
        data: File contents.
        source: Document, template or static file the artifact came from.
    """

    path: str
    data: bytes
    source: Path | None = field(default=None, compare=False)

    @classmethod
    def text(cls, path: str, content: str, source: Path | None = None) -> Artifact:
        return cls(path, content.encode("utf-8"), source)


@dataclass
class EmitReport:
    """What an emission changed in the output tree."""

    written: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def collect_static(static_dir: Path) -> list[Artifact]:
    """Read every file under the static directory into artifacts.

    Args:
        static_dir: Directory copied verbatim to the output root.

    Returns:
        Artifacts in path order; empty if the directory does not exist.

    Raises:
        IoError: If a static file cannot be read.
    """
    if not static_dir.is_dir():
        return []
    artifacts: list[Artifact] = []
    for path in sorted(static_dir.rglob("*")):
        if path.is_dir():
            continue
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise IoError(path, f"Cannot read static file: {exc.strerror or exc}", original_error=exc) from exc
        artifacts.append(Artifact(path.relative_to(static_dir).as_posix(), data, path))
    return artifacts


class Emitter:
    """Writes artifacts into an output directory.

    Emission has two phases. Every changed artifact is first staged in a
    sibling temporary file; if staging fails or the build is cancelled, the
    staged files and any directories created for them are removed and the
    output tree is left as it was. Staged files are then renamed over their
    targets, and finally files the build no longer produces are pruned.

    Attributes:
        output_dir: Root of the output tree.
    """

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir

    def emit(self, artifacts: Iterable[Artifact], cancel: CancelToken | None = None) -> EmitReport:
        """Write all artifacts, then remove files no longer produced.

        Artifacts whose bytes already match the file on disk are left alone.
        Two artifacts with the same path are rejected.

        Args:
            artifacts: Artifacts produced by the build.
            cancel: Checked before each artifact is staged.

        Returns:
            EmitReport listing written, unchanged and removed paths.

        Raises:
            EmitError: If two artifacts share a path, or a file cannot be written,
                renamed or removed.
            BuildCancelled: If the token is set while staging.
        """
        by_path: dict[str, Artifact] = {}
        for artifact in artifacts:
            if artifact.path in by_path:
                raise EmitError(
                    self.output_dir / artifact.path,
                    f"Two artifacts share the output path {artifact.path}",
                )
            by_path[artifact.path] = artifact
        report = EmitReport()
        produced: set[Path] = set()
        staged: list[tuple[Path, Path, str]] = []
        created: list[Path] = []

        try:
            for rel, artifact in sorted(by_path.items()):
                if cancel is not None:
                    cancel.raise_if_cancelled()
                target = self._target(rel)
                produced.add(target)
                if target.is_file() and target.read_bytes() == artifact.data:
                    report.unchanged.append(rel)
                    continue
                staged.append((self._stage(target, artifact.data, created), target, rel))
        except Exception:
            self._discard(staged, created)
            raise

        for tmp, target, rel in staged:
            self._commit(tmp, target)
            report.written.append(rel)
        report.removed = self._remove_stale(produced)
        return report

    def _target(self, rel: str) -> Path:
        pure = PurePosixPath(rel)
        if pure.is_absolute() or not pure.parts or ".." in pure.parts:
            raise EmitError(self.output_dir / rel, f"Refusing to write outside the output directory: {rel}")
        return self.output_dir.joinpath(*pure.parts)

    def _stage(self, target: Path, data: bytes, created: list[Path]) -> Path:
        """Write data to a temporary file beside the target."""
        tmp = target.with_name(f".{target.name}{TEMP_SUFFIX}")
        try:
            _make_dirs(target.parent, created)
            if target.is_dir():
                raise IsADirectoryError(21, "Is a directory", str(target))
            tmp.write_bytes(data)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise EmitError(target, f"Cannot write artifact: {exc.strerror or exc}", original_error=exc) from exc
        return tmp

    def _commit(self, tmp: Path, target: Path) -> None:
        try:
            os.replace(tmp, target)
        except OSError as exc:
            raise EmitError(target, f"Cannot move artifact into place: {exc.strerror or exc}", original_error=exc) from exc

    def _discard(self, staged: list[tuple[Path, Path, str]], created: list[Path]) -> None:
        """Undo staging: remove temporary files and the directories made for them."""
        with contextlib.suppress(OSError):
            for tmp, _target, _rel in staged:
                tmp.unlink(missing_ok=True)
            for directory in reversed(created):
                if not any(directory.iterdir()):
                    directory.rmdir()

    def _remove_stale(self, produced: set[Path]) -> list[str]:
        """Delete files not produced by this build and prune empty directories."""
        if not self.output_dir.is_dir():
            return []
        removed: list[str] = []
        try:
            entries = sorted(self.output_dir.rglob("*"), reverse=True)
            for path in entries:
                if path.is_dir() and not path.is_symlink():
                    if not any(path.iterdir()):
                        path.rmdir()
                    continue
                if path not in produced:
                    path.unlink()
                    removed.append(path.relative_to(self.output_dir).as_posix())
        except OSError as exc:
            raise EmitError(
                Path(exc.filename or self.output_dir),
                f"Cannot remove stale output: {exc.strerror or exc}",
                original_error=exc,
            ) from exc
        return sorted(removed)


def _make_dirs(directory: Path, created: list[Path]) -> None:
    """Create a directory and its missing parents, recording each one made."""
    missing: list[Path] = []
    current = directory
    while not current.exists():
        missing.append(current)
        current = current.parent
    for path in reversed(missing):
        path.mkdir()
        created.append(path)
