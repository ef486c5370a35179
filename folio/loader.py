"""Source discovery for Folio.

The loader walks the content root and yields every Markdown file that
should become a document. Files and directories whose name starts with an
underscore are internal (section index files, partials) and are skipped.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import EncodingError, IoError

MARKDOWN_SUFFIXES = (".md", ".markdown")


@dataclass(frozen=True)
class SourceFile:
    """Raw text of one content file.

    Attributes:
        path: Absolute path to the file.
        rel_path: Path relative to the content root.
        text: Decoded file contents.
    """

    path: Path
    rel_path: Path
    text: str


def is_markdown(path: Path) -> bool:
    """Check if a path has a recognised Markdown extension."""
    return path.suffix.lower() in MARKDOWN_SUFFIXES


class SourceLoader:
    """Discovers and reads content files under a content root.

    Attributes:
        content_dir: Directory containing the articles.
    """

    def __init__(self, content_dir: Path):
        self.content_dir = content_dir

    def discover(self) -> list[Path]:
        """List every Markdown file under the content root.

        The result is sorted so that nothing downstream depends on the
        order in which the file system returns entries.

        Raises:
            IoError: If the content root or a directory under it cannot be read.
        """
        if not self.content_dir.is_dir():
            raise IoError(self.content_dir, "Content directory does not exist")

        def on_error(exc: OSError) -> None:
            raise IoError(
                Path(exc.filename or self.content_dir),
                f"Cannot read directory: {exc.strerror or exc}",
                original_error=exc,
            ) from exc

        files: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(self.content_dir, onerror=on_error):
            dirnames[:] = [d for d in dirnames if not d.startswith(("_", "."))]
            for name in filenames:
                if name.startswith(("_", ".")):
                    continue
                path = Path(dirpath) / name
                if is_markdown(path):
                    files.append(path)
        return sorted(files)

    def read(self, path: Path) -> SourceFile:
        """Read and decode one content file.

        Raises:
            IoError: If the file cannot be read.
            EncodingError: If the file is not valid UTF-8.
        """
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise IoError(path, f"Cannot read file: {exc.strerror or exc}", original_error=exc) from exc
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            line = raw[: exc.start].count(b"\n") + 1
            raise EncodingError(
                path, f"Invalid UTF-8 at byte {exc.start}", line=line, original_error=exc
            ) from exc
        return SourceFile(
            path=path,
            rel_path=path.relative_to(self.content_dir),
            text=text.removeprefix("\ufeff"),
        )
