"""Error kinds raised during a Folio build.

Every fatal condition is a subclass of BuildError and carries the offending
source path so the CLI can point the author at the file. Non-fatal findings
are collected as BuildWarning records and reported at the end of a build.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        line: 1-based line number within the file, when known.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        line: int | None = None,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.line = line
        self.original_error = original_error
        super().__init__(f"{self.kind}: {self.location}: {message}")

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def location(self) -> str:
        if self.line is None:
            return str(self.source_path)
        return f"{self.source_path}:{self.line}"


class IoError(BuildError):
    """A directory or file could not be read."""


class EncodingError(BuildError):
    """A source file is not valid UTF-8."""


class FrontMatterError(BuildError):
    """Front-matter is missing, malformed, or lacks a required field."""


class MarkdownError(BuildError):
    """The Markdown body could not be parsed."""


class RenderError(BuildError):
    """A template or the highlighter failed."""


class EmitError(BuildError):
    """An artifact could not be written or renamed into place."""


class ConfigError(BuildError):
    """The site configuration file is malformed."""


class BuildCancelled(Exception):
    """Raised when a build notices its cancellation token was set."""


@dataclass(frozen=True)
class BuildWarning:
    """A non-fatal finding reported once the build completes.

    Attributes:
        kind: Warning kind, e.g. "LinkWarning" or "FootnoteWarning".
        source_path: File the warning is about.
        message: Human-readable description.
        line: 1-based line number within the file, when known.
    """

    kind: str
    source_path: Path
    message: str
    line: int | None = None

    def __str__(self) -> str:
        location = str(self.source_path)
        if self.line is not None:
            location = f"{location}:{self.line}"
        return f"{self.kind}: {location}: {self.message}"


LINK_WARNING = "LinkWarning"
FOOTNOTE_WARNING = "FootnoteWarning"
