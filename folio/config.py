"""Site configuration for Folio.

The configuration is read once from ``config.toml`` (or ``config.yaml`` /
``config.yml``) at the project root and is immutable afterwards. CLI
overrides produce a new instance with ``dataclasses.replace``.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_FILENAMES = ("config.toml", "config.yaml", "config.yml")


@dataclass(frozen=True)
class SiteConfig:
    """Process-wide site settings.

    Attributes:
        base_url: Absolute URL the site is published under, or "" for root-relative links.
        title: Site title used by the built-in templates and the feed.
        description: Site description for the feed and index page.
        default_language: Value of the ``lang`` attribute on every page.
        content_dir: Content root, relative to the project root.
        output_dir: Output root, relative to the project root.
        static_dir: Directory copied verbatim into the output root.
        templates_dir: Directory searched for user templates before the built-in ones.
        generate_feed: Emit ``rss.xml`` when a base URL is set.
        generate_sitemap: Emit ``sitemap.xml`` when a base URL is set.
        highlight_code: Run fenced code through Pygments.
        highlight_theme: Pygments style used for ``highlight.css``.
        extra: Free-form ``[extra]`` table exposed to templates.
    """

    base_url: str = ""
    title: str = ""
    description: str = ""
    default_language: str = "en"
    content_dir: str = "content"
    output_dir: str = "public"
    static_dir: str = "static"
    templates_dir: str = "templates"
    generate_feed: bool = True
    generate_sitemap: bool = True
    highlight_code: bool = True
    highlight_theme: str = "default"
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


_STRING_KEYS = (
    "base_url",
    "title",
    "description",
    "default_language",
    "content_dir",
    "output_dir",
    "static_dir",
    "templates_dir",
)
_BOOL_KEYS = ("generate_feed", "generate_sitemap")


def find_config(project_root: Path) -> Path | None:
    """Return the first configuration file present in the project root."""
    for name in CONFIG_FILENAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def load_config(project_root: Path, config_path: Path | None = None) -> SiteConfig:
    """Load site configuration, applying defaults for anything not set.

    Args:
        project_root: Root directory of the project.
        config_path: Explicit configuration file; defaults to the first of
            config.toml, config.yaml, config.yml found in the project root.

    Returns:
        A frozen SiteConfig.

    Raises:
        ConfigError: If the file cannot be read, parsed, or has wrongly-typed values.
    """
    path = config_path or find_config(project_root)
    if path is None:
        return SiteConfig()
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(path, f"Cannot read configuration: {exc}", original_error=exc) from exc

    if path.suffix == ".toml":
        try:
            loaded = tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(path, f"Invalid TOML: {exc}", original_error=exc) from exc
    else:
        try:
            loaded = yaml.safe_load(raw) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(path, f"Invalid YAML: {exc}", original_error=exc) from exc
    if not isinstance(loaded, dict):
        raise ConfigError(path, "Configuration must be a table of settings")
    return config_from_mapping(loaded, path)


def config_from_mapping(data: Mapping[str, Any], source: Path) -> SiteConfig:
    """Build a SiteConfig from an already-parsed mapping."""
    values: dict[str, Any] = {}
    for key in _STRING_KEYS:
        if key in data:
            values[key] = _expect(data[key], str, key, source)
    for key in _BOOL_KEYS:
        if key in data:
            values[key] = _expect(data[key], bool, key, source)

    markdown = data.get("markdown", {})
    if not isinstance(markdown, dict):
        raise ConfigError(source, "'markdown' must be a table")
    if "highlight_code" in markdown:
        values["highlight_code"] = _expect(
            markdown["highlight_code"], bool, "markdown.highlight_code", source
        )
    if "highlight_theme" in markdown:
        values["highlight_theme"] = _expect(
            markdown["highlight_theme"], str, "markdown.highlight_theme", source
        )

    extra = data.get("extra", {})
    if not isinstance(extra, dict):
        raise ConfigError(source, "'extra' must be a table")
    values["extra"] = MappingProxyType(dict(extra))
    return SiteConfig(**values)


def _expect(value: Any, kind: type, key: str, source: Path) -> Any:
    if not isinstance(value, kind):
        raise ConfigError(
            source, f"'{key}' must be a {kind.__name__}, got {type(value).__name__}"
        )
    return value
