"""Folio static blog generator.

Folio turns a directory of Markdown articles with ``+++`` TOML front-matter
into a static HTML site: one page per article, a date-ordered index, and
one index per tag. It can also serve the result locally and rebuild it
whenever the sources change.

The main entry point is the CLI module, which provides the build, serve
and check commands.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
