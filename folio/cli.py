"""Command-line interface for Folio.

Commands:
- build: Build the site into the output directory.
- serve: Build, serve the output over HTTP, and rebuild on changes.
- check: Run the pipeline without writing anything and report problems.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path

import click

from . import __version__
from .config import SiteConfig, load_config
from .errors import BuildError, BuildWarning


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option(
    "--root",
    "-r",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project directory containing content/, static/, templates/ and the config file",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: config.toml, config.yaml or config.yml in the root)",
)
@click.pass_context
def cli(ctx: click.Context, root: Path, config_path: Path | None):
    """Folio static blog generator."""
    ctx.obj = {"root": root.resolve(), "config_path": config_path}


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--base-url", "-u", default=None, help="Override the configured base URL")
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (default: public)",
)
@click.pass_obj
def build(obj: dict, drafts: bool, base_url: str | None, output_dir: Path | None):
    """Build the site into the output directory."""
    from .build import build_site

    project_root = obj["root"]
    try:
        config = _load(obj, base_url)
        result = build_site(
            project_root,
            config=config,
            output_dir=output_dir.resolve() if output_dir else None,
            include_drafts=drafts,
        )
    except BuildError as exc:
        _fail(exc, project_root)
    _echo_warnings(result.warnings, project_root)
    click.echo(
        f"Built {len(result.documents)} documents into {result.output_dir} "
        f"({len(result.warnings)} warnings)"
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.pass_obj
def check(obj: dict, drafts: bool):
    """Check the site without writing any output."""
    from .build import build_site

    project_root = obj["root"]
    try:
        result = build_site(
            project_root, config=_load(obj, None), include_drafts=drafts, emit=False
        )
    except BuildError as exc:
        _fail(exc, project_root)
    _echo_warnings(result.warnings, project_root)
    click.echo(
        f"Checked {len(result.documents)} documents ({len(result.warnings)} warnings)"
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--interface", "-i", default="127.0.0.1", show_default=True, help="Interface to bind to")
@click.option("--port", "-p", type=int, default=1111, show_default=True, help="Port to bind to")
@click.option(
    "--base-url",
    "-u",
    default=None,
    help="Override the base URL (default: http://<interface>:<port>)",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (default: public)",
)
@click.pass_obj
def serve(
    obj: dict,
    drafts: bool,
    interface: str,
    port: int,
    base_url: str | None,
    output_dir: Path | None,
):
    """Build, serve the site over HTTP, and rebuild on changes."""
    from .server import DevServer

    project_root = obj["root"]
    try:
        config = _load(obj, None)
        server = DevServer(
            project_root,
            config,
            interface=interface,
            port=port,
            base_url=base_url,
            output_dir=output_dir.resolve() if output_dir else None,
            include_drafts=drafts,
            config_path=obj["config_path"],
        )
        server.start()
    except BuildError as exc:
        _fail(exc, project_root)


def _load(obj: dict, base_url: str | None) -> SiteConfig:
    config = load_config(obj["root"], obj["config_path"])
    if base_url is not None:
        config = dataclasses.replace(config, base_url=base_url)
    return config


def _display_path(path: Path, project_root: Path) -> str:
    try:
        return str(path.relative_to(project_root))
    except ValueError:
        return str(path)


def _fail(exc: BuildError, project_root: Path):
    """Print a build error and exit with a non-zero status."""
    location = _display_path(exc.source_path, project_root)
    if exc.line is not None:
        location = f"{location}:{exc.line}"
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    click.echo(click.style(f"  File: {location}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {exc.kind}: {exc.message}", fg="white"), err=True)
    raise SystemExit(1) from None


def _echo_warnings(warnings: list[BuildWarning], project_root: Path) -> None:
    for warning in warnings:
        location = _display_path(warning.source_path, project_root)
        if warning.line is not None:
            location = f"{location}:{warning.line}"
        click.echo(
            click.style(f"Warning: {warning.kind}: {location}: {warning.message}", fg="yellow"),
            err=True,
        )


def main():
    """Entry point for the CLI application."""
    cli()
