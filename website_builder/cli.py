"""Command-line interface for website-builder.

This module defines the CLI commands using the Click framework. Each command
maps its flags onto a BuildConfig, runs the matching pipeline synchronously
and exits with status 1 on failure.

Commands:
- build: Build pages from content, structure files and layouts.
- assets: Copy assets unchanged to the target directory.
- sass: Compile Sass files to CSS.
- clean: Empty the target directory.
- test: Run the project's tests with pytest.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import traceback
from pathlib import Path

import click

from . import __version__
from .build import BuildResult, build_assets, build_pages, build_sass, clean_target
from .config import BuildConfig
from .errors import BuildError

logger = logging.getLogger("website_builder")


@click.group()
@click.version_option(version=__version__, prog_name="website-builder")
@click.option(
    "-w",
    "--workdir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Base working directory (defaults to current working directory).",
)
@click.option(
    "-t",
    "--target",
    help="Target build directory; relative to working directory (default is ./build).",
)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and tracebacks on failure.")
@click.pass_context
def cli(ctx: click.Context, workdir: Path | None, target: str | None, verbose: bool):
    """Build a static website from content, structure files and layouts."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj.update(workdir=workdir, target=target, verbose=verbose)


@cli.command()
@click.option("-l", "--layouts", help="Directory containing layouts (default is ./layouts).")
@click.option("-c", "--content", help="Directory containing contents (default is ./content).")
@click.option("-s", "--structure", help="Directory containing structure files (default is ./structure).")
@click.option("--minify/--no-minify", default=None, help="Minify rendered HTML.")
@click.option("--clean/--no-clean", default=None, help="Empty the target before writing (default: clean).")
@click.pass_context
def build(ctx: click.Context, layouts, content, structure, minify, clean):
    """Build website using structure files, layouts and contents.

    \b
    Examples:
      website-builder build
      website-builder -w /home/user/projects/website build \\
          --layouts src/layout --content src/content --structure structure
    """
    config = _config(ctx, layouts=layouts, content=content, structure=structure, minify=minify, clean=clean)
    result = build_pages(config)
    _finish(ctx, "Build", result)
    click.echo(f"Built {len(result.files)} files into {result.output_dir}")


@cli.command()
@click.option("-a", "--assets", help="Directory containing assets (default is ./assets).")
@click.option("-o", "--assets-target", help="Target assets folder relative to build directory.")
@click.pass_context
def assets(ctx: click.Context, assets, assets_target):
    """Copy assets to the target folder with no change.

    \b
    Examples:
      website-builder assets --assets src/assets -o assets
    """
    config = _config(ctx, assets=assets, assets_target=assets_target)
    result = build_assets(config)
    _finish(ctx, "Assets", result)
    click.echo(f"Copied {len(result.files)} assets into {config.target / config.assets_target}")


@cli.command("sass")
@click.option("-s", "--sass", "sass_dir", help="Directory containing sass files (default is ./sass).")
@click.option("-o", "--output-dir", help="Output directory relative to build directory (default is assets/css).")
@click.option("--dev/--production", default=None, help="Readable output with source maps, or compressed.")
@click.pass_context
def sass_command(ctx: click.Context, sass_dir, output_dir, dev):
    """Build sass files.

    \b
    Examples:
      website-builder sass --sass src/scss -o assets/css --dev
    """
    config = _config(ctx, sass=sass_dir, sass_target=output_dir, dev=dev)
    result = build_sass(config)
    _finish(ctx, "Sass", result)
    click.echo(f"Compiled sass into {config.target / config.sass_target}")


@cli.command("clean")
@click.pass_context
def clean_command(ctx: click.Context):
    """Remove everything inside the target directory."""
    config = _config(ctx)
    try:
        cleaned = clean_target(config)
    except BuildError as exc:
        _finish(ctx, "Clean", BuildResult.failure("clean", exc))
        return
    click.echo(f"Cleaned {cleaned}")


@cli.command("test")
@click.option("-d", "--directory", default="test", show_default=True, help="Directory containing tests.")
@click.option("-p", "--pattern", default="test_*.py", show_default=True, help="Test file name pattern.")
@click.pass_context
def test_command(ctx: click.Context, directory: str, pattern: str):
    """Run the project's tests with pytest."""
    config = _config(ctx)
    test_dir = config.workdir / directory
    if not test_dir.is_dir():
        raise click.ClickException(f"Test directory not found: {test_dir}")
    cmd = [sys.executable, "-m", "pytest", str(test_dir), "-o", f"python_files={pattern}"]
    logger.debug("Running %s", " ".join(cmd))
    completed = subprocess.run(cmd, cwd=config.workdir)
    ctx.exit(completed.returncode)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="website-builder %(levelname)s %(message)s",
    )
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _config(ctx: click.Context, **overrides) -> BuildConfig:
    """Resolve configuration from global options and command overrides."""
    try:
        config = BuildConfig.resolve(ctx.obj["workdir"], target=ctx.obj["target"], **overrides)
    except BuildError as exc:
        _finish(ctx, "Configuration", BuildResult.failure("configuration", exc))
        raise  # pragma: no cover - _finish exits
    logger.debug("Working directory: %s", config.workdir)
    logger.debug("Build target: %s", config.target)
    return config


def _finish(ctx: click.Context, title: str, result: BuildResult) -> None:
    """Display a failed result and exit with status 1; no-op on success."""
    if result.ok:
        return
    error = result.error
    click.echo(click.style(f"{title} failed:", fg="red", bold=True), err=True)
    click.echo(click.style(f"  Stage: {result.stage}", fg="yellow"), err=True)
    if error is not None:
        if error.path:
            click.echo(click.style(f"  File: {error.path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {error.kind}: {error.message}", fg="white"), err=True)
        if ctx.obj.get("verbose"):
            click.echo(
                "".join(traceback.format_exception(type(error), error, error.__traceback__)),
                err=True,
            )
    raise SystemExit(1)


def main():
    """Entry point for the CLI application."""
    cli(obj={})
