"""Command line entry point for build-publish."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from build_publish import __version__
from build_publish.cli.commands.changelog import run_generate_changelog, run_send_changelog
from build_publish.cli.commands.run import run_pipeline
from build_publish.cli.commands.tag import (
    run_get_last_tag,
    run_print_last_increased_tag,
    run_stamp,
)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Build numbers, changelogs and release notifications per build variant.",
)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )
    # request URLs can embed credentials
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    path: str | None = typer.Option(None, "--path", "-p", help="Project directory."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    setup_logging(verbose)
    ctx.obj = {"path": path}


@app.command("get-last-tag")
def get_last_tag(
    ctx: typer.Context,
    variant: str = typer.Argument(..., help="Build variant name."),
    release_name: str | None = typer.Option(
        None, "--release-name", help="Use this release name instead of the configured policy."
    ),
) -> None:
    """Resolve the next build number from git tags and store it."""
    run_get_last_tag(ctx.obj["path"], variant, release_name, console, err_console)


@app.command("print-last-increased-tag")
def print_last_increased_tag(
    ctx: typer.Context,
    variant: str = typer.Argument(..., help="Build variant name."),
) -> None:
    """Show the stored tag record of a variant."""
    run_print_last_increased_tag(ctx.obj["path"], variant, console, err_console)


@app.command("generate-changelog")
def generate_changelog(
    ctx: typer.Context,
    variant: str = typer.Argument(..., help="Build variant name."),
) -> None:
    """Write the changelog of commits since the variant's last tag."""
    run_generate_changelog(ctx.obj["path"], variant, console, err_console)


@app.command("send-changelog")
def send_changelog(
    ctx: typer.Context,
    variant: str = typer.Argument(..., help="Build variant name."),
) -> None:
    """Send the generated changelog to the configured targets."""
    run_send_changelog(ctx.obj["path"], variant, console, err_console)


@app.command("stamp")
def stamp(
    ctx: typer.Context,
    variant: str = typer.Argument(..., help="Build variant name."),
) -> None:
    """Print the version code and name for a variant as JSON."""
    run_stamp(ctx.obj["path"], variant, console, err_console)


@app.command("run")
def run(
    ctx: typer.Context,
    variants: list[str] = typer.Argument(..., help="Build variant names."),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Parallel variants."),
) -> None:
    """Resolve, generate and send for each variant."""
    run_pipeline(ctx.obj["path"], variants, jobs, console, err_console)


def main() -> None:
    app()
