"""Helpers shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

from rich.markup import escape
from rich.table import Table

from build_publish.config import load_config
from build_publish.core.tags import BuildVariant
from build_publish.exceptions import BuildPublishError
from build_publish.pipeline import VariantPipeline, check_prerequisites

if TYPE_CHECKING:
    from rich.console import Console

    from build_publish.config.models import BuildPublishConfig
    from build_publish.notify.dispatcher import DispatchReport
    from build_publish.vcs.git import GitRepository

# Exit code for runs where some notification targets failed.
EXIT_PARTIAL_FAILURE = 2


def fail(err_console: Console, message: str, error: Exception | None = None) -> NoReturn:
    """Print a single-cause error and exit with code 1."""
    if error is None:
        err_console.print(f"[red]Error:[/] {escape(message)}")
    else:
        err_console.print(f"[red]Error {message}:[/] {escape(str(error))}")
    raise SystemExit(1) from error


def load_project(
    path: str | None,
    err_console: Console,
    *,
    check_targets: bool = True,
) -> tuple[BuildPublishConfig, GitRepository]:
    """Load configuration and check prerequisites; exit on failure."""
    project_path = Path(path) if path else Path.cwd()

    try:
        config = load_config(project_path)
    except BuildPublishError as e:
        fail(err_console, "loading config", e)

    try:
        repo = check_prerequisites(config, project_path, check_targets=check_targets)
    except BuildPublishError as e:
        fail(err_console, "checking prerequisites", e)

    return config, repo


def make_pipeline(
    path: str | None,
    variant: str,
    err_console: Console,
    *,
    check_targets: bool = True,
) -> VariantPipeline:
    config, repo = load_project(path, err_console, check_targets=check_targets)
    try:
        build_variant = BuildVariant(variant)
    except ValueError as e:
        fail(err_console, "in variant", e)
    return VariantPipeline(config, repo, build_variant)


def report_table(title: str, report: DispatchReport) -> Table:
    table = Table(title=title)
    table.add_column("Target")
    table.add_column("Status")
    table.add_column("Details", overflow="fold")
    for result in report.results:
        status = "[green]sent[/]" if result.ok else "[red]failed[/]"
        table.add_row(str(result.kind), status, escape(result.error or ""))
    return table
