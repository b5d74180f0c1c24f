"""Implementation of the 'run' command: all stages for one or more variants."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from build_publish.cli.commands._common import EXIT_PARTIAL_FAILURE, fail, load_project
from build_publish.core.tags import BuildVariant
from build_publish.exceptions import BuildPublishError
from build_publish.pipeline import run_variants

if TYPE_CHECKING:
    from rich.console import Console


def run_pipeline(
    path: str | None,
    variants: list[str],
    jobs: int | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run resolve, generate and send for each variant.

    Exit codes: 0 when everything succeeded, 1 when a variant failed,
    2 when only notification targets failed.
    """
    config, repo = load_project(path, err_console)

    try:
        build_variants = [BuildVariant(name) for name in variants]
        outcomes = run_variants(config, repo, build_variants, max_workers=jobs)
    except (ValueError, BuildPublishError) as e:
        fail(err_console, "starting pipeline", e)

    table = Table(title="build-publish")
    table.add_column("Variant")
    table.add_column("Release")
    table.add_column("Build", justify="right")
    table.add_column("Entries", justify="right")
    table.add_column("Notifications")

    variant_failed = False
    delivery_failed = False
    for outcome in outcomes:
        if outcome.error is not None or outcome.result is None:
            variant_failed = True
            table.add_row(outcome.variant, "", "", "", f"[red]{escape(str(outcome.error))}[/]")
            continue
        result = outcome.result
        report = result.report
        if report.results:
            sent = ", ".join(
                f"[green]{r.kind}[/]" if r.ok else f"[red]{r.kind}[/]" for r in report.results
            )
        else:
            sent = "[dim]none configured[/]"
        delivery_failed = delivery_failed or not report.ok
        table.add_row(
            outcome.variant,
            escape(result.resolution.record.name),
            str(result.resolution.record.build_number),
            str(len(result.changelog.entries)),
            sent,
        )

    console.print(table)
    for outcome in outcomes:
        if outcome.result is None:
            continue
        for failure in outcome.result.report.failed:
            err_console.print(
                f"[red]{escape(outcome.variant)}/{failure.kind}:[/] {escape(failure.error or '')}"
            )

    if variant_failed:
        raise SystemExit(1)
    if delivery_failed:
        raise SystemExit(EXIT_PARTIAL_FAILURE)
