"""Implementation of the generate-changelog and send-changelog commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape

from build_publish.cli.commands._common import (
    EXIT_PARTIAL_FAILURE,
    fail,
    make_pipeline,
    report_table,
)
from build_publish.core.tags import TagRecord
from build_publish.exceptions import BuildPublishError

if TYPE_CHECKING:
    from rich.console import Console


def run_generate_changelog(
    path: str | None,
    variant: str,
    console: Console,
    err_console: Console,
) -> None:
    """Run the generate-changelog command.

    Uses the stored tag record as the start of the range; without one, the
    whole history is scanned.
    """
    pipeline = make_pipeline(path, variant, err_console)

    try:
        record = pipeline.store.load(variant)
        artifact = pipeline.generate_changelog(record)
    except BuildPublishError as e:
        fail(err_console, f"generating changelog for {variant}", e)

    if artifact.is_empty:
        console.print("[yellow]No release-worthy commits found. Changelog is empty.[/]")
    else:
        for entry in artifact.entries:
            console.print(f"  {escape(entry.text)}")
    console.print(
        f"\n[green]✓[/] Wrote {len(artifact.entries)} entries to "
        f"[cyan]{escape(str(artifact.path))}[/]"
    )


def run_send_changelog(
    path: str | None,
    variant: str,
    console: Console,
    err_console: Console,
) -> None:
    """Run the send-changelog command.

    Exits with code 2 when at least one target failed.
    """
    pipeline = make_pipeline(path, variant, err_console)

    try:
        record = pipeline.store.load(variant) or TagRecord.default(variant)
        artifact = pipeline.load_changelog()
    except BuildPublishError as e:
        fail(err_console, f"preparing changelog for {variant}", e)

    report = pipeline.send_changelog(artifact, record)
    if not report.results:
        console.print("[yellow]No notification targets configured. Nothing sent.[/]")
        return

    console.print(report_table(f"Changelog for {variant}", report))
    if not report.ok:
        raise SystemExit(EXIT_PARTIAL_FAILURE)
