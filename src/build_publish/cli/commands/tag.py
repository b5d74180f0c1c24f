"""Implementation of the tag commands.

- ``get-last-tag`` resolves and stores the variant's tag record
- ``print-last-increased-tag`` shows the stored record without changing it
- ``stamp`` prints the version code/name a build system should apply
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel

from build_publish.cli.commands._common import fail, make_pipeline
from build_publish.core.resolver import policy_from_config
from build_publish.exceptions import BuildPublishError

if TYPE_CHECKING:
    from rich.console import Console


def run_get_last_tag(
    path: str | None,
    variant: str,
    release_name: str | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the get-last-tag command.

    Args:
        path: Optional path to project directory
        variant: Build variant name
        release_name: Explicit release name, overriding the configured policy
        console: Console for standard output
        err_console: Console for error output
    """
    pipeline = make_pipeline(path, variant, err_console)

    try:
        if release_name:
            pipeline.resolver.policy = policy_from_config(pipeline.config.tags, release_name)
        resolution = pipeline.resolve()
    except BuildPublishError as e:
        fail(err_console, f"resolving tag for {variant}", e)

    record = resolution.record
    source = (
        f"last tag [cyan]{escape(resolution.last_tag.name)}[/]"
        if resolution.last_tag
        else "[yellow]no previous tag, first release[/]"
    )
    console.print(
        Panel(
            f"Release name: [green]{escape(record.name)}[/]\n"
            f"Build number: [green]{record.build_number}[/]\n"
            f"Resolved from {source}\n\n"
            f"[dim]Saved to {escape(str(pipeline.store.path_for(variant)))}[/]",
            title=f"[green]{escape(variant)}[/]",
            border_style="green",
        )
    )


def run_print_last_increased_tag(
    path: str | None,
    variant: str,
    console: Console,
    err_console: Console,
) -> None:
    """Run the print-last-increased-tag command (read-only)."""
    pipeline = make_pipeline(path, variant, err_console, check_targets=False)

    try:
        description = pipeline.describe_last_increased_tag()
    except BuildPublishError as e:
        fail(err_console, f"reading tag state for {variant}", e)

    console.print(escape(description))


def run_stamp(
    path: str | None,
    variant: str,
    console: Console,
    err_console: Console,
) -> None:
    """Run the stamp command.

    Prints ``{"versionCode": ..., "versionName": ...}`` for the variant,
    falling back to the first-build defaults when no state exists.
    """
    pipeline = make_pipeline(path, variant, err_console, check_targets=False)

    try:
        version_code, version_name = pipeline.store.version_stamp(variant)
    except BuildPublishError as e:
        fail(err_console, f"reading tag state for {variant}", e)

    console.print_json(json.dumps({"versionCode": version_code, "versionName": version_name}))
