"""Plan command for previewing an apply.

Diffs the install root against an already extracted release and shows
what an update would create, overwrite, copy and delete.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from ghupdater.cli.display import create_plan_table
from ghupdater.core.config import require_config
from ghupdater.core.pipeline import plan_update
from ghupdater.tree import TreeApplier
from ghupdater.utils.formatting import console, print_error, print_success

app = typer.Typer(
    name="plan",
    help="Preview the changes an update would make.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def plan(
    ctx: typer.Context,
    release_dir: Annotated[
        Path,
        typer.Option(
            "--release-dir",
            "-r",
            help="Root of an extracted release to compare against.",
            exists=True,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show the changes an update to a release tree would make.

    The install root is mapped with the configured exclusions and
    compared against the release; nothing is changed.

    Examples:
        ghupdater plan --release-dir /tmp/app-1.3.0
        ghupdater plan -r /tmp/app-1.3.0 --json
    """
    config = require_config((ctx.obj or {}).get("config"))
    root = config.effective_root
    if not root.is_dir():
        print_error(f"Install root not found: {root}")
        raise typer.Exit(code=1)

    diff = plan_update(config, release_dir)
    report = TreeApplier(dry_run=True).apply(release_dir, root, diff)

    if json_output:
        data = {
            **diff.to_dict(),
            "created": list(report.created),
            "written": list(report.written),
            "copied": list(report.copied),
            "deleted": list(report.deleted),
        }
        console.print_json(json.dumps(data))
        return

    if report.total == 0:
        print_success("Install root already matches the release.")
        return

    console.print(create_plan_table(report))
    console.print(
        f"\n[added]{len(report.created) + len(report.copied)}[/] to add, "
        f"[changed]{len(report.written)}[/] to overwrite, "
        f"[removed]{len(report.deleted)}[/] to delete"
    )
