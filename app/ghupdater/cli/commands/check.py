"""Check command for comparing installed and latest versions."""

import json
from typing import Annotated

import typer

from ghupdater.core.config import require_config
from ghupdater.core.errors import UpdaterError
from ghupdater.core.pipeline import Updater
from ghupdater.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    name="check",
    help="Check whether a newer release is available.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def check(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Fetch the latest release and compare it with the installed version.

    Nothing is locked, downloaded or changed.

    Examples:
        ghupdater check
        ghupdater check --json
    """
    config = require_config((ctx.obj or {}).get("config"))

    try:
        info, newer = Updater(config).check()
    except UpdaterError as e:
        print_error(f"Check failed: {e}")
        raise typer.Exit(code=1) from e

    if json_output:
        data = {
            "installed": config.version,
            "latest": info.tag,
            "update_available": newer,
            "artifact_url": info.artifact_url,
        }
        console.print_json(json.dumps(data))
        return

    if newer:
        print_success(f"Update available: {config.version} -> {info.tag}")
    else:
        print_info(f"Up to date: {config.version} (latest release {info.tag})")
