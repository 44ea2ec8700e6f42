"""Run command for performing an update.

This module provides the `ghupdater run` command, which updates the
install root to the latest release if it is newer.
"""

import json
from typing import Annotated

import typer

from ghupdater.cli.display import print_run_result
from ghupdater.core.config import require_config
from ghupdater.core.context import Status
from ghupdater.core.pipeline import Updater
from ghupdater.utils.formatting import console

app = typer.Typer(
    name="run",
    help="Update the install root to the latest release.",
    invoke_without_command=True,
)

# Process exit code per final status
EXIT_CODES: dict[Status, int] = {
    Status.UPDATED: 0,
    Status.LATEST: 0,
    Status.ERROR: 1,
    Status.BUSY: 2,
}


@app.callback(invoke_without_command=True)
def run_update(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the result as JSON.",
        ),
    ] = False,
) -> None:
    """Run a full update.

    Acquires the update lock, downloads the latest release when it is
    newer than the installed version, applies it and writes a run log
    to update/log/.

    Exit codes: 0 updated or already latest, 1 error, 2 another update
    is in progress.

    Examples:
        ghupdater run
        ghupdater --config ./ghupdater.toml run --json
    """
    obj = ctx.obj or {}
    config = require_config(obj.get("config"))

    result = Updater(config).run()

    if json_output:
        console.print_json(json.dumps(result.to_dict()))
    elif not obj.get("quiet", False) or result.status is Status.ERROR:
        print_run_result(result)

    code = EXIT_CODES.get(result.status, 1)
    if code:
        raise typer.Exit(code=code)
