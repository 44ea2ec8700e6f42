"""Logs command for viewing flushed run logs."""

from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from ghupdater.core.config import require_config
from ghupdater.core.logbook import list_log_files
from ghupdater.core.paths import StagingLayout
from ghupdater.utils.formatting import console, print_info

app = typer.Typer(
    name="logs",
    help="List and show run logs.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def logs(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of log files to list.",
            min=1,
        ),
    ] = 10,
    show: Annotated[
        bool,
        typer.Option(
            "--show",
            "-s",
            help="Print the contents of the newest log file.",
        ),
    ] = False,
) -> None:
    """List run logs, newest first.

    Examples:
        ghupdater logs
        ghupdater logs -n 3
        ghupdater logs --show
    """
    config = require_config((ctx.obj or {}).get("config"))
    layout = StagingLayout(root=config.effective_root, repository=config.repository.name)

    log_files = list_log_files(layout.log_dir)
    if not log_files:
        print_info(f"No run logs found in {layout.log_dir}")
        return

    newest_first = list(reversed(log_files))

    if show:
        console.print(newest_first[0].read_text(encoding="utf-8"), markup=False, highlight=False)
        return

    table = Table(
        title="Run Logs",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("File", style="info", no_wrap=True)
    table.add_column("Modified", style="muted")
    table.add_column("Size", justify="right")

    for path in newest_first[:limit]:
        stat = path.stat()
        modified = datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(path.name, modified, f"{stat.st_size} B")

    console.print(table)
