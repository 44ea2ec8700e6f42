"""Shared Rich display functions for plans and run results."""

from rich.table import Table

from ghupdater.core.context import RunResult
from ghupdater.tree import ApplyReport
from ghupdater.utils.formatting import console, format_status


def create_plan_table(report: ApplyReport) -> Table:
    """Create a Rich table listing the operations of a dry-run apply.

    Args:
        report: Dry-run ApplyReport.

    Returns:
        Rich Table with one row per operation.
    """
    table = Table(
        title="Planned Changes (Dry Run)",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Action", width=10)
    table.add_column("Path", overflow="fold")

    rows = (
        [("[added]+mkdir[/added]", path) for path in report.created]
        + [("[changed]~write[/changed]", path) for path in report.written]
        + [("[added]+copy[/added]", path) for path in report.copied]
        + [("[removed]-delete[/removed]", path) for path in report.deleted]
    )
    for action, path in rows:
        table.add_row(action, path)
    return table


def print_run_result(result: RunResult) -> None:
    """Print the outcome of an update run.

    Args:
        result: Result returned by Updater.run().
    """
    console.print(f"Status: {format_status(result.status)}")
    if result.release is not None:
        console.print(f"Release: {result.release}")
    if result.cleanup_failed:
        console.print("[warning]Staging cleanup failed.[/]")
    if result.log_path is not None:
        console.print(f"[muted]Log: {result.log_path}[/]")
