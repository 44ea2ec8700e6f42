"""Unlock command for removing a stale lock marker.

A marker left behind by a crashed run blocks every later run until it
is removed.
"""

from typing import Annotated

import typer

from ghupdater.core.config import require_config
from ghupdater.core.paths import StagingLayout
from ghupdater.tree.delete import recursive_delete
from ghupdater.utils.formatting import print_error, print_info, print_success, print_warning

app = typer.Typer(
    name="unlock",
    help="Remove a stale update lock.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def unlock(
    ctx: typer.Context,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt.",
        ),
    ] = False,
) -> None:
    """Remove the update.lock marker from the install root.

    Only do this when no update is running.

    Examples:
        ghupdater unlock
        ghupdater unlock --yes
    """
    config = require_config((ctx.obj or {}).get("config"))
    layout = StagingLayout(root=config.effective_root, repository=config.repository.name)
    lock_path = layout.lock_path

    if not lock_path.exists():
        print_info(f"No lock marker found at {lock_path}")
        return

    print_warning(f"Lock marker present: {lock_path}")
    if not yes and not _confirm_unlock():
        print_info("Aborted.")
        raise typer.Exit(code=0)

    if not recursive_delete(lock_path):
        print_error(f"Failed to remove {lock_path}")
        raise typer.Exit(code=1)
    print_success(f"Removed lock marker {lock_path}")


def _confirm_unlock() -> bool:
    """Prompt user to confirm removing the lock marker."""
    return typer.confirm("Remove it? Only do so if no update is running.", default=False)
