"""CLI package for ghupdater.

This package contains the Typer application and all subcommands.
"""

from ghupdater.cli.main import app

__all__ = ["app"]
