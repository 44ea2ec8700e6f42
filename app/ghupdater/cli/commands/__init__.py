"""CLI commands for ghupdater.

This package contains all subcommand implementations.
"""

from ghupdater.cli.commands import check, logs, plan, run, unlock

__all__ = ["check", "logs", "plan", "run", "unlock"]
