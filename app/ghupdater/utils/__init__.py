"""Utility modules for ghupdater.

This module exports commonly used utility functions.
"""

from ghupdater.utils.formatting import (
    console,
    err_console,
    format_status,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from ghupdater.utils.shell import CommandResult, run_command

__all__ = [
    "CommandResult",
    "console",
    "err_console",
    "format_status",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
]
