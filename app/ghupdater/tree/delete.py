"""Recursive removal of files and directory trees."""

import logging
import os
from collections.abc import Callable

logger = logging.getLogger(__name__)


def recursive_delete(
    path: str | os.PathLike[str],
    on_remove: Callable[[str], None] | None = None,
) -> bool:
    """Remove a file, or a directory tree children-first.

    Directories are emptied depth-first before being removed. Symlinks
    (to files or directories) are unlinked and never descended into.
    Removal stops at the first error.

    Args:
        path: File or directory to remove.
        on_remove: Optional callback invoked with each path right after
            it is removed. A directory is always reported after all of
            its descendants.

    Returns:
        True if path no longer exists afterwards (including when it was
        already absent), False otherwise.
    """
    target = os.fspath(path)
    try:
        _remove_tree(target, on_remove)
    except OSError as e:
        logger.warning("Failed to delete %s: %s", target, e)
    return not os.path.lexists(target)


def _remove_tree(target: str, on_remove: Callable[[str], None] | None) -> None:
    """Post-order removal using an explicit stack."""
    if not os.path.lexists(target):
        return

    # Each frame is (path, expanded); a directory is removed the second
    # time it is popped, once all of its children were handled.
    stack: list[tuple[str, bool]] = [(target, False)]
    while stack:
        current, expanded = stack.pop()
        if os.path.isdir(current) and not os.path.islink(current):
            if expanded:
                os.rmdir(current)
                _notify(on_remove, current)
                continue
            stack.append((current, True))
            for name in os.listdir(current):
                stack.append((os.path.join(current, name), False))
        elif os.path.lexists(current):
            os.unlink(current)
            _notify(on_remove, current)


def _notify(on_remove: Callable[[str], None] | None, path: str) -> None:
    if on_remove is not None:
        on_remove(path)
