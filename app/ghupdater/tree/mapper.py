"""Tree walker producing flat path lists.

Walks a directory tree depth-first and returns every directory and
file below the root as an absolute path, honoring path-prefix and
file-name exclusions.
"""

import logging
import os

from ghupdater.tree.models import ExclusionRule, PathList

logger = logging.getLogger(__name__)

_NO_EXCLUSIONS = ExclusionRule()


def map_tree(root: str | os.PathLike[str], rules: ExclusionRule = _NO_EXCLUSIONS) -> PathList:
    """Enumerate a directory tree into a flat, parent-first path list.

    The walk is an explicit stack of per-directory child iterators, so
    output order matches a recursive depth-first walk: each directory is
    listed right before its own descendants. Siblings are visited in
    sorted order.

    - The root itself is never part of the result.
    - Directories are emitted without a trailing separator.
    - Children matching ``rules.paths`` are skipped with their subtree.
    - Files whose base name is in ``rules.filenames`` are skipped.
    - Entries that are neither file nor directory (e.g. removed between
      listing and stat) are skipped silently.
    - Symlinks are followed. A directory that resolves to one of its own
      ancestors is emitted but not descended into.

    Args:
        root: Directory to walk.
        rules: Exclusion rules applied to every level.

    Returns:
        List of absolute paths, parents before descendants.
    """
    root_str = _normalize_root(os.fspath(root))
    result: PathList = []

    root_identity = _dir_identity(root_str)
    if root_identity is None:
        return result

    stack = [(iter(_list_children(root_str, rules)), (root_identity,))]
    while stack:
        children, ancestors = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            continue

        if os.path.isdir(child):
            result.append(child)
            identity = _dir_identity(child)
            if identity is None:
                continue
            if identity in ancestors:
                logger.warning("Not descending into %s: directory cycle detected", child)
                continue
            stack.append((iter(_list_children(child, rules)), (*ancestors, identity)))
        elif os.path.isfile(child):
            if not rules.excludes_filename(os.path.basename(child)):
                result.append(child)

    return result


def _normalize_root(root: str) -> str:
    """Strip trailing separators from root, keeping the filesystem root intact."""
    return root.rstrip(os.sep) or os.sep


def _list_children(directory: str, rules: ExclusionRule) -> list[str]:
    """List immediate children of a directory that survive path exclusions.

    Args:
        directory: Directory to list.
        rules: Exclusion rules; only ``paths`` is consulted here.

    Returns:
        Sorted absolute child paths without trailing separators.
    """
    try:
        names = sorted(os.listdir(directory))
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning("Cannot list directory %s: %s", directory, e)
        return []

    children = [os.path.join(directory, name) for name in names]
    return [child for child in children if not rules.excludes_path(child)]


def _dir_identity(path: str) -> tuple[int, int] | None:
    """Return (device, inode) of a directory, following symlinks.

    Args:
        path: Directory path.

    Returns:
        Identity tuple, or None if the path is gone or not a directory.
    """
    try:
        stat = os.stat(path)
    except OSError:
        return None
    if not os.path.isdir(path):
        return None
    return (stat.st_dev, stat.st_ino)
