"""Diff engine for installed vs. release trees.

Computes which release paths to apply and which installed paths to
delete when replacing an installed tree with a freshly extracted one.
"""

import logging
import os
from collections.abc import Iterable

from ghupdater.tree.models import DiffResult, PathList

logger = logging.getLogger(__name__)


def relativize(root: str | os.PathLike[str], paths: Iterable[str]) -> list[str]:
    """Strip a root prefix from every path.

    This is a plain string-prefix strip, not a path-aware operation:
    root must be an exact prefix of every entry, as produced by
    :func:`ghupdater.tree.mapper.map_tree` for the same root.

    Args:
        root: Root the paths were mapped from.
        paths: Absolute paths below root.

    Returns:
        Relative paths, each starting with a separator.

    Raises:
        ValueError: If root is not a prefix of some path.
    """
    prefix = os.fspath(root).rstrip(os.sep)
    relative: list[str] = []
    for path in paths:
        if not path.startswith(prefix):
            msg = f"Path {path} is not below root {prefix or os.sep}"
            raise ValueError(msg)
        relative.append(path[len(prefix) :])
    return relative


def prune_nested(source_root: str | os.PathLike[str], candidates: Iterable[str]) -> set[str]:
    """Drop delete candidates that live inside another candidate directory.

    For every candidate A that is a directory under source_root, every
    other candidate starting with ``A + os.sep`` is removed: deleting A
    recursively removes it anyway, and deleting it after A would fail.

    Args:
        source_root: Root of the installed tree.
        candidates: Relative paths scheduled for deletion.

    Returns:
        Pruned set of relative paths.
    """
    root = os.fspath(source_root).rstrip(os.sep)
    remaining = set(candidates)
    for candidate in sorted(remaining, key=len):
        if candidate not in remaining:
            continue
        if not os.path.isdir(root + candidate):
            continue
        prefix = candidate + os.sep
        nested = {other for other in remaining if other.startswith(prefix)}
        remaining -= nested
    return remaining


def compute_diff(
    source_root: str | os.PathLike[str],
    source_list: PathList,
    release_root: str | os.PathLike[str],
    release_list: PathList,
) -> DiffResult:
    """Diff a mapped installed tree against a mapped release tree.

    Args:
        source_root: Root of the installed tree.
        source_list: Output of map_tree for source_root.
        release_root: Root of the extracted release tree.
        release_list: Output of map_tree for release_root.

    Returns:
        DiffResult where ``to_apply`` holds every release path in walk
        order and ``to_delete`` holds installed paths absent from the
        release, pruned and sorted.

    Raises:
        ValueError: If a list contains paths outside its root.
    """
    source_relative = relativize(source_root, source_list)
    release_relative = relativize(release_root, release_list)

    obsolete = set(source_relative) - set(release_relative)
    to_delete = prune_nested(source_root, obsolete)

    if len(to_delete) < len(obsolete):
        logger.debug("Pruned %d nested delete entries", len(obsolete) - len(to_delete))

    return DiffResult(
        to_apply=tuple(release_relative),
        to_delete=tuple(sorted(to_delete)),
    )
