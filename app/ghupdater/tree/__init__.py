"""Tree synchronization module.

This module provides the tree walker, the installed-vs-release diff
engine, the applier that writes a release over an installed tree, and
recursive deletion.
"""

from ghupdater.tree.applier import ApplyReport, TreeApplier
from ghupdater.tree.delete import recursive_delete
from ghupdater.tree.differ import compute_diff, prune_nested, relativize
from ghupdater.tree.mapper import map_tree
from ghupdater.tree.models import DiffResult, ExclusionRule, PathList

__all__ = [
    "ApplyReport",
    "DiffResult",
    "ExclusionRule",
    "PathList",
    "TreeApplier",
    "compute_diff",
    "map_tree",
    "prune_nested",
    "recursive_delete",
    "relativize",
]
