"""Tree synchronization models.

Defines the exclusion rules applied while walking a tree and the
result of diffing an installed tree against a release tree.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass

# Ordered absolute paths produced by a tree walk, parents before descendants.
PathList = list[str]


def with_trailing_sep(path: str) -> str:
    """Return path terminated by exactly one trailing separator."""
    return path if path.endswith(os.sep) else path + os.sep


@dataclass(frozen=True, slots=True)
class ExclusionRule:
    """Paths and file names skipped while walking a tree.

    Attributes:
        paths: Absolute paths whose whole subtree is skipped. Matched by
            prefix against separator-terminated candidate paths.
        filenames: Base names of files skipped wherever they appear.
            Never applied to directories.
    """

    paths: frozenset[str] = frozenset()
    filenames: frozenset[str] = frozenset()

    @classmethod
    def for_root(
        cls,
        root: str | os.PathLike[str],
        paths: Iterable[str] = (),
        filenames: Iterable[str] = (),
    ) -> ExclusionRule:
        """Build a rule whose relative paths are resolved against a root.

        Absolute entries are kept as-is; relative entries are joined to
        root. Trailing separators are dropped so the stored form is stable.

        Args:
            root: Root of the tree the rule applies to.
            paths: Absolute or root-relative paths to exclude.
            filenames: File base names to exclude.

        Returns:
            New ExclusionRule.
        """
        root_str = os.fspath(root)
        resolved: set[str] = set()
        for path in paths:
            if not path:
                continue
            absolute = path if os.path.isabs(path) else os.path.join(root_str, path)
            resolved.add(absolute.rstrip(os.sep) or os.sep)
        return cls(paths=frozenset(resolved), filenames=frozenset(n for n in filenames if n))

    def merged(self, other: ExclusionRule) -> ExclusionRule:
        """Return the union of this rule and another."""
        return ExclusionRule(
            paths=self.paths | other.paths,
            filenames=self.filenames | other.filenames,
        )

    def excludes_path(self, path: str) -> bool:
        """Check whether path lies inside an excluded path.

        Both sides are compared separator-terminated so that an excluded
        ``/app/vendor`` matches ``/app/vendor`` and ``/app/vendor/x`` but
        not ``/app/vendors``.

        Args:
            path: Absolute candidate path.

        Returns:
            True if the candidate is excluded.
        """
        if not self.paths:
            return False
        candidate = with_trailing_sep(path)
        return any(candidate.startswith(with_trailing_sep(p)) for p in self.paths)

    def excludes_filename(self, name: str) -> bool:
        """Check whether a file base name is excluded."""
        return name in self.filenames

    def to_dict(self) -> dict[str, list[str]]:
        """Convert to dictionary for logging and JSON output."""
        return {"paths": sorted(self.paths), "filenames": sorted(self.filenames)}


@dataclass(frozen=True, slots=True)
class DiffResult:
    """Result of diffing an installed tree against a release tree.

    All paths are relative: they begin with a separator (the root itself
    never appears).

    Attributes:
        to_apply: Every release path, in walk order. Directories are
            ensured and files written or copied in this order.
        to_delete: Installed paths missing from the release, pruned so
            that no entry lies inside another directory entry.
    """

    to_apply: tuple[str, ...]
    to_delete: tuple[str, ...]

    @property
    def is_noop(self) -> bool:
        """True when there is nothing to apply or delete."""
        return not (self.to_apply or self.to_delete)

    @property
    def total_changes(self) -> int:
        """Number of apply and delete entries."""
        return len(self.to_apply) + len(self.to_delete)

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "summary": {
                "apply": len(self.to_apply),
                "delete": len(self.to_delete),
                "total": self.total_changes,
            },
            "apply": list(self.to_apply),
            "delete": list(self.to_delete),
        }
