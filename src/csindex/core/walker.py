"""
Corpus walker for csindex.

Depth-first traversal of a root path that yields every visited entry
annotated with its exclusion decision. Symlinks are never followed.
"""

import logging
import os
import stat
from dataclasses import dataclass
from typing import Iterator, Optional

from csindex.core.exclusion import Decision, ExclusionFilter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalkEntry:
    """
    One filesystem entry visited by the walker.

    Attributes:
        path: Full path of the entry
        is_dir: True for a directory (a symlink to a directory is not one)
        is_file: True for a plain regular file
        decision: Exclusion decision for the entry
        error: Error met while visiting the entry, if any
    """

    path: str
    is_dir: bool
    is_file: bool
    decision: Decision
    error: Optional[OSError] = None

    @property
    def indexable(self) -> bool:
        return self.error is None and self.is_file and self.decision is Decision.INCLUDE


class CorpusWalker:
    """
    Pull-based directory walker.

    The generators returned by walk() and files() are lazy, finite and
    non-restartable. Per-entry errors are logged and never stop the walk.
    """

    def __init__(self, exclusion_filter: ExclusionFilter):
        self._filter = exclusion_filter

    def files(self, root: str) -> Iterator[str]:
        """Yield the paths of indexable regular files under root."""
        for entry in self.walk(root):
            if entry.indexable:
                yield entry.path

    def walk(self, root: str) -> Iterator[WalkEntry]:
        """
        Walk root depth-first, children in lexical order.

        Args:
            root: Root path to traverse

        Yields:
            WalkEntry for every entry visited, including skipped ones
        """
        try:
            st = os.lstat(root)
        except OSError as e:
            logger.warning(f"{root}: {e}")
            yield WalkEntry(root, False, False, Decision.SKIP_ENTRY, error=e)
            return

        entry, children = self._enter(root, stat.S_ISDIR(st.st_mode), stat.S_ISREG(st.st_mode))
        yield entry

        # Sorted children of each open directory, innermost last
        pending: list[Iterator[os.DirEntry]] = []
        if children is not None:
            pending.append(iter(children))

        while pending:
            child = next(pending[-1], None)
            if child is None:
                pending.pop()
                continue

            try:
                child_is_dir = child.is_dir(follow_symlinks=False)
                child_is_file = child.is_file(follow_symlinks=False)
            except OSError as e:
                logger.warning(f"{child.path}: {e}")
                yield WalkEntry(child.path, False, False, Decision.SKIP_ENTRY, error=e)
                continue

            entry, children = self._enter(child.path, child_is_dir, child_is_file)
            yield entry
            if children is not None:
                pending.append(iter(children))

    def _enter(
        self, path: str, is_dir: bool, is_file: bool
    ) -> tuple[WalkEntry, Optional[list[os.DirEntry]]]:
        """Classify one entry and list its children if it is to be descended."""
        decision = self._filter.classify(path, is_dir)

        if decision is Decision.SKIP_SUBTREE:
            pattern = self._filter.matching_pattern(path)
            if pattern is not None:
                logger.debug(f"skipping dir (due to exclusion {pattern.source!r}): {path}")
            else:
                logger.debug(f"skipping hidden dir: {path}")
            return WalkEntry(path, is_dir, is_file, decision), None

        if not is_dir:
            if decision is Decision.SKIP_ENTRY:
                logger.debug(f"skipping hidden file: {path}")
            return WalkEntry(path, is_dir, is_file, decision), None

        try:
            with os.scandir(path) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.warning(f"{path}: {e}")
            return WalkEntry(path, is_dir, is_file, decision, error=e), None

        return WalkEntry(path, is_dir, is_file, decision), children
