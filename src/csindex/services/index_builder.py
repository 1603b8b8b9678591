"""
Index Build Service for csindex.

Drives one indexing run: resolve roots, walk them into a staging artifact,
then publish it. In reset mode the staging artifact is written straight to
the master path. In incremental mode it is merged with the current master
into a second temporary artifact which then replaces the master with a
single rename.

The master is never written in place. If anything fails before that rename
the previous master stays valid and readable.
"""

import logging
import os
import time
from pathlib import Path
from typing import Iterable, Optional

from csindex.core.exclusion import ExclusionFilter
from csindex.core.roots import resolve_roots
from csindex.core.walker import CorpusWalker
from csindex.infrastructure.index_store import IndexStore, IndexStoreError
from csindex.infrastructure.index_store.store import PART_SUFFIX
from csindex.services.build_models import BuildMode, BuildRequest, BuildResult, RunState

logger = logging.getLogger(__name__)

STAGING_SUFFIX = "~"
MERGED_SUFFIX = "~~"


class IndexBuildService:
    """
    Service for building and publishing the master index.

    Single-threaded; two runs against the same master must not overlap.
    """

    def __init__(
        self,
        index_path: Path | str,
        store: IndexStore,
        exclusion_filter: ExclusionFilter,
        verbose: bool = False,
        walker: Optional[CorpusWalker] = None,
    ):
        """
        Initialize the build service.

        Args:
            index_path: Path of the master artifact
            store: Index store used for every artifact operation
            exclusion_filter: Compiled exclusion filter
            verbose: Report skipped files at info level
            walker: Corpus walker (default: CorpusWalker over exclusion_filter)
        """
        self._index_path = Path(index_path)
        self._store = store
        self._verbose = verbose
        self._walker = walker or CorpusWalker(exclusion_filter)

        name = self._index_path.name
        self._artifact_dir = os.path.realpath(self._index_path.parent)
        self._artifact_names = frozenset(
            base + suffix
            for base in (name, name + STAGING_SUFFIX, name + MERGED_SUFFIX)
            for suffix in ("", PART_SUFFIX)
        )

    @property
    def index_path(self) -> Path:
        return self._index_path

    @property
    def staging_path(self) -> Path:
        return self._index_path.with_name(self._index_path.name + STAGING_SUFFIX)

    @property
    def merged_path(self) -> Path:
        return self._index_path.with_name(self._index_path.name + MERGED_SUFFIX)

    def run(self, request: BuildRequest) -> BuildResult:
        """Dispatch a request to LIST, RESET-ONLY or BUILD."""
        if request.list_only:
            return BuildResult(
                roots=self.list_roots(),
                states=[RunState.INIT, RunState.LIST],
            )

        if request.reset and not request.paths:
            return BuildResult(
                mode=BuildMode.RESET,
                removed_index=self.reset_index(),
                states=[RunState.INIT, RunState.RESET_ONLY],
            )

        return self.build(request.paths, reset=request.reset)

    def list_roots(self) -> list[str]:
        """
        Return the roots recorded in the master index.

        Raises:
            IndexNotFoundError: If there is no master index
        """
        with self._store.open(self._index_path) as reader:
            return reader.roots()

    def reset_index(self) -> bool:
        """Delete the master index. Returns False if there was none."""
        try:
            removed = self._store.remove(self._index_path)
        except OSError as e:
            raise IndexStoreError(f"cannot remove index {self._index_path}: {e}") from e
        if removed:
            logger.info(f"removed {self._index_path}")
        return removed

    def build(self, paths: Iterable[str], reset: bool = False) -> BuildResult:
        """
        Index paths and publish the result as the new master.

        Args:
            paths: Roots to (re)index. Empty means the roots already
                recorded in the master.
            reset: Discard the existing master instead of merging with it.

        Returns:
            BuildResult describing the run

        Raises:
            IndexStoreError: If the staging or merged artifact cannot be
                written or published. The master is left untouched.
        """
        start_time = time.time()
        result = BuildResult(states=[RunState.INIT, RunState.BUILD])
        paths = [str(p) for p in paths]

        master = self._index_path
        master_exists = self._store.exists(master)

        recorded = self.list_roots() if not paths and master_exists else None
        resolution = resolve_roots(paths, recorded)
        result.roots = resolution.roots
        result.failed_roots = resolution.failures

        if not resolution.roots:
            logger.warning("no paths to index")
            result.states.append(RunState.DONE)
            result.duration_seconds = time.time() - start_time
            return result

        if not master_exists:
            reset = True
        result.mode = BuildMode.RESET if reset else BuildMode.INCREMENTAL
        staging = master if reset else self.staging_path

        with self._store.create(staging, verbose=self._verbose) as writer:
            writer.add_roots(resolution.roots)
            for root in resolution.roots:
                logger.info(f"index {root}")
                for path in self._walker.files(root):
                    if self._is_own_artifact(path):
                        logger.debug(f"skipping index artifact: {path}")
                        continue
                    writer.add_file(path)
            logger.info("flush index")
            writer.finalize()

        result.files_indexed = writer.files_added
        result.files_skipped = writer.files_skipped

        if result.mode is BuildMode.INCREMENTAL:
            result.states.append(RunState.MERGE)
            self._merge_and_publish(staging)

        result.states.append(RunState.DONE)
        result.duration_seconds = time.time() - start_time
        logger.info("done")
        return result

    def _merge_and_publish(self, staging: Path) -> None:
        master = self._index_path
        merged = self.merged_path
        logger.info(f"merge {master} {staging}")
        try:
            self._store.merge(staging, master, merged)
            self._store.remove(staging)
            self._store.rename(merged, master)
        except IndexStoreError:
            self._discard(staging, merged)
            raise
        except OSError as e:
            self._discard(staging, merged)
            raise IndexStoreError(f"cannot publish index {master}: {e}") from e

    def _discard(self, *paths: Path) -> None:
        for path in paths:
            try:
                self._store.remove(path)
            except OSError as e:
                logger.debug(f"could not remove {path}: {e}")

    def _is_own_artifact(self, path: str) -> bool:
        """True for the master, its temporaries and their SQLite side files."""
        if os.path.dirname(path) != self._artifact_dir:
            return False
        name = os.path.basename(path)
        base, _, _ = name.rpartition("-")
        return name in self._artifact_names or base in self._artifact_names
