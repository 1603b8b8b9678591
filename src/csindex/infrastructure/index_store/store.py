"""
Index artifact store.

SQLite-backed index artifacts: one database file per artifact holding the
recorded roots and one record per indexed file. Writers build into a
sibling ``.part`` file and rename it into place on finalize, so an artifact
path only ever holds a complete artifact.
"""

import hashlib
import logging
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .models import FileRecord, IndexNotFoundError, IndexStoreError
from .schema import FORMAT_VERSION, initialize_schema
from .trigrams import TextRejected, extract_trigrams, pack_trigrams

logger = logging.getLogger(__name__)

INDEX_PATH_ENV = "CSINDEX_FILE"
DEFAULT_INDEX_NAME = ".csindex"
PART_SUFFIX = ".part"


def locate_default_path() -> Path:
    """
    Get the master index path.

    Override the location with CSINDEX_FILE; otherwise ~/.csindex.
    """
    override = os.environ.get(INDEX_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_INDEX_NAME


def is_covered_by(path: str, roots: Iterable[str]) -> bool:
    """Return True if path is one of roots or lies beneath one."""
    for root in roots:
        if path == root or path.startswith(root.rstrip(os.sep) + os.sep):
            return True
    return False


def _fsync_directory(directory: Path) -> None:
    """Make a rename inside directory durable."""
    if os.name != "posix":
        return
    fd = os.open(str(directory), os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


class IndexReader:
    """Read-only view of an index artifact."""

    def __init__(self, path: Path | str):
        self._path = Path(path)
        if not self._path.is_file():
            raise IndexNotFoundError(str(self._path))

        uri = self._path.resolve().as_uri() + "?mode=ro"
        try:
            self._conn: Optional[sqlite3.Connection] = sqlite3.connect(uri, uri=True)
            self._conn.row_factory = sqlite3.Row
            row = self._conn.execute(
                "SELECT info_value FROM index_info WHERE info_key = 'format_version'"
            ).fetchone()
        except sqlite3.Error as e:
            self.close()
            raise IndexStoreError(f"{self._path}: not a readable index: {e}") from e

        if row is None or row["info_value"] != FORMAT_VERSION:
            self.close()
            raise IndexStoreError(f"{self._path}: unsupported index format")

    @property
    def path(self) -> Path:
        return self._path

    def _execute(self, sql: str) -> sqlite3.Cursor:
        if self._conn is None:
            raise IndexStoreError(f"{self._path}: index is closed")
        try:
            return self._conn.execute(sql)
        except sqlite3.Error as e:
            raise IndexStoreError(f"{self._path}: read failed: {e}") from e

    def roots(self) -> list[str]:
        """Recorded roots in sorted order."""
        cursor = self._execute("SELECT root_path FROM roots ORDER BY root_path")
        return [row["root_path"] for row in cursor.fetchall()]

    def files(self) -> list[str]:
        """Indexed file paths in sorted order."""
        cursor = self._execute("SELECT file_path FROM files ORDER BY file_path")
        return [row["file_path"] for row in cursor.fetchall()]

    def file_count(self) -> int:
        return self._execute("SELECT COUNT(*) FROM files").fetchone()[0]

    def records(self) -> Iterator[FileRecord]:
        """Iterate over all file records in path order."""
        cursor = self._execute(
            "SELECT file_path, size, modified_time, content_hash, trigrams "
            "FROM files ORDER BY file_path"
        )
        try:
            for row in cursor:
                yield FileRecord(
                    path=row["file_path"],
                    size=row["size"],
                    modified_time=row["modified_time"],
                    content_hash=row["content_hash"],
                    trigrams=bytes(row["trigrams"]),
                )
        except sqlite3.Error as e:
            raise IndexStoreError(f"{self._path}: read failed: {e}") from e

    def close(self) -> None:
        if getattr(self, "_conn", None) is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "IndexReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class IndexWriter:
    """
    Builds a new index artifact.

    Nothing is visible at the target path until finalize() succeeds.
    """

    def __init__(
        self,
        path: Path | str,
        verbose: bool = False,
        max_file_size: int = 1 << 30,
        max_line_length: int = 2000,
        max_trigrams: int = 20000,
    ):
        self._path = Path(path)
        self._part_path = self._path.with_name(self._path.name + PART_SUFFIX)
        self.verbose = verbose
        self._max_file_size = max_file_size
        self._max_line_length = max_line_length
        self._max_trigrams = max_trigrams
        self.files_added = 0
        self.files_skipped = 0
        self.roots_added = 0

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            # A crashed run may have left one behind
            self._part_path.unlink(missing_ok=True)
            self._conn: Optional[sqlite3.Connection] = sqlite3.connect(str(self._part_path))
            self._conn.execute("PRAGMA synchronous=FULL;")
            initialize_schema(self._conn)
        except (OSError, sqlite3.Error) as e:
            raise IndexStoreError(f"cannot create index {self._path}: {e}") from e

    @property
    def path(self) -> Path:
        return self._path

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise IndexStoreError(f"{self._path}: writer is closed")
        return self._conn

    def add_root(self, root: str) -> None:
        try:
            cursor = self._connection().execute(
                "INSERT OR IGNORE INTO roots (root_path) VALUES (?)", (root,)
            )
        except sqlite3.Error as e:
            raise IndexStoreError(f"{self._path}: cannot record root {root}: {e}") from e
        self.roots_added += cursor.rowcount

    def add_roots(self, roots: Iterable[str]) -> None:
        for root in roots:
            self.add_root(root)

    def _skip(self, path: str, reason: str) -> bool:
        self.files_skipped += 1
        if self.verbose:
            logger.info(f"{path}: skipped. {reason}")
        else:
            logger.debug(f"{path}: skipped. {reason}")
        return False

    def add_file(self, path: str) -> bool:
        """
        Read and index one file.

        Returns:
            True if the file was indexed, False if it was skipped.
            Unreadable files are logged and skipped, never raised.
        """
        try:
            with open(path, "rb") as f:
                st = os.fstat(f.fileno())
                if st.st_size > self._max_file_size:
                    return self._skip(path, f"too long, ignoring ({st.st_size} bytes)")
                data = f.read()
        except OSError as e:
            logger.warning(f"{path}: {e}")
            self.files_skipped += 1
            return False

        try:
            trigrams = extract_trigrams(data, self._max_line_length, self._max_trigrams)
        except TextRejected as e:
            return self._skip(path, str(e))

        self.add_record(
            FileRecord(
                path=path,
                size=len(data),
                modified_time=st.st_mtime,
                content_hash=hashlib.sha256(data).hexdigest(),
                trigrams=pack_trigrams(trigrams),
            )
        )
        return True

    def add_record(self, record: FileRecord) -> None:
        """Store a file record, replacing any record with the same path."""
        try:
            self._connection().execute(
                "INSERT OR REPLACE INTO files "
                "(file_path, size, modified_time, content_hash, trigrams) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    record.path,
                    record.size,
                    record.modified_time,
                    record.content_hash,
                    record.trigrams,
                ),
            )
        except sqlite3.Error as e:
            raise IndexStoreError(f"{self._path}: cannot add {record.path}: {e}") from e
        self.files_added += 1

    def finalize(self) -> None:
        """
        Durably write the artifact and move it to its target path.

        Raises:
            IndexStoreError: If any step fails; the target path is untouched
        """
        conn = self._connection()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO index_info (info_key, info_value) VALUES (?, ?)",
                ("created_at", datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()
            conn.close()
            self._conn = None

            fd = os.open(str(self._part_path), os.O_RDONLY)
            try:
                os.fsync(fd)
            finally:
                os.close(fd)
            os.replace(self._part_path, self._path)
            _fsync_directory(self._path.parent)
        except (OSError, sqlite3.Error) as e:
            raise IndexStoreError(f"cannot finalize index {self._path}: {e}") from e

    def abort(self) -> None:
        """Discard the partial artifact."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        self._part_path.unlink(missing_ok=True)

    def __enter__(self) -> "IndexWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()


class IndexStore:
    """
    Filesystem-level operations on index artifacts.

    This is the full surface the build orchestrator uses, which keeps the
    orchestrator testable with a subclass that injects failures.
    """

    def __init__(
        self,
        max_file_size: int = 1 << 30,
        max_line_length: int = 2000,
        max_trigrams: int = 20000,
    ):
        self._max_file_size = max_file_size
        self._max_line_length = max_line_length
        self._max_trigrams = max_trigrams

    @staticmethod
    def locate_default_path() -> Path:
        return locate_default_path()

    def open(self, path: Path | str) -> IndexReader:
        return IndexReader(path)

    def create(self, path: Path | str, verbose: bool = False) -> IndexWriter:
        return IndexWriter(
            path,
            verbose=verbose,
            max_file_size=self._max_file_size,
            max_line_length=self._max_line_length,
            max_trigrams=self._max_trigrams,
        )

    def merge(
        self,
        staging_path: Path | str,
        master_path: Path | str,
        output_path: Path | str,
    ) -> None:
        """
        Combine staging and master into a new artifact at output_path.

        Roots are the union of both. Master files under a staging root are
        replaced by the staging view of that root, so files deleted since the
        master was built disappear. Neither input is modified.
        """
        with self.open(staging_path) as staging, self.open(master_path) as master:
            new_roots = staging.roots()
            with self.create(output_path) as writer:
                writer.add_roots(sorted(set(master.roots()) | set(new_roots)))
                kept = 0
                for record in master.records():
                    if not is_covered_by(record.path, new_roots):
                        writer.add_record(record)
                        kept += 1
                for record in staging.records():
                    writer.add_record(record)
                logger.debug(
                    f"merged {kept} files from {master_path} with "
                    f"{writer.files_added - kept} files from {staging_path}"
                )
                writer.finalize()

    def exists(self, path: Path | str) -> bool:
        return os.path.exists(path)

    def remove(self, path: Path | str) -> bool:
        """Remove an artifact. Returns False if there was nothing to remove."""
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        return True

    def rename(self, src: Path | str, dst: Path | str) -> None:
        """Atomically replace dst with src (same filesystem)."""
        os.replace(src, dst)


def create_index_store(
    max_file_size: int = 1 << 30,
    max_line_length: int = 2000,
    max_trigrams: int = 20000,
) -> IndexStore:
    """Factory function to create an IndexStore."""
    return IndexStore(
        max_file_size=max_file_size,
        max_line_length=max_line_length,
        max_trigrams=max_trigrams,
    )
