"""
Index Store module for csindex.

SQLite-backed index artifacts: creation, read-only access, merging and the
filesystem primitives used to publish them.
"""

from .models import FileRecord, IndexNotFoundError, IndexStoreError
from .schema import FORMAT_VERSION, initialize_schema
from .store import (
    INDEX_PATH_ENV,
    IndexReader,
    IndexStore,
    IndexWriter,
    create_index_store,
    is_covered_by,
    locate_default_path,
)
from .trigrams import TextRejected, extract_trigrams, pack_trigrams, unpack_trigrams

__all__ = [
    # Main classes
    "IndexStore",
    "IndexReader",
    "IndexWriter",
    "FileRecord",
    # Errors
    "IndexStoreError",
    "IndexNotFoundError",
    "TextRejected",
    # Schema
    "FORMAT_VERSION",
    "initialize_schema",
    # Helpers
    "INDEX_PATH_ENV",
    "locate_default_path",
    "is_covered_by",
    "extract_trigrams",
    "pack_trigrams",
    "unpack_trigrams",
    # Factory
    "create_index_store",
]
