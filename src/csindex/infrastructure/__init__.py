"""
Infrastructure Layer - on-disk index artifacts.
"""

from csindex.infrastructure.index_store import (
    FileRecord,
    IndexNotFoundError,
    IndexReader,
    IndexStore,
    IndexStoreError,
    IndexWriter,
    create_index_store,
    locate_default_path,
)

__all__ = [
    "IndexStore",
    "IndexReader",
    "IndexWriter",
    "FileRecord",
    "IndexStoreError",
    "IndexNotFoundError",
    "create_index_store",
    "locate_default_path",
]
