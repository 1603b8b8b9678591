"""
Data models for the index store.
"""

from dataclasses import dataclass


class IndexStoreError(Exception):
    """Base exception for index artifact errors."""
    pass


class IndexNotFoundError(IndexStoreError):
    """Raised when no index artifact exists at the requested path."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"no index at {path}")


@dataclass(frozen=True)
class FileRecord:
    """An indexed file as stored in an artifact."""
    path: str
    size: int
    modified_time: float
    content_hash: str
    trigrams: bytes
