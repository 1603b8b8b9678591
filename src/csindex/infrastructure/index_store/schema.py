"""
Index artifact schema definitions.
"""

import sqlite3

FORMAT_VERSION = "1"

SCHEMA = """
-- Artifact metadata
CREATE TABLE IF NOT EXISTS index_info (
    info_key TEXT PRIMARY KEY,
    info_value TEXT NOT NULL
);

-- Roots recorded for no-argument refreshes
CREATE TABLE IF NOT EXISTS roots (
    root_path TEXT PRIMARY KEY
);

-- Indexed files
CREATE TABLE IF NOT EXISTS files (
    file_path TEXT PRIMARY KEY,
    size INTEGER NOT NULL,
    modified_time REAL NOT NULL,
    content_hash TEXT NOT NULL,
    trigrams BLOB NOT NULL
);
"""


def initialize_schema(conn: sqlite3.Connection) -> None:
    """Initialize the artifact schema and stamp its format version."""
    conn.executescript(SCHEMA)
    conn.execute(
        "INSERT OR REPLACE INTO index_info (info_key, info_value) VALUES (?, ?)",
        ("format_version", FORMAT_VERSION),
    )
