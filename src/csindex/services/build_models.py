"""
Index build data models.

Contains the run states, the request accepted by the build service and the
result it returns.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RunState(str, Enum):
    """States of one indexing run."""

    INIT = "init"
    LIST = "list"
    RESET_ONLY = "reset_only"
    BUILD = "build"
    MERGE = "merge"
    DONE = "done"


class BuildMode(str, Enum):
    """How the new index relates to the existing one."""

    RESET = "reset"
    INCREMENTAL = "incremental"


@dataclass
class BuildRequest:
    """What the operator asked for."""

    paths: list[str] = field(default_factory=list)
    reset: bool = False
    list_only: bool = False


@dataclass
class BuildResult:
    """Result of one indexing run."""

    mode: Optional[BuildMode] = None
    roots: list[str] = field(default_factory=list)
    failed_roots: list[tuple[str, str]] = field(default_factory=list)
    files_indexed: int = 0
    files_skipped: int = 0
    removed_index: bool = False
    duration_seconds: float = 0.0
    states: list[RunState] = field(default_factory=list)
