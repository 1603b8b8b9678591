"""
Exclusion filter for csindex.

Decides, for each filesystem entry met during a walk, whether it is indexed,
skipped on its own, or skipped together with everything beneath it.

Two independent rules apply:
- Directory patterns: regular expressions searched (unanchored,
  case-sensitive) against the full path of a directory. A match prunes the
  whole subtree.
- Hidden names: an entry whose own name starts with '.', '#' or '~', or
  ends with '~', is skipped. This rule is always on.
"""

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from csindex.core.config import ConfigurationError

logger = logging.getLogger(__name__)

# Baseline patterns, always applied before any configured additions.
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    # Version control metadata
    r"/\.git$",
    r"/\.hg$",
    r"/\.svn$",
    # Dependency directories
    r"/node_modules",
    r".*/go/pkg/mod",
    # Build output
    r"/bazel-(bin|out|testlogs)",
    r"/__pycache__$",
    # Virtual environments
    r"/venv",
    r"/\.venv$",
    # The index's own artifacts
    r"/\.csindex",
    # Package-manager caches
    r"/\.cache/pip$",
)

_HIDDEN_PREFIXES = (".", "#", "~")
_HIDDEN_SUFFIX = "~"


class Decision(str, Enum):
    """Outcome of classifying one filesystem entry."""

    INCLUDE = "include"
    SKIP_ENTRY = "skip_entry"
    SKIP_SUBTREE = "skip_subtree"


class ExclusionPatternError(ConfigurationError):
    """Raised when an exclusion pattern does not compile."""

    def __init__(self, pattern: str, error: re.error):
        self.pattern = pattern
        self.error = error
        super().__init__(f"invalid exclude pattern {pattern!r}: {error}")


@dataclass(frozen=True)
class ExclusionPattern:
    """A compiled exclusion pattern together with its source text."""

    source: str
    regex: re.Pattern

    @classmethod
    def compile(cls, source: str) -> "ExclusionPattern":
        try:
            return cls(source=source, regex=re.compile(source))
        except re.error as e:
            raise ExclusionPatternError(source, e) from e

    def matches(self, path: str) -> bool:
        return self.regex.search(path) is not None


def is_hidden_name(name: str) -> bool:
    """Return True for names treated as temporary or hidden."""
    if not name:
        return False
    return name.startswith(_HIDDEN_PREFIXES) or name.endswith(_HIDDEN_SUFFIX)


class ExclusionFilter:
    """
    Immutable classifier built once at startup and shared with the walker.

    Patterns are compiled eagerly so that a malformed one is reported before
    any traversal starts.
    """

    def __init__(self, patterns: Sequence[ExclusionPattern]):
        self._patterns: tuple[ExclusionPattern, ...] = tuple(patterns)

    @classmethod
    def from_patterns(
        cls,
        extra_patterns: Iterable[str] = (),
        baseline: Iterable[str] = DEFAULT_EXCLUDE_PATTERNS,
    ) -> "ExclusionFilter":
        """
        Compile the baseline followed by extra patterns.

        Raises:
            ExclusionPatternError: If any pattern is not a valid regular expression
        """
        sources = list(baseline) + list(extra_patterns)
        compiled = [ExclusionPattern.compile(source) for source in sources]
        logger.debug(f"Compiled {len(compiled)} exclusion patterns")
        return cls(compiled)

    @property
    def patterns(self) -> tuple[ExclusionPattern, ...]:
        return self._patterns

    def matching_pattern(self, path: str) -> Optional[ExclusionPattern]:
        """Return the first pattern found in path, or None."""
        for pattern in self._patterns:
            if pattern.matches(path):
                return pattern
        return None

    def classify(self, path: str, is_dir: bool) -> Decision:
        """
        Classify a filesystem entry.

        Args:
            path: Full path of the entry
            is_dir: Whether the entry is a directory (symlinks are not)

        Returns:
            Decision for the entry
        """
        if is_dir and self.matching_pattern(path) is not None:
            return Decision.SKIP_SUBTREE

        if is_hidden_name(os.path.basename(path)):
            return Decision.SKIP_SUBTREE if is_dir else Decision.SKIP_ENTRY

        return Decision.INCLUDE
