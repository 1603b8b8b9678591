"""
Root path resolution for csindex.

Turns operator-supplied paths (or the roots recorded in an existing index)
into the canonical, sorted working set handed to the walker.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional


logger = logging.getLogger(__name__)


@dataclass
class RootResolution:
    """Result of resolving root paths.

    Attributes:
        roots: Canonical absolute paths, sorted, adjacent duplicates removed.
        failures: (raw path, error message) for each path that was dropped.
        from_index: True if the raw paths came from the existing index.
    """
    roots: list[str] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)
    from_index: bool = False


def canonicalize_path(path: str | Path) -> str:
    """
    Return the canonical absolute form of a path.

    Raises:
        OSError: If the path does not exist or cannot be resolved
        RuntimeError: On a symlink loop
    """
    return str(Path(path).expanduser().resolve(strict=True))


def resolve_roots(
    paths: Iterable[str | Path],
    recorded_roots: Optional[Iterable[str]] = None,
) -> RootResolution:
    """
    Resolve raw paths into the working root set.

    Args:
        paths: Operator-supplied paths, possibly empty.
        recorded_roots: Roots recorded in the current index, used when
            paths is empty.

    Returns:
        RootResolution. Unresolvable paths are logged and dropped; they
        never abort resolution.
    """
    raw = [str(p) for p in paths]
    from_index = False
    if not raw and recorded_roots is not None:
        raw = list(recorded_roots)
        from_index = True

    result = RootResolution(from_index=from_index)
    resolved: list[str] = []
    for arg in raw:
        try:
            resolved.append(canonicalize_path(arg))
        except (OSError, RuntimeError) as e:
            logger.warning(f"{arg}: {e}")
            result.failures.append((arg, str(e)))
            resolved.append("")

    resolved.sort()

    # Blanked entries sort first
    start = 0
    while start < len(resolved) and resolved[start] == "":
        start += 1

    for root in resolved[start:]:
        if result.roots and result.roots[-1] == root:
            continue
        result.roots.append(root)

    return result
