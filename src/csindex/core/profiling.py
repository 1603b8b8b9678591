"""
CPU profiling scope for csindex runs.
"""

import cProfile
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from csindex.core.config import ConfigurationError

logger = logging.getLogger(__name__)


class ProfilingError(ConfigurationError):
    """Raised when the profile destination cannot be created."""
    pass


@contextmanager
def cpu_profile(output_path: Optional[Path | str]) -> Iterator[Optional[cProfile.Profile]]:
    """
    Profile the enclosed block and write .pstats output on every exit path.

    The destination is created before profiling starts, so an unwritable
    path fails fast.

    Args:
        output_path: Where to write the profile. None disables profiling.

    Raises:
        ProfilingError: If output_path cannot be created
    """
    if output_path is None:
        yield None
        return

    path = Path(output_path)
    try:
        path.open("wb").close()
    except OSError as e:
        raise ProfilingError(f"cannot create cpu profile {path}: {e}") from e

    profiler = cProfile.Profile()
    profiler.enable()
    try:
        yield profiler
    finally:
        profiler.disable()
        profiler.dump_stats(str(path))
        logger.debug(f"wrote cpu profile to {path}")
