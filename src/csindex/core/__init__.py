"""
Core Layer - configuration, root resolution, exclusion and traversal.
"""

from csindex.core.config import (
    ConfigurationError,
    CSIndexConfig,
    ExcludeConfig,
    IndexConfig,
    LoggingConfig,
    load_config,
)
from csindex.core.exclusion import (
    DEFAULT_EXCLUDE_PATTERNS,
    Decision,
    ExclusionFilter,
    ExclusionPattern,
    ExclusionPatternError,
    is_hidden_name,
)
from csindex.core.profiling import ProfilingError, cpu_profile
from csindex.core.roots import RootResolution, canonicalize_path, resolve_roots
from csindex.core.walker import CorpusWalker, WalkEntry

__all__ = [
    # Config
    "CSIndexConfig",
    "IndexConfig",
    "ExcludeConfig",
    "LoggingConfig",
    "ConfigurationError",
    "load_config",
    # Exclusion
    "DEFAULT_EXCLUDE_PATTERNS",
    "Decision",
    "ExclusionFilter",
    "ExclusionPattern",
    "ExclusionPatternError",
    "is_hidden_name",
    # Roots
    "RootResolution",
    "canonicalize_path",
    "resolve_roots",
    # Walker
    "CorpusWalker",
    "WalkEntry",
    # Profiling
    "ProfilingError",
    "cpu_profile",
]
