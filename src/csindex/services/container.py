"""
Services container module for csindex.

Builds the configured store, exclusion filter and build service once per
invocation so the CLI and tests share one wiring path.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from csindex.core.config import CSIndexConfig, load_config
from csindex.core.exclusion import ExclusionFilter
from csindex.infrastructure.index_store import IndexStore, create_index_store
from csindex.services.index_builder import IndexBuildService


@dataclass
class ServicesContainer:
    """
    Container holding the service instances for one run.

    Attributes:
        config: Application configuration
        index_path: Master index location
        store: Index artifact store
        exclusion_filter: Compiled exclusion filter
        builder: Index build orchestrator
    """

    config: CSIndexConfig
    index_path: Path
    store: IndexStore
    exclusion_filter: ExclusionFilter
    builder: IndexBuildService


def create_services(
    config_path: Optional[Path | str] = None,
    extra_excludes: Iterable[str] = (),
    verbose: bool = False,
    config: Optional[CSIndexConfig] = None,
) -> ServicesContainer:
    """
    Create and wire all services.

    Exclusion patterns are compiled here, before anything touches the
    filesystem beyond reading configuration.

    Args:
        config_path: Optional path to configuration file. Ignored if config
                    is given.
        extra_excludes: Patterns appended after the baseline and the
                       configured patterns.
        verbose: Report filtered entries and skipped files.
        config: Already loaded configuration.

    Returns:
        ServicesContainer with all initialized services.

    Raises:
        ConfigurationError: If the configuration or a pattern is invalid.
    """
    if config is None:
        config = load_config(config_path)

    exclusion_filter = ExclusionFilter.from_patterns(
        list(config.exclude.patterns) + list(extra_excludes)
    )

    store = create_index_store(
        max_file_size=config.index.max_file_size,
        max_line_length=config.index.max_line_length,
        max_trigrams=config.index.max_trigrams,
    )

    index_path = (
        Path(config.index.path).expanduser() if config.index.path else store.locate_default_path()
    )

    builder = IndexBuildService(
        index_path=index_path,
        store=store,
        exclusion_filter=exclusion_filter,
        verbose=verbose,
    )

    return ServicesContainer(
        config=config,
        index_path=index_path,
        store=store,
        exclusion_filter=exclusion_filter,
        builder=builder,
    )
