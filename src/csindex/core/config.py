"""
Configuration module for csindex.

Supports loading from YAML/JSON files with environment variable overrides.
Default values are loaded from defaults.yaml for maintainability.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

# Cache for default values
_defaults_cache: dict[str, Any] | None = None


class ConfigurationError(Exception):
    """Raised when configuration is invalid. Always fatal, raised before any index mutation."""
    pass


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    """Get a default value from the defaults config."""
    defaults = _load_defaults()
    section_defaults = defaults.get(section) or {}
    value = section_defaults.get(key)
    return fallback if value is None else value


def _require_positive_int(section: str, key: str, value: Any) -> None:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(
            f"Invalid '{section}.{key}': expected a positive integer, got {value!r}"
        )


def _require_str(section: str, key: str, value: Any) -> None:
    if not isinstance(value, str):
        raise ConfigurationError(
            f"Invalid '{section}.{key}': expected a string, got {value!r}"
        )


@dataclass
class IndexConfig:
    """Configuration for the index artifact and the files it accepts."""

    path: Optional[str] = field(default_factory=lambda: _get_default("index", "path", None))
    max_file_size: int = field(
        default_factory=lambda: _get_default("index", "max_file_size", 1 << 30)
    )
    max_line_length: int = field(
        default_factory=lambda: _get_default("index", "max_line_length", 2000)
    )
    max_trigrams: int = field(
        default_factory=lambda: _get_default("index", "max_trigrams", 20000)
    )

    def __post_init__(self) -> None:
        if self.path is not None:
            _require_str("index", "path", self.path)
        for key in ("max_file_size", "max_line_length", "max_trigrams"):
            _require_positive_int("index", key, getattr(self, key))


@dataclass
class ExcludeConfig:
    """Extra exclusion patterns, appended after the built-in baseline."""

    patterns: list[str] = field(
        default_factory=lambda: list(_get_default("exclude", "patterns", []))
    )

    def __post_init__(self) -> None:
        if self.patterns is None:
            self.patterns = []
        if not isinstance(self.patterns, list):
            raise ConfigurationError(
                f"Invalid 'exclude.patterns': expected a list of strings, got {self.patterns!r}"
            )
        for pattern in self.patterns:
            _require_str("exclude", "patterns", pattern)


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "INFO"))
    format: str = field(
        default_factory=lambda: _get_default("logging", "format", "%(message)s")
    )

    def __post_init__(self) -> None:
        _require_str("logging", "level", self.level)
        _require_str("logging", "format", self.format)


@dataclass
class CSIndexConfig:
    """Main configuration class for csindex."""

    index: IndexConfig = field(default_factory=IndexConfig)
    exclude: ExcludeConfig = field(default_factory=ExcludeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "CSIndexConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            CSIndexConfig instance with loaded values

        Raises:
            ConfigurationError: If the file is missing, unreadable, malformed,
                or uses an unsupported format
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

        try:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content) or {}
            elif path.suffix == ".json":
                data = json.loads(content) if content.strip() else {}
            else:
                raise ConfigurationError(f"Unsupported config file format: {path.suffix}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Malformed configuration file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "CSIndexConfig":
        """Create CSIndexConfig from a dictionary."""
        config = cls()
        sections = {
            "index": IndexConfig,
            "exclude": ExcludeConfig,
            "logging": LoggingConfig,
        }

        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration section(s): {', '.join(sorted(unknown))}"
            )

        for name, section_cls in sections.items():
            if name not in data:
                continue
            try:
                setattr(config, name, section_cls(**(data[name] or {})))
            except TypeError as e:
                raise ConfigurationError(f"Invalid '{name}' section: {e}") from e

        return config

    def apply_env_overrides(self) -> "CSIndexConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: CSINDEX_<SECTION>_<KEY>
        Examples:
            - CSINDEX_INDEX_MAX_FILE_SIZE
            - CSINDEX_LOGGING_LEVEL

        The master index location itself is read from CSINDEX_FILE by the
        index store, not from here.

        Returns:
            Self with environment overrides applied

        Raises:
            ConfigurationError: If an override cannot be converted or is
                out of range
        """
        env_mappings = {
            # Index config
            "CSINDEX_INDEX_MAX_FILE_SIZE": ("index", "max_file_size", int),
            "CSINDEX_INDEX_MAX_LINE_LENGTH": ("index", "max_line_length", int),
            "CSINDEX_INDEX_MAX_TRIGRAMS": ("index", "max_trigrams", int),
            # Logging config
            "CSINDEX_LOGGING_LEVEL": ("logging", "level", str),
            "CSINDEX_LOGGING_FORMAT": ("logging", "format", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                try:
                    converted = converter(value)
                except ValueError as e:
                    raise ConfigurationError(f"Invalid value for {env_var}: {value!r}") from e
                setattr(getattr(self, section), key, converted)

        for section in (self.index, self.exclude, self.logging):
            section.__post_init__()

        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)


def load_config(
    config_path: Optional[Path | str] = None, apply_env: bool = True
) -> CSIndexConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        CSIndexConfig instance
    """
    if config_path:
        config = CSIndexConfig.from_file(config_path)
    else:
        config = CSIndexConfig()

    if apply_env:
        config.apply_env_overrides()

    return config
