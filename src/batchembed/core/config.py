"""
Configuration module for batch-embed.

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
    section_defaults = defaults.get(section, {})
    return section_defaults.get(key, fallback)


@dataclass
class EmbeddingConfig:
    """Configuration for the embedding client."""

    api_url: str = field(
        default_factory=lambda: _get_default(
            "embedding", "api_url", "https://api.openai.com/v1/embeddings"
        )
    )
    model: str = field(
        default_factory=lambda: _get_default("embedding", "model", "text-embedding-3-small")
    )
    api_key_env: str = field(
        default_factory=lambda: _get_default("embedding", "api_key_env", "OPENAI_API_KEY")
    )
    batch_size: int = field(default_factory=lambda: _get_default("embedding", "batch_size", 512))
    gas: int = field(default_factory=lambda: _get_default("embedding", "gas", 5))
    timeout: float = field(default_factory=lambda: _get_default("embedding", "timeout", 30.0))
    encoding_format: Optional[str] = field(
        default_factory=lambda: _get_default("embedding", "encoding_format", "float")
    )
    trace: bool = field(default_factory=lambda: _get_default("embedding", "trace", False))

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ValueError if any value is out of range."""
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.gas < 0:
            raise ValueError("gas must not be negative")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "WARNING"))
    format: str = field(
        default_factory=lambda: _get_default(
            "logging", "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )


@dataclass
class BatchEmbedConfig:
    """Main configuration class for batch-embed."""

    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "BatchEmbedConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            BatchEmbedConfig instance with loaded values

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the file format is unsupported, the content does
                not parse, or a section holds unknown keys
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(content) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
        elif path.suffix == ".json":
            # JSONDecodeError is a ValueError
            data = json.loads(content) if content.strip() else {}
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {path} must be a mapping")

        try:
            return cls._from_dict(data)
        except TypeError as e:
            raise ValueError(f"Invalid configuration in {path}: {e}") from e

    @classmethod
    def _from_dict(cls, data: dict) -> "BatchEmbedConfig":
        """Create BatchEmbedConfig from a dictionary."""
        config = cls()

        if "embedding" in data:
            config.embedding = EmbeddingConfig(**data["embedding"])
        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])

        return config

    def apply_env_overrides(self) -> "BatchEmbedConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: BATCHEMBED_<SECTION>_<KEY>
        Examples:
            - BATCHEMBED_EMBEDDING_API_URL
            - BATCHEMBED_EMBEDDING_GAS
            - BATCHEMBED_LOGGING_LEVEL

        The API key itself is never part of the configuration; it is read
        from the variable named by ``embedding.api_key_env``.

        Returns:
            Self with environment overrides applied
        """
        env_mappings = {
            "BATCHEMBED_EMBEDDING_API_URL": ("embedding", "api_url", str),
            "BATCHEMBED_EMBEDDING_MODEL": ("embedding", "model", str),
            "BATCHEMBED_EMBEDDING_API_KEY_ENV": ("embedding", "api_key_env", str),
            "BATCHEMBED_EMBEDDING_BATCH_SIZE": ("embedding", "batch_size", int),
            "BATCHEMBED_EMBEDDING_GAS": ("embedding", "gas", int),
            "BATCHEMBED_EMBEDDING_TIMEOUT": ("embedding", "timeout", float),
            "BATCHEMBED_EMBEDDING_ENCODING_FORMAT": ("embedding", "encoding_format", str),
            "BATCHEMBED_EMBEDDING_TRACE": ("embedding", "trace", _parse_bool),
            "BATCHEMBED_LOGGING_LEVEL": ("logging", "level", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self, section)
                setattr(section_obj, key, converter(value))

        # setattr bypasses __post_init__
        self.embedding.validate()
        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ValueError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def _parse_bool(value: str) -> bool:
    """Parse a string to boolean."""
    return value.lower() in ("true", "1", "yes", "on")


def load_config(
    config_path: Optional[Path | str] = None, apply_env: bool = True
) -> BatchEmbedConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        BatchEmbedConfig instance
    """
    if config_path:
        config = BatchEmbedConfig.from_file(config_path)
    else:
        config = BatchEmbedConfig()

    if apply_env:
        config.apply_env_overrides()

    return config
