"""
Core Layer - Configuration and logging setup.
"""

from batchembed.core.config import (
    BatchEmbedConfig,
    EmbeddingConfig,
    LoggingConfig,
    load_config,
)
from batchembed.core.logging_setup import configure_logging

__all__ = [
    # Config
    "BatchEmbedConfig",
    "EmbeddingConfig",
    "LoggingConfig",
    "load_config",
    # Logging
    "configure_logging",
]
