"""
batch-embed - Resilient bulk client for text-embedding APIs.
"""

__version__ = "0.1.0"

from batchembed.core import BatchEmbedConfig, load_config
from batchembed.infrastructure.embedding import (
    EmbeddingClient,
    IndexedEmbedding,
    SessionContext,
    create_embedding_client,
    embed_batch,
    embed_batch_resilient,
)

__all__ = [
    "__version__",
    "BatchEmbedConfig",
    "load_config",
    "EmbeddingClient",
    "IndexedEmbedding",
    "SessionContext",
    "create_embedding_client",
    "embed_batch",
    "embed_batch_resilient",
]
