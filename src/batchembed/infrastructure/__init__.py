"""
Infrastructure Layer - HTTP transport, response parsing and the batch retry engine.
"""

from batchembed.infrastructure.embedding import (
    EmbeddingClient,
    HttpTransport,
    SessionContext,
    TransportInterface,
    create_embedding_client,
)

__all__ = [
    "EmbeddingClient",
    "HttpTransport",
    "SessionContext",
    "TransportInterface",
    "create_embedding_client",
]
