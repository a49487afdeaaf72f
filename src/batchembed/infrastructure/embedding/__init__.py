"""
Embedding client module for batch-embed.

Provides an async HTTP transport, a response classifier and a batch
retry engine that retries transient errors and splits oversized batches.
"""

from .client import EmbeddingClient, align_embeddings, create_embedding_client
from .engine import embed_batch, embed_batch_resilient
from .errors import (
    ApiResponseError,
    ConfigurationError,
    EmbeddingClientError,
    MalformedResponseError,
    MissingCredentialError,
    ServerError,
    TokenLimitError,
    TransportError,
    UnknownApiError,
)
from .models import (
    ApiError,
    ApiErrorKind,
    EmbeddingsParsed,
    IndexedEmbedding,
    ParseFailure,
    ParseOutcome,
    classify_api_error,
)
from .response_parser import parse_embedding_response
from .session import SessionContext
from .transport import HttpTransport, TransportInterface

__all__ = [
    # Client
    "EmbeddingClient",
    "create_embedding_client",
    "align_embeddings",
    # Engine
    "embed_batch",
    "embed_batch_resilient",
    # Transport and session
    "TransportInterface",
    "HttpTransport",
    "SessionContext",
    # Classifier
    "parse_embedding_response",
    "classify_api_error",
    "ApiError",
    "ApiErrorKind",
    "EmbeddingsParsed",
    "IndexedEmbedding",
    "ParseFailure",
    "ParseOutcome",
    # Errors
    "EmbeddingClientError",
    "TransportError",
    "MalformedResponseError",
    "ApiResponseError",
    "ServerError",
    "TokenLimitError",
    "UnknownApiError",
    "ConfigurationError",
    "MissingCredentialError",
]
