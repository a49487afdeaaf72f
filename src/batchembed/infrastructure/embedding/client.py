"""Bulk embedding client built on the batch retry engine."""

import logging
from collections.abc import Sequence
from typing import List, Optional

from batchembed.core.config import BatchEmbedConfig

from .engine import embed_batch, embed_batch_resilient
from .models import IndexedEmbedding
from .session import SessionContext
from .transport import HttpTransport, TransportInterface

logger = logging.getLogger(__name__)


def align_embeddings(
    embeddings: Sequence[IndexedEmbedding], size: int
) -> List[Optional[List[float]]]:
    """
    Place embeddings at the positions their indices name.

    The API does not promise ordered output, so results are matched to
    inputs by index. Out-of-range indices are ignored and, for duplicate
    indices, the first vector wins.

    Args:
        embeddings: Embeddings whose indices address positions ``0..size-1``
        size: Number of inputs

    Returns:
        One entry per input, None where no embedding was obtained
    """
    aligned: List[Optional[List[float]]] = [None] * size
    for item in sorted(embeddings, key=lambda e: e.index):
        if not 0 <= item.index < size:
            logger.warning(f"Ignoring embedding with out-of-range index {item.index} (size={size})")
            continue
        if aligned[item.index] is not None:
            logger.warning(f"Ignoring duplicate embedding for index {item.index}")
            continue
        aligned[item.index] = item.vector
    return aligned


class EmbeddingClient:
    """
    Embeds arbitrarily long input lists.

    Inputs are cut into chunks of at most ``batch_size`` and processed
    sequentially. Each chunk starts with a full gas budget. Returned
    indices always refer to positions in the caller's input list.
    """

    def __init__(
        self,
        transport: TransportInterface,
        batch_size: int = 512,
        gas: int = 5,
        trace: bool = False,
    ):
        """
        Initialize the client.

        Args:
            transport: Transport used for every request
            batch_size: Maximum inputs per initial request
            gas: Same-size retry budget for each chunk
            trace: Emit engine progress lines on the trace logger
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if gas < 0:
            raise ValueError("gas must not be negative")
        self._transport = transport
        self._batch_size = batch_size
        self._gas = gas
        self._trace = trace

    @property
    def batch_size(self) -> int:
        """Return the configured batch size."""
        return self._batch_size

    @property
    def gas(self) -> int:
        return self._gas

    def _chunks(self, texts: Sequence[str]):
        for start in range(0, len(texts), self._batch_size):
            yield start, texts[start : start + self._batch_size]

    async def embed(self, texts: Sequence[str]) -> List[IndexedEmbedding]:
        """
        Best-effort embedding: retries, splits, and drops what cannot be embedded.

        Returns:
            Embeddings indexed by input position, possibly fewer than inputs
        """
        results: List[IndexedEmbedding] = []
        for start, chunk in self._chunks(texts):
            embedded = await embed_batch_resilient(self._transport, chunk, self._gas, self._trace)
            if len(embedded) < len(chunk):
                logger.info(
                    f"Chunk at offset {start}: embedded {len(embedded)} of {len(chunk)} inputs"
                )
            results.extend(item.shifted(start) for item in embedded)
        return results

    async def embed_strict(self, texts: Sequence[str]) -> List[IndexedEmbedding]:
        """
        Fail-fast embedding: one request per chunk, no retry, no split.

        Raises:
            EmbeddingClientError: On the first chunk that does not succeed
        """
        results: List[IndexedEmbedding] = []
        for start, chunk in self._chunks(texts):
            embedded = await embed_batch(self._transport, chunk)
            results.extend(item.shifted(start) for item in embedded)
        return results

    async def embed_aligned(
        self, texts: Sequence[str], strict: bool = False
    ) -> List[Optional[List[float]]]:
        """Embed and return one vector (or None) per input, in input order."""
        embedded = await (self.embed_strict(texts) if strict else self.embed(texts))
        return align_embeddings(embedded, len(texts))

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "EmbeddingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def create_embedding_client(
    config: Optional[BatchEmbedConfig] = None,
    session: Optional[SessionContext] = None,
) -> EmbeddingClient:
    """
    Factory function to create an embedding client.

    Args:
        config: Client configuration; defaults plus environment overrides
            if None
        session: Credential; read from ``config.embedding.api_key_env``
            if None

    Returns:
        EmbeddingClient backed by an HttpTransport

    Raises:
        MissingCredentialError: If no session is given and the key
            variable is unset
    """
    if config is None:
        config = BatchEmbedConfig().apply_env_overrides()
    emb = config.embedding
    if session is None:
        session = SessionContext.from_env(emb.api_key_env)

    transport = HttpTransport(
        session=session,
        api_url=emb.api_url,
        model=emb.model,
        timeout=emb.timeout,
        encoding_format=emb.encoding_format,
    )
    return EmbeddingClient(
        transport=transport,
        batch_size=emb.batch_size,
        gas=emb.gas,
        trace=emb.trace,
    )
