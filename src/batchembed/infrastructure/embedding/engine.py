"""
Batch retry engine.

Two ways of embedding one batch:

- ``embed_batch``: plain mode, one request, raises on anything but success.
- ``embed_batch_resilient``: retries transient server errors while gas
  lasts, halves batches the API rejects as too large, and drops what
  cannot be embedded. Never raises for a failed batch.
"""

import asyncio
import logging
from collections.abc import Sequence

from batchembed.core.logging_setup import TRACE_LOGGER, ensure_trace_output

from .errors import (
    ApiResponseError,
    MalformedResponseError,
    ServerError,
    TokenLimitError,
    TransportError,
    UnknownApiError,
)
from .models import ApiError, ApiErrorKind, EmbeddingsParsed, IndexedEmbedding, ParseFailure
from .response_parser import parse_embedding_response
from .transport import TransportInterface

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger(TRACE_LOGGER)

_ERRORS_BY_KIND: dict[ApiErrorKind, type[ApiResponseError]] = {
    ApiErrorKind.SERVER_ERROR: ServerError,
    ApiErrorKind.TOKEN_LIMIT: TokenLimitError,
    ApiErrorKind.UNKNOWN: UnknownApiError,
}


def error_for(api_error: ApiError) -> ApiResponseError:
    """Build the exception matching the kind of ``api_error``."""
    return _ERRORS_BY_KIND[api_error.kind](api_error)


def _trace(enabled: bool, message: str) -> None:
    if enabled:
        trace_logger.info(message)


async def embed_batch(
    transport: TransportInterface, batch: Sequence[str]
) -> list[IndexedEmbedding]:
    """
    Embed a batch with fail-fast semantics.

    Args:
        transport: Transport used for the single request
        batch: Input strings

    Returns:
        Embeddings as reported by the API, unsorted

    Raises:
        TransportError: If the request failed
        ServerError, TokenLimitError, UnknownApiError: If the API reported
            an error
        MalformedResponseError: If the body could not be interpreted
    """
    if not batch:
        return []

    outcome = parse_embedding_response(await transport.send(batch))

    if isinstance(outcome, EmbeddingsParsed):
        return outcome.embeddings
    if isinstance(outcome, ApiError):
        raise error_for(outcome)
    raise MalformedResponseError(f"Malformed response: {outcome.reason}", raw=outcome.raw)


async def embed_batch_resilient(
    transport: TransportInterface,
    batch: Sequence[str],
    gas: int,
    trace: bool = False,
) -> list[IndexedEmbedding]:
    """
    Embed a batch, retrying and splitting as the API demands.

    Server errors retry the same batch and consume one unit of gas. Token
    limit errors split the batch in two contiguous halves that are
    embedded concurrently with the same gas; halving makes progress, so it
    is free. A single input over the token limit, an unknown API error, a
    malformed body or a transport failure drops the batch.

    Indices of the second half are shifted by the size of the first, so
    every returned index addresses a position in ``batch``.

    Args:
        transport: Transport used for every request
        batch: Input strings
        gas: Remaining same-size retries for this branch
        trace: Emit a progress line on the ``batchembed.trace`` logger at
            every decision; printed to stdout unless logging was configured

    Returns:
        Embeddings obtained, possibly fewer than ``len(batch)``
    """
    if trace:
        ensure_trace_output()
    if gas <= 0:
        _trace(trace, f"Out of gas, dropping batch of {len(batch)}")
        return []
    if not batch:
        _trace(trace, "Empty batch, nothing to embed")
        return []

    try:
        outcome = parse_embedding_response(await transport.send(batch))
    except TransportError as e:
        logger.warning(f"Transport failure, dropping batch of {len(batch)}: {e}")
        _trace(trace, f"Transport failure on batch of {len(batch)}: {e}")
        return []

    if isinstance(outcome, EmbeddingsParsed):
        _trace(trace, f"Embedded {len(outcome.embeddings)} inputs")
        return outcome.embeddings

    if isinstance(outcome, ParseFailure):
        _trace(trace, f"Could not parse response for batch of {len(batch)}: {outcome.reason}")
        return []

    kind = outcome.kind
    if kind is ApiErrorKind.SERVER_ERROR:
        _trace(
            trace,
            f"Server error ({outcome.message}), retrying batch of {len(batch)} "
            f"with gas {gas - 1}",
        )
        return await embed_batch_resilient(transport, batch, gas - 1, trace)

    if kind is ApiErrorKind.TOKEN_LIMIT:
        if len(batch) == 1:
            _trace(trace, f"Single input exceeds token limit, dropping it: {outcome.message}")
            return []
        mid = len(batch) // 2
        _trace(trace, f"Token limit on batch of {len(batch)}, splitting into {mid} + {len(batch) - mid}")
        first, second = await asyncio.gather(
            embed_batch_resilient(transport, batch[:mid], gas, trace),
            embed_batch_resilient(transport, batch[mid:], gas, trace),
        )
        return first + [item.shifted(mid) for item in second]

    _trace(trace, f"Unknown API error (type={outcome.type!r}), dropping batch: {outcome.message}")
    return []
