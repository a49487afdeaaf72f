"""
Fake implementations for testing.

Provides in-memory transports so the retry engine and client can be
exercised without network access.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable, Sequence

from batchembed.infrastructure.embedding import TransportError, TransportInterface

Responder = Callable[[list[str]], str]


def embeddings_body(batch: Sequence[str], dimension: int = 4) -> str:
    """Successful response body with deterministic vectors for ``batch``."""
    return json.dumps(
        {
            "object": "list",
            "data": [
                {"object": "embedding", "index": i, "embedding": fake_vector(text, dimension)}
                for i, text in enumerate(batch)
            ],
        }
    )


def error_body(error_type: str, message: str = "error") -> str:
    """Error response body with the given ``type`` tag."""
    return json.dumps({"error": {"message": message, "type": error_type}})


def fake_vector(text: str, dimension: int = 4) -> list[float]:
    """Deterministic pseudo-embedding derived from the text hash."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return [digest[i % len(digest)] / 255.0 for i in range(dimension)]


class ScriptedTransport(TransportInterface):
    """
    Transport whose answers come from a responder function.

    Every call is recorded in ``calls`` (a copy of the batch sent).
    A responder may raise TransportError to simulate network failure.
    """

    def __init__(self, responder: Responder | None = None, dimension: int = 4):
        self._dimension = dimension
        self._responder = responder or (lambda batch: embeddings_body(batch, self._dimension))
        self.calls: list[list[str]] = []
        self.closed = False

    async def send(self, batch: Sequence[str]) -> str:
        snapshot = list(batch)
        self.calls.append(snapshot)
        return self._responder(snapshot)

    async def close(self) -> None:
        self.closed = True

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def batch_sizes(self) -> list[int]:
        return [len(c) for c in self.calls]

    @classmethod
    def sequence(cls, bodies: Sequence[str | Exception]) -> "ScriptedTransport":
        """Answer with ``bodies`` in order; the last one repeats."""
        remaining = list(bodies)

        def responder(_: list[str]) -> str:
            body = remaining.pop(0) if len(remaining) > 1 else remaining[0]
            if isinstance(body, Exception):
                raise body
            return body

        return cls(responder)

    @classmethod
    def token_limit_above(cls, max_batch: int, dimension: int = 4) -> "ScriptedTransport":
        """Reject batches larger than ``max_batch`` with a token limit error."""

        def responder(batch: list[str]) -> str:
            if len(batch) > max_batch:
                return error_body("invalid_request_error", "maximum context length exceeded")
            return embeddings_body(batch, dimension)

        return cls(responder, dimension)

    @classmethod
    def failing(cls, message: str = "connection refused") -> "ScriptedTransport":
        def responder(_: list[str]) -> str:
            raise TransportError(message)

        return cls(responder)
