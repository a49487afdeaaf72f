"""
Data types exchanged between transport, classifier and engine.

``ParseOutcome`` is a flat union of three frozen dataclasses; callers
dispatch on it with ``isinstance``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

# Wire tags are matched verbatim and case-sensitively.
TOKEN_LIMIT_TAG = "invalid_request_error"
SERVER_ERROR_TAG = "server error"


class ApiErrorKind(str, Enum):
    """How the engine reacts to an API error."""

    SERVER_ERROR = "server_error"
    TOKEN_LIMIT = "token_limit"
    UNKNOWN = "unknown"


def classify_api_error(error_type: str) -> ApiErrorKind:
    """Map the ``type`` field of an API error object to its kind."""
    if error_type == TOKEN_LIMIT_TAG:
        return ApiErrorKind.TOKEN_LIMIT
    if error_type == SERVER_ERROR_TAG:
        return ApiErrorKind.SERVER_ERROR
    return ApiErrorKind.UNKNOWN


@dataclass(frozen=True)
class IndexedEmbedding:
    """
    One embedding vector and the position of its input.

    Attributes:
        index: Position of the input within the batch that produced it
        vector: Embedding values
    """

    index: int
    vector: list[float] = field(default_factory=list)

    def shifted(self, offset: int) -> "IndexedEmbedding":
        """Return a copy whose index is moved by ``offset``."""
        if offset == 0:
            return self
        return IndexedEmbedding(index=self.index + offset, vector=self.vector)


@dataclass(frozen=True)
class ApiError:
    """Structured error reported by the embedding API."""

    message: str
    type: str

    @property
    def kind(self) -> ApiErrorKind:
        return classify_api_error(self.type)


@dataclass(frozen=True)
class ParseFailure:
    """
    The response body could not be interpreted.

    Attributes:
        reason: Human-readable description of what went wrong
        raw: The offending response body, kept for diagnostics
        invalid_json: True when the body was not JSON at all, False when it
            was JSON matching neither the error nor the data schema
    """

    reason: str
    raw: str
    invalid_json: bool = False


@dataclass(frozen=True)
class EmbeddingsParsed:
    """Successful response: embeddings in the order the API sent them."""

    embeddings: list[IndexedEmbedding]


ParseOutcome = Union[ParseFailure, ApiError, EmbeddingsParsed]
