"""Exception types for embedding client."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ApiError


class EmbeddingClientError(Exception):
    """Base exception for embedding client errors."""

    pass


class TransportError(EmbeddingClientError):
    """The request never produced a response body (network or protocol failure)."""

    pass


class MalformedResponseError(EmbeddingClientError):
    """Response body is not JSON or matches neither the error nor the data schema."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class ApiResponseError(EmbeddingClientError):
    """The API answered with a structured error object.

    Raised only in plain mode; resilient mode retries, splits or drops
    the batch instead. Subclasses mirror ``ApiErrorKind``.
    """

    def __init__(self, error: "ApiError"):
        super().__init__(f"{error.kind.value}: {error.message} (type={error.type!r})")
        self.error = error


class ServerError(ApiResponseError):
    """Transient server-side failure, safe to retry unchanged."""

    pass


class TokenLimitError(ApiResponseError):
    """Batch too large for the API; it must be shrunk, not retried."""

    pass


class UnknownApiError(ApiResponseError):
    """API error with an unrecognized type tag."""

    pass


class ConfigurationError(EmbeddingClientError):
    """Invalid or incomplete client configuration."""

    pass


class MissingCredentialError(ConfigurationError):
    """The API key environment variable is unset or empty."""

    pass
