"""HTTP transport for the embedding endpoint."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Optional

import httpx

from .errors import TransportError
from .session import SessionContext

logger = logging.getLogger(__name__)


class TransportInterface(ABC):
    """Sends one batch and returns the raw response body."""

    @abstractmethod
    async def send(self, batch: Sequence[str]) -> str:
        """
        Send one request carrying ``batch``.

        Args:
            batch: Input strings, in order

        Returns:
            Raw response body, uninterpreted

        Raises:
            TransportError: If no response body could be obtained
        """
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None


class HttpTransport(TransportInterface):
    """
    Transport for OpenAI-compatible ``/embeddings`` endpoints.

    The body is returned whatever the HTTP status code: API failures
    arrive as JSON ``error`` objects and are interpreted by the response
    parser. Only failures that leave no body (timeouts, refused
    connections, protocol errors) raise.

    Uses one pooled ``httpx.AsyncClient`` so concurrent split branches
    share connections.
    """

    def __init__(
        self,
        session: SessionContext,
        api_url: str = "https://api.openai.com/v1/embeddings",
        model: str = "text-embedding-3-small",
        timeout: float = 30.0,
        encoding_format: Optional[str] = "float",
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the transport.

        Args:
            session: Credential used for every request
            api_url: Full URL of the embeddings endpoint
            model: Model identifier sent with every request
            timeout: Request timeout in seconds
            encoding_format: Value of the ``encoding_format`` field, or None
                to omit it
            client: Pre-built HTTP client (tests inject one backed by
                ``httpx.MockTransport``)
        """
        self._session = session
        self._api_url = api_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._encoding_format = encoding_format
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def build_payload(self, batch: Sequence[str]) -> dict:
        payload = {"model": self._model, "input": list(batch)}
        if self._encoding_format:
            payload["encoding_format"] = self._encoding_format
        return payload

    async def send(self, batch: Sequence[str]) -> str:
        headers = {**self._session.auth_headers, "Content-Type": "application/json"}
        client = self._get_client()
        try:
            response = await client.post(
                self._api_url,
                headers=headers,
                json=self.build_payload(batch),
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout: {e} (url={self._api_url})") from e
        except httpx.RequestError as e:
            raise TransportError(f"Request error: {e} (url={self._api_url})") from e

        logger.debug(
            f"POST {self._api_url} batch={len(batch)} status={response.status_code}"
        )
        return response.text
