import asyncio
import json

import httpx
import pytest

from batchembed.infrastructure.embedding import (
    HttpTransport,
    SessionContext,
    TransportError,
    embed_batch_resilient,
)

API_URL = "https://api.example.com/v1/embeddings"


def _make_transport(handler, **kwargs) -> HttpTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport(
        session=SessionContext(api_key="sk-test-key-123456"),
        api_url=API_URL,
        model="text-embedding-3-small",
        client=client,
        **kwargs,
    )


def test_send_posts_model_and_input_with_bearer_auth() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": []})

    async def run():
        transport = _make_transport(handler)
        body = await transport.send(["hello", "world"])
        await transport.close()
        return body

    body = asyncio.run(run())

    assert json.loads(body) == {"data": []}
    assert seen["url"] == API_URL
    assert seen["auth"] == "Bearer sk-test-key-123456"
    assert seen["body"] == {
        "model": "text-embedding-3-small",
        "input": ["hello", "world"],
        "encoding_format": "float",
    }


def test_encoding_format_can_be_omitted() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": []})

    async def run():
        async with _make_transport(handler, encoding_format=None) as transport:
            await transport.send(["x"])

    asyncio.run(run())

    assert "encoding_format" not in seen["body"]


def test_error_status_still_returns_body() -> None:
    error = {"error": {"message": "too long", "type": "invalid_request_error"}}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json=error)

    async def run():
        async with _make_transport(handler) as transport:
            return await transport.send(["x"])

    assert json.loads(asyncio.run(run())) == error


def test_connection_failure_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def run():
        async with _make_transport(handler) as transport:
            await transport.send(["x"])

    with pytest.raises(TransportError, match="connection refused"):
        asyncio.run(run())


def test_timeout_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async def run():
        async with _make_transport(handler) as transport:
            await transport.send(["x"])

    with pytest.raises(TransportError, match="timeout"):
        asyncio.run(run())


def test_resilient_engine_over_http_retries_and_splits() -> None:
    state = {"server_errors": 1}

    def handler(request: httpx.Request) -> httpx.Response:
        batch = json.loads(request.content)["input"]
        if state["server_errors"]:
            state["server_errors"] -= 1
            return httpx.Response(
                500, json={"error": {"message": "retry", "type": "server error"}}
            )
        if len(batch) > 2:
            return httpx.Response(
                400, json={"error": {"message": "too long", "type": "invalid_request_error"}}
            )
        return httpx.Response(
            200,
            json={"data": [{"index": i, "embedding": [float(len(t))]} for i, t in enumerate(batch)]},
        )

    async def run():
        async with _make_transport(handler) as transport:
            return await embed_batch_resilient(transport, ["a", "bb", "ccc", "dddd"], gas=2)

    result = asyncio.run(run())

    assert [(e.index, e.vector) for e in result] == [
        (0, [1.0]),
        (1, [2.0]),
        (2, [3.0]),
        (3, [4.0]),
    ]


def test_close_is_idempotent() -> None:
    async def run():
        transport = _make_transport(lambda request: httpx.Response(200, json={"data": []}))
        await transport.close()
        await transport.close()

    asyncio.run(run())
