"""Unit tests for the OpenRouterEmbeddingProvider."""

import json

import httpx
import pytest

from audit_query.infrastructure.openrouter.openrouter_embedding_provider import (
    OpenRouterEmbeddingProvider,
)
from audit_query.domain.exceptions import EmbeddingProviderError


def _provider(handler, api_key: str = "test-key") -> OpenRouterEmbeddingProvider:
    return OpenRouterEmbeddingProvider(
        api_key=api_key,
        model="test/embed",
        model_dimensions=3,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_embeddings_are_returned_in_input_order():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"data": [
            {"index": 1, "embedding": [0.0, 1.0, 0.0]},
            {"index": 0, "embedding": [1.0, 0.0, 0.0]},
        ]})

    vectors = await _provider(handler).generate_embeddings(["first", "second"])

    assert vectors == [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
    body = json.loads(captured[0].content)
    assert body == {"model": "test/embed", "input": ["first", "second"], "dimensions": 3}
    assert captured[0].url.path.endswith("/embeddings")


@pytest.mark.asyncio
async def test_embed_single_text():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [{"index": 0, "embedding": [0.5, 0.5, 0.0]}]})

    assert await _provider(handler).embed("payroll fraud") == [0.5, 0.5, 0.0]


@pytest.mark.asyncio
async def test_empty_input_makes_no_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert await _provider(handler).generate_embeddings([]) == []


@pytest.mark.asyncio
async def test_http_error_raises_embedding_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="invalid key")

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await _provider(handler).generate_embeddings(["text"])
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_count_mismatch_is_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [{"index": 0, "embedding": [1.0, 0.0, 0.0]}]})

    with pytest.raises(EmbeddingProviderError, match="expected 2 embeddings"):
        await _provider(handler).generate_embeddings(["a", "b"])


def test_availability_follows_api_key():
    assert _provider(lambda r: httpx.Response(200), api_key="key").is_available() is True
    assert _provider(lambda r: httpx.Response(200), api_key="").is_available() is False
    assert _provider(lambda r: httpx.Response(200)).dimensions == 3
