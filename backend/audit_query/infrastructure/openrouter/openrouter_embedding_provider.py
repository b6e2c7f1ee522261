"""OpenRouter-based embedding provider: calls the /embeddings endpoint.

Uses the same httpx client pattern as OpenRouterClient. Without an API key
the provider reports itself unavailable and retrieval stays keyword-only.
"""

import logging
from typing import Any

import httpx

from audit_query.application.interfaces.embedding_provider import EmbeddingProvider
from audit_query.domain.exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)


class OpenRouterEmbeddingProvider(EmbeddingProvider):
    """Infrastructure adapter: generates embeddings via OpenRouter /embeddings API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        app_name: str = "Audit Query Router",
        model: str = "google/gemini-embedding-001",
        model_dimensions: int = 768,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._app_name = app_name
        self._model = model
        self._dimensions = model_dimensions
        self._http_client = http_client

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        url = f"{self._base_url}/embeddings"
        payload: dict[str, Any] = {
            "model": self._model,
            "input": texts,
            "dimensions": self._dimensions,
        }

        client = self._http_client or httpx.AsyncClient(timeout=60.0)
        should_close = self._http_client is None

        try:
            response = await client.post(url, headers=self._get_headers(), json=payload)

            if response.status_code != 200:
                error_text = response.text[:500]
                logger.error("Embedding API error %d: %s", response.status_code, error_text)
                raise EmbeddingProviderError(response.status_code, error_text)

            items = sorted(response.json().get("data", []), key=lambda x: x.get("index", 0))
            vectors = [item["embedding"] for item in items]
            if len(vectors) != len(texts):
                raise EmbeddingProviderError(
                    500, f"expected {len(texts)} embeddings, got {len(vectors)}"
                )

            logger.debug(
                "Generated %d embeddings (model=%s, dims=%d)",
                len(vectors),
                self._model,
                len(vectors[0]) if vectors else 0,
            )
            return vectors

        finally:
            if should_close:
                await client.aclose()
