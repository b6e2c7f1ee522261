"""OpenRouter API client: implements the ChatProvider interface.

Sends non-streaming chat completions to https://openrouter.ai/api/v1 over
httpx. The analysis service is the only caller.
"""

import logging
from typing import Any

import httpx

from audit_query.application.interfaces.chat_provider import ChatProvider
from audit_query.domain.entities import ChatCompletionResult, ChatMessage, TokenUsage
from audit_query.domain.exceptions import ChatProviderError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 120.0


class OpenRouterClient(ChatProvider):
    """Infrastructure adapter: connects to the OpenRouter API.

    Pass ``http_client`` to share a pooled client (or a mock transport in
    tests); otherwise a client is created and closed per request.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        app_name: str = "Audit Query Router",
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._app_name = app_name
        self._http_client = http_client

    @property
    def provider_name(self) -> str:
        return "openrouter"

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

    @staticmethod
    def _build_payload(
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        return payload

    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatCompletionResult:
        """Send a non-streaming chat completion to OpenRouter."""
        payload = self._build_payload(
            messages, model, temperature=temperature, max_tokens=max_tokens
        )
        url = f"{self._base_url}/chat/completions"

        client = self._http_client or httpx.AsyncClient(timeout=_DEFAULT_TIMEOUT)
        should_close = self._http_client is None

        try:
            response = await client.post(url, headers=self._get_headers(), json=payload)
            if response.status_code != 200:
                self._raise_provider_error(response)
            return self._parse_completion_response(response.json())
        except httpx.HTTPError as e:
            logger.error("OpenRouter transport error: %s", e)
            raise ChatProviderError(
                provider=self.provider_name, status_code=503, message=str(e) or type(e).__name__
            ) from e
        finally:
            if should_close:
                await client.aclose()

    def _parse_completion_response(self, data: dict[str, Any]) -> ChatCompletionResult:
        if "error" in data:
            error = data["error"]
            raise ChatProviderError(
                provider=self.provider_name,
                status_code=error.get("code", 500),
                message=error.get("message", "Unknown error"),
            )

        choices = data.get("choices", [])
        if not choices:
            raise ChatProviderError(
                provider=self.provider_name,
                status_code=500,
                message="No choices in response",
            )

        choice = choices[0]
        message = choice.get("message", {})
        usage = data.get("usage", {})
        return ChatCompletionResult(
            model=data.get("model", ""),
            content=message.get("content", "") or "",
            finish_reason=choice.get("finish_reason", "stop") or "stop",
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
                cost=usage.get("cost"),
            ),
            provider=self.provider_name,
        )

    def _raise_provider_error(self, response: httpx.Response) -> None:
        try:
            message = response.json().get("error", {}).get("message", response.text)
        except ValueError:
            message = response.text

        raise ChatProviderError(
            provider=self.provider_name,
            status_code=response.status_code,
            message=message,
        )
