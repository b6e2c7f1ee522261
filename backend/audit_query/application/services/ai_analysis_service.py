"""AI analysis use case: asks the chat model to analyze selected findings.

The router treats every failure here as a single ``AIServiceError``;
provider-specific detail is reduced to a readable message.
"""

import logging
import time
from dataclasses import dataclass, field

from audit_query.application.interfaces.chat_provider import ChatProvider
from audit_query.domain.entities import ChatMessage, TokenUsage
from audit_query.domain.exceptions import AIServiceError, ChatProviderError

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an AI assistant analyzing audit findings data. Use the following "
    "findings as context to answer the user's question. Reference findings by "
    "their id in square brackets when you rely on them, point out patterns and "
    "risks, and say so plainly when the context does not contain the answer."
)
_MAX_HISTORY_MESSAGES = 10


@dataclass
class AnalysisResult:
    text: str
    model: str
    duration_ms: int
    usage: TokenUsage = field(default_factory=TokenUsage)


class AIAnalysisService:
    """Application service: one analysis call per routed query.

    Args:
        provider: Chat provider port (OpenRouter in production).
        model: Model used for ``mode="low"``.
        high_model: Model used for ``mode="high"``; falls back to ``model``.
    """

    def __init__(
        self,
        provider: ChatProvider,
        *,
        model: str,
        high_model: str = "",
        temperature: float | None = 0.2,
        max_tokens: int | None = 2048,
    ):
        self._provider = provider
        self._model = model
        self._high_model = high_model or model
        self._temperature = temperature
        self._max_tokens = max_tokens

    def model_for(self, mode: str) -> str:
        return self._high_model if mode == "high" else self._model

    async def invoke(
        self,
        context_text: str,
        question: str,
        *,
        history: list[ChatMessage] | None = None,
        mode: str = "low",
    ) -> AnalysisResult:
        """Run the analysis and return the model's answer.

        Raises:
            AIServiceError: provider error, transport error or empty answer.
        """
        messages = self.build_messages(context_text, question, history or [])
        model = self.model_for(mode)
        start = time.monotonic()

        try:
            result = await self._provider.complete(
                messages,
                model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except ChatProviderError as e:
            logger.error("AI analysis failed (%s %d): %s", e.provider, e.status_code, e.message)
            raise AIServiceError(e.message, provider=e.provider, status_code=e.status_code) from e
        except Exception as e:
            logger.error("AI analysis failed: %s: %s", type(e).__name__, e)
            raise AIServiceError(str(e) or type(e).__name__, provider=self._provider.provider_name) from e

        duration_ms = int((time.monotonic() - start) * 1000)
        text = (result.content or "").strip()
        if not text:
            raise AIServiceError(
                f"Model returned an empty answer (finish_reason={result.finish_reason})",
                provider=result.provider or self._provider.provider_name,
            )

        logger.info(
            "AI analysis model=%s tokens=%d %dms",
            result.model or model,
            result.usage.total_tokens,
            duration_ms,
        )
        return AnalysisResult(
            text=text,
            model=result.model or model,
            duration_ms=duration_ms,
            usage=result.usage,
        )

    @staticmethod
    def build_messages(
        context_text: str, question: str, history: list[ChatMessage]
    ) -> list[ChatMessage]:
        system = _SYSTEM_PROMPT
        if context_text:
            system = f"{system}\n\n{context_text.rstrip()}"
        else:
            system = f"{system}\n\nNo matching findings were found for this question."
        messages = [ChatMessage(role="system", content=system)]
        messages.extend(
            m for m in history[-_MAX_HISTORY_MESSAGES:] if m.role in ("user", "assistant")
        )
        messages.append(ChatMessage(role="user", content=f"User Question: {question}"))
        return messages
