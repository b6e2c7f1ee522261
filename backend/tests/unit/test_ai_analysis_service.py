"""Unit tests for the AIAnalysisService."""

import pytest

from audit_query.application.interfaces.chat_provider import ChatProvider
from audit_query.application.services.ai_analysis_service import AIAnalysisService
from audit_query.domain.entities import ChatCompletionResult, ChatMessage, TokenUsage
from audit_query.domain.exceptions import AIServiceError, ChatProviderError


# ── Fakes ──


class FakeChatProvider(ChatProvider):
    def __init__(self, *, content: str = "Analysis text", error: Exception | None = None):
        self._content = content
        self._error = error
        self.calls: list[dict] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def complete(self, messages, model, *, temperature=None, max_tokens=None):
        self.calls.append(
            {"messages": messages, "model": model, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self._error is not None:
            raise self._error
        return ChatCompletionResult(
            model=model,
            content=self._content,
            finish_reason="stop",
            usage=TokenUsage(prompt_tokens=100, completion_tokens=20, total_tokens=120),
            provider="fake",
        )


def _service(provider: FakeChatProvider, **kwargs) -> AIAnalysisService:
    return AIAnalysisService(provider, model="test/low", high_model="test/high", **kwargs)


# ── Tests ──


@pytest.mark.asyncio
async def test_invoke_returns_answer_and_usage():
    provider = FakeChatProvider(content="  Payroll controls are weak.  ")
    result = await _service(provider).invoke("Context", "What is weak?")

    assert result.text == "Payroll controls are weak."
    assert result.model == "test/low"
    assert result.usage.total_tokens == 120
    assert provider.calls[0]["temperature"] == 0.2
    assert provider.calls[0]["max_tokens"] == 2048


@pytest.mark.asyncio
async def test_high_mode_selects_high_model():
    provider = FakeChatProvider()
    await _service(provider).invoke("Context", "Q", mode="high")
    assert provider.calls[0]["model"] == "test/high"


def test_high_model_defaults_to_low_model():
    service = AIAnalysisService(FakeChatProvider(), model="test/low")
    assert service.model_for("high") == "test/low"


def test_messages_embed_context_and_question():
    messages = AIAnalysisService.build_messages("=== AUDIT FINDINGS ===\n[1] F1", "Why?", [])
    assert [m.role for m in messages] == ["system", "user"]
    assert "[1] F1" in messages[0].content
    assert messages[1].content == "User Question: Why?"


def test_messages_note_empty_context():
    messages = AIAnalysisService.build_messages("", "Why?", [])
    assert "No matching findings" in messages[0].content


def test_history_is_trimmed_and_filtered():
    history = [ChatMessage(role="system", content="ignored")]
    history += [
        ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
        for i in range(14)
    ]
    messages = AIAnalysisService.build_messages("ctx", "Now?", history)

    middle = messages[1:-1]
    assert len(middle) == 10
    assert middle[0].content == "turn 4"
    assert all(m.role in ("user", "assistant") for m in middle)


@pytest.mark.asyncio
async def test_provider_error_becomes_ai_service_error():
    provider = FakeChatProvider(error=ChatProviderError("fake", 429, "Rate limited"))
    with pytest.raises(AIServiceError) as exc_info:
        await _service(provider).invoke("ctx", "Q")
    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "Rate limited"
    assert exc_info.value.provider == "fake"


@pytest.mark.asyncio
async def test_unexpected_error_becomes_ai_service_error():
    provider = FakeChatProvider(error=RuntimeError("socket closed"))
    with pytest.raises(AIServiceError, match="socket closed"):
        await _service(provider).invoke("ctx", "Q")


@pytest.mark.asyncio
async def test_empty_answer_is_an_error():
    provider = FakeChatProvider(content="   ")
    with pytest.raises(AIServiceError, match="empty answer"):
        await _service(provider).invoke("ctx", "Q")
