"""Unit tests for the Anthropic LLM wrapper and get_llm factory."""

from types import SimpleNamespace

import httpx
import pytest
from anthropic import APIConnectionError

from intelligence.llm import AnthropicLLM, Message, get_llm
from utils.exceptions import ConfigurationError, LLMError


class _FakeMessages:
    def __init__(self, response=None, raises=None):
        self.response = response
        self.raises = raises
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.raises:
            raise self.raises
        return self.response


def _response(text="[\"fact\"]", input_tokens=120, output_tokens=30):
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        model="claude-haiku-4-5-20251001",
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens),
        stop_reason="end_turn",
    )


@pytest.mark.asyncio
async def test_acomplete_maps_usage_and_separates_system_prompt():
    messages = _FakeMessages(response=_response())
    llm = AnthropicLLM(api_key="k", client=SimpleNamespace(messages=messages))

    response = await llm.acomplete(
        [Message.system("be terse"), Message.user("extract facts")],
        max_tokens=200,
    )

    call = messages.calls[0]
    assert call["system"] == "be terse"
    assert call["messages"] == [{"role": "user", "content": "extract facts"}]
    assert call["max_tokens"] == 200
    assert call["model"] == "claude-haiku-4-5-20251001"
    assert response.content == "[\"fact\"]"
    assert response.prompt_tokens == 120
    assert response.completion_tokens == 30
    assert response.usage["total_tokens"] == 150


@pytest.mark.asyncio
async def test_acomplete_wraps_api_errors():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    messages = _FakeMessages(raises=APIConnectionError(request=request))
    llm = AnthropicLLM(api_key="k", client=SimpleNamespace(messages=messages))

    with pytest.raises(LLMError) as exc_info:
        await llm.acomplete([Message.user("hello")])

    assert exc_info.value.provider == "anthropic"


def test_get_llm_requires_api_key(monkeypatch):
    monkeypatch.setattr("intelligence.llm.factory.get_secret", lambda name: None)

    with pytest.raises(ConfigurationError):
        get_llm()


def test_get_llm_builds_anthropic_from_settings(monkeypatch):
    monkeypatch.setattr("intelligence.llm.factory.get_secret", lambda name: "anthropic-key")

    llm = get_llm(max_tokens=321)

    assert isinstance(llm, AnthropicLLM)
    assert llm.api_key == "anthropic-key"
    assert llm.max_tokens == 321
    assert llm.provider == "anthropic"


def test_get_llm_rejects_unknown_provider():
    with pytest.raises(ConfigurationError):
        get_llm(provider="unknown")
