"""Unit tests for intelligence.tools.fact_extractor."""

import asyncio
import logging

import pytest

from intelligence.llm import BaseLLM, LLMResponse
from intelligence.tools import FactExtractor


class _FakeLLM(BaseLLM):
    def __init__(self, content="", prompt_tokens=0, completion_tokens=0, raises=None, delay=0.0):
        super().__init__(model="fake-haiku")
        self._content = content
        self._usage = {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens}
        self._raises = raises
        self._delay = delay
        self.calls = []

    @property
    def provider(self) -> str:
        return "fake"

    async def acomplete(self, messages, **kwargs):
        self.calls.append((messages, kwargs))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._raises:
            raise self._raises
        return LLMResponse(content=self._content, model=self.model, usage=dict(self._usage))


def _extractor(llm, **kwargs):
    kwargs.setdefault("input_cost_per_m", 0.80)
    kwargs.setdefault("output_cost_per_m", 4.00)
    return FactExtractor(llm, **kwargs)


@pytest.mark.asyncio
async def test_extract_parses_json_array_and_computes_cost():
    llm = _FakeLLM(
        content='["Anthropic was founded in 2021.", "Claude uses constitutional AI.", "Third fact."]',
        prompt_tokens=1000,
        completion_tokens=100,
    )

    result = await _extractor(llm).extract("Some page content", "anthropic", 2)

    assert result.facts == ["Anthropic was founded in 2021.", "Claude uses constitutional AI."]
    assert result.cost == pytest.approx(1000 / 1e6 * 0.80 + 100 / 1e6 * 4.00)


@pytest.mark.asyncio
async def test_extract_prompt_truncates_content_and_states_rules():
    llm = _FakeLLM(content="[]")
    content = "a" * 7000

    await _extractor(llm).extract(content, "my query", 5)

    messages, kwargs = llm.calls[0]
    prompt = messages[0].content
    assert 'relevant to the query: "my query"' in prompt
    assert "a" * 6000 in prompt
    assert "a" * 6001 not in prompt
    assert "Return ONLY a JSON array of strings" in prompt
    assert kwargs["max_tokens"] == 500


@pytest.mark.asyncio
async def test_extract_blank_content_makes_no_call():
    llm = _FakeLLM(content='["x"]')

    result = await _extractor(llm).extract("   \n", "q", 5)

    assert llm.calls == []
    assert result.facts == []
    assert result.cost == 0.0


@pytest.mark.asyncio
async def test_extract_call_failure_is_free_and_empty(caplog):
    llm = _FakeLLM(raises=RuntimeError("rate limited"))

    with caplog.at_level(logging.WARNING):
        result = await _extractor(llm).extract("content", "q", 5)

    assert result.facts == []
    assert result.cost == 0.0
    assert "rate limited" in caplog.text


@pytest.mark.asyncio
async def test_extract_timeout_is_free_and_empty():
    llm = _FakeLLM(content='["late"]', delay=1.0)

    result = await _extractor(llm, timeout=0.01).extract("content", "q", 5)

    assert result.facts == []
    assert result.cost == 0.0


@pytest.mark.asyncio
async def test_extract_falls_back_to_bullet_lines_but_still_charges():
    llm = _FakeLLM(
        content="Facts:\n- Anthropic released Claude 3 in March 2024.\n- ok\n1. The company is based in San Francisco.",
        prompt_tokens=500,
        completion_tokens=50,
    )

    result = await _extractor(llm).extract("content", "q", 5)

    assert result.facts == [
        "Anthropic released Claude 3 in March 2024.",
        "The company is based in San Francisco.",
    ]
    assert result.cost > 0


@pytest.mark.asyncio
async def test_extract_drops_non_string_elements():
    llm = _FakeLLM(content='["Valid fact.", 3, {"a": 1}, "  "]')

    result = await _extractor(llm).extract("content", "q", 5)

    assert result.facts == ["Valid fact."]
