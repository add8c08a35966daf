"""
Fact Extractor
对单个来源做一次廉价的 LLM 调用, 抽取与查询相关的单句事实
"""
import asyncio
from dataclasses import dataclass, field
from typing import List, Optional
import logging

from config import get_llm_settings
from intelligence.llm import BaseLLM, Message
from utils.response_parsers import (
    LineHeuristicStrategy,
    StringArrayStrategy,
    parse_with_fallbacks,
)


logger = logging.getLogger(__name__)


FACT_PROMPT_TEMPLATE = """Extract {fact_count} key facts from this source relevant to the query: "{query}".

Source content:
{excerpt}

Rules:
- Each fact must be a single clear sentence (≤25 words).
- Only include facts that are explicitly stated in the source.
- Prefer concrete, specific facts (numbers, dates, names, claims) over general statements.
- Return ONLY a JSON array of strings, e.g. ["Fact 1.", "Fact 2."]
- No preamble, no markdown."""


@dataclass
class FactExtraction:
    """事实抽取结果; 失败时 facts 为空且 cost 为 0"""
    facts: List[str] = field(default_factory=list)
    cost: float = 0.0


class FactExtractor:
    """
    事实抽取器

    LLM 客户端由调用方构建后注入。
    任何调用失败 (超时, 网络, 额度, 鉴权) 都降级为空结果, 不向上抛出。
    """

    def __init__(
        self,
        llm: BaseLLM,
        model: Optional[str] = None,
        input_cost_per_m: Optional[float] = None,
        output_cost_per_m: Optional[float] = None,
        max_content_chars: int = 6000,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_llm_settings()
        self.llm = llm
        self.model = model or llm.model
        self.input_cost_per_m = settings.input_cost_per_m if input_cost_per_m is None else input_cost_per_m
        self.output_cost_per_m = settings.output_cost_per_m if output_cost_per_m is None else output_cost_per_m
        self.max_content_chars = max_content_chars
        self.max_tokens = max_tokens or settings.max_tokens
        self.timeout = timeout or settings.timeout
        self.strategies = [StringArrayStrategy(), LineHeuristicStrategy()]

    def build_prompt(self, content: str, query: str, fact_count: int) -> str:
        return FACT_PROMPT_TEMPLATE.format(
            fact_count=fact_count,
            query=query,
            excerpt=content[: self.max_content_chars],
        )

    def compute_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """按每百万 token 价格计算费用 (USD)"""
        return (
            prompt_tokens / 1_000_000 * self.input_cost_per_m
            + completion_tokens / 1_000_000 * self.output_cost_per_m
        )

    async def extract(self, content: str, query: str, fact_count: int) -> FactExtraction:
        """
        抽取事实

        Args:
            content: 来源正文 (超出部分截断)
            query: 聚焦查询
            fact_count: 最多返回的事实数

        Returns:
            FactExtraction
        """
        if not (content or "").strip():
            return FactExtraction()

        prompt = self.build_prompt(content, query, fact_count)

        try:
            response = await asyncio.wait_for(
                self.llm.acomplete(
                    [Message.user(prompt)],
                    model=self.model,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Fact extraction timed out after {self.timeout}s")
            return FactExtraction()
        except Exception as e:
            logger.warning(f"Fact extraction failed: {e}")
            return FactExtraction()

        cost = self.compute_cost(response.prompt_tokens, response.completion_tokens)
        facts = parse_with_fallbacks(response.content, self.strategies)[:fact_count]

        logger.debug(f"Extracted {len(facts)} facts (${cost:.5f})")
        return FactExtraction(facts=facts, cost=cost)
