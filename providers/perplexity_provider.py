"""
Perplexity Search Provider
经 OpenRouter 调用 Perplexity Sonar 的 LLM 检索
"""
from typing import Any, Dict, List, Optional
import logging

import httpx

from .base import BaseSearchProvider
from models import ProviderName, ProviderResult, SearchHit
from utils.exceptions import ConfigurationError, ProviderError
from utils.response_parsers import JsonArrayStrategy


logger = logging.getLogger(__name__)


SYSTEM_PROMPT_TEMPLATE = (
    "You are a research assistant. Find URLs and titles of {max_results} highly relevant "
    "sources for the given query. Focus on authoritative, credible sources. Return ONLY a "
    "JSON array with objects having \"url\" and \"title\" fields - no prose, no markdown."
)


class PerplexityProvider(BaseSearchProvider):
    """
    Perplexity/Sonar 适配器 (计费)

    解析顺序:
    1. 响应文本中的 JSON 数组 ({url, title})
    2. 不足 max_results 时用 citations 补齐 (标题即 URL)

    只有调用成功时才报告 usage.cost。
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key=api_key, client=client)
        self._pplx_settings = self.settings.perplexity
        self.timeout = self._pplx_settings.timeout
        self._parser = JsonArrayStrategy()

    @property
    def provider(self) -> ProviderName:
        return ProviderName.PERPLEXITY

    @property
    def name(self) -> str:
        return "Perplexity"

    async def _search(self, query: str, max_results: int) -> ProviderResult:
        if not self.api_key:
            raise ConfigurationError("OPENROUTER_API_KEY not set")

        payload = {
            "model": self._pplx_settings.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT_TEMPLATE.format(max_results=max_results)},
                {"role": "user", "content": query},
            ],
            "max_tokens": self._pplx_settings.max_tokens,
        }

        response = await self._post(
            self._pplx_settings.base_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "HTTP-Referer": self._pplx_settings.referer,
                "X-Title": self._pplx_settings.app_title,
            },
            json=payload,
        )

        data = response.json()
        if not isinstance(data, dict):
            raise ProviderError("Unexpected response body", source=self.name)

        error = data.get("error")
        if response.status_code >= 400 or error:
            message = (error or {}).get("message") if isinstance(error, dict) else None
            raise ProviderError(
                f"Perplexity/OpenRouter error: {message or f'HTTP {response.status_code}'}",
                source=self.name,
            )

        usage = data.get("usage") or {}
        cost = float(usage.get("cost") or 0.0)

        content = self._message_content(data)
        citations = [c for c in (data.get("citations") or []) if isinstance(c, str) and c]

        hits = self._parse_hits(content, max_results)
        hits = self._top_up_from_citations(hits, citations, max_results)

        return ProviderResult(provider=self.provider, hits=hits, cost=max(0.0, cost))

    @staticmethod
    def _message_content(data: Dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not choices:
            return ""
        message = (choices[0] or {}).get("message") or {}
        return str(message.get("content") or "")

    def _parse_hits(self, content: str, max_results: int) -> List[SearchHit]:
        """从模型输出中解析结构化结果"""
        items = self._parser.parse(content)
        if not items:
            return []

        hits: List[SearchHit] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            url = item.get("url")
            title = item.get("title")
            if not url or not title:
                continue
            hits.append(self._hit(url=str(url), title=str(title), cost_bearing=True))
            if len(hits) >= max_results:
                break
        return hits

    def _top_up_from_citations(
        self,
        hits: List[SearchHit],
        citations: List[str],
        max_results: int,
    ) -> List[SearchHit]:
        """用引用链接补齐结果, 跳过已有 URL"""
        if len(hits) >= max_results or not citations:
            return hits

        existing = {hit.url for hit in hits}
        for url in citations[:max_results]:
            if len(hits) >= max_results:
                break
            if url in existing:
                continue
            hits.append(self._hit(url=url, title=url, cost_bearing=True))
            existing.add(url)
        return hits
