"""
Exa Search Provider
通用网页搜索
API 文档: https://docs.exa.ai/reference/search
"""
from typing import Any, Dict, List, Optional
import logging

import httpx

from .base import BaseSearchProvider
from models import ProviderName, ProviderResult, SearchHit
from utils.exceptions import ConfigurationError, ProviderError


logger = logging.getLogger(__name__)


class ExaProvider(BaseSearchProvider):
    """
    Exa 搜索适配器

    一次请求携带查询和结果数提示, 每条结果映射为 (title, url, 摘要)。
    非 2xx 响应视为失败。
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key=api_key, client=client)
        self._exa_settings = self.settings.exa
        self.timeout = self._exa_settings.timeout

    @property
    def provider(self) -> ProviderName:
        return ProviderName.EXA

    @property
    def name(self) -> str:
        return "Exa"

    async def _search(self, query: str, max_results: int) -> ProviderResult:
        if not self.api_key:
            raise ConfigurationError("EXA_API_KEY not set")

        body = {
            "query": query,
            "type": "auto",
            "numResults": max_results,
            "contents": {"text": {"maxCharacters": self._exa_settings.snippet_chars}},
        }

        response = await self._post(
            self._exa_settings.base_url,
            headers={
                "x-api-key": self.api_key,
                "Content-Type": "application/json",
            },
            json=body,
        )

        if response.status_code >= 400:
            raise ProviderError(
                f"Exa API error {response.status_code}: {response.text[:200]}",
                source=self.name,
            )

        data = response.json()
        hits = self._convert_results(data.get("results") or [])
        return ProviderResult(provider=self.provider, hits=hits)

    def _convert_results(self, results: List[Dict[str, Any]]) -> List[SearchHit]:
        """转换 Exa 响应为 SearchHit, 跳过缺少标题或链接的条目"""
        hits = []
        limit = self._exa_settings.snippet_chars
        for item in results:
            if not isinstance(item, dict):
                continue
            title = item.get("title")
            url = item.get("url")
            if not title or not url:
                continue
            text = item.get("text")
            hits.append(self._hit(url=url, title=title, snippet=text[:limit] if text else None))
        return hits
