"""
Base Search Provider
所有搜索源适配器的抽象基类
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional
import asyncio
import logging

import httpx

from config import get_settings
from models import ProviderName, ProviderResult, SearchHit


logger = logging.getLogger(__name__)


class BaseSearchProvider(ABC):
    """
    搜索源抽象基类

    子类实现 _search(), 可以自由抛出异常。
    对外的 search() 永不抛出: 任何失败都记录为 warning 并返回空结果。
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = get_settings()
        self.api_key = api_key
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    @abstractmethod
    def provider(self) -> ProviderName:
        """返回数据源标识"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """返回搜索源名称"""
        pass

    @abstractmethod
    async def _search(self, query: str, max_results: int) -> ProviderResult:
        """
        实际的搜索实现

        Args:
            query: 搜索关键词
            max_results: 最大返回结果数

        Returns:
            ProviderResult
        """
        pass

    async def search(self, query: str, max_results: int) -> ProviderResult:
        """
        搜索接口 (永不抛出)

        Args:
            query: 搜索关键词
            max_results: 最大返回结果数

        Returns:
            ProviderResult; 失败时 hits 为空且 cost 为 0
        """
        try:
            result = await self._search(query, max_results)
        except asyncio.TimeoutError:
            logger.warning(f"[{self.name}] Search '{query}' timed out")
            return self._empty(error="timeout")
        except Exception as e:
            self._log_failure("Search failed", e)
            return self._empty(error=str(e) or e.__class__.__name__)

        self._log_search(query, len(result.hits))
        return result

    def _empty(self, error: Optional[str] = None) -> ProviderResult:
        return ProviderResult(provider=self.provider, hits=[], cost=0.0, error=error)

    def _hit(self, url: str, title: str, snippet: Optional[str] = None, **kwargs) -> SearchHit:
        return SearchHit(url=url, title=title, snippet=snippet, provider=self.provider, **kwargs)

    def _get_client(self) -> httpx.AsyncClient:
        """获取或创建 HTTP 客户端"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
            self._owns_client = True
        return self._client

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        """发送 POST 请求, 每次调用各自受 timeout 限制"""
        client = self._get_client()
        return await asyncio.wait_for(client.post(url, **kwargs), timeout=self.timeout)

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def close(self):
        """清理资源 (注入的客户端由调用方负责关闭)"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _log_search(self, query: str, count: int):
        """记录搜索日志"""
        logger.info(f"[{self.name}] Search '{query}' returned {count} results")

    def _log_failure(self, message: str, error: Exception):
        """记录失败日志"""
        logger.warning(f"[{self.name}] {message}: {error}")


def dedupe_hits(hits: List[SearchHit]) -> List[SearchHit]:
    """按 URL 去除重复结果, 保留首次出现的顺序"""
    seen = set()
    unique: List[SearchHit] = []
    for hit in hits:
        if hit.url in seen:
            continue
        seen.add(hit.url)
        unique.append(hit)
    return unique
