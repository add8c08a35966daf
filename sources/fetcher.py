"""
Source Fetcher
抓取 URL 并提取正文与查询相关段落

- 会话缓存避免同一进程内重复抓取
- 429/5xx/网络错误按指数退避重试 (重试只发生在这里, 研究流水线本身不重试)
- 结果状态: ok, dead, paywall, error
"""
from __future__ import annotations

import asyncio
import re
from typing import List, Optional, Sequence
from urllib.parse import urlparse
import logging

import httpx
from bs4 import BeautifulSoup
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import get_settings
from models import FetchedSource, FetchRequest, FetchStatus
from storage import MemoryCache
from utils.exceptions import FetchError


logger = logging.getLogger(__name__)


# 禁止自动访问的域名, 直接跳过
UNVERIFIABLE_DOMAINS = (
    "twitter.com",
    "x.com",
    "linkedin.com",
    "facebook.com",
    "t.co",
    "instagram.com",
    "tiktok.com",
)

PAYWALL_SIGNALS = (
    "subscribe to read",
    "sign in to read",
    "create a free account",
    "this content is for subscribers",
    "subscriber-only",
    "paywall",
    "to continue reading",
    "unlimited access",
    "login required",
    "please sign in",
    "register to read",
)

_STOPWORDS = {
    "the", "and", "for", "that", "are", "was", "with", "from", "this", "has",
    "have", "had", "its", "not", "but", "can", "all", "one", "more", "also",
    "about", "into", "such", "than", "then", "when", "which", "will", "been",
}

_DROP_TAGS = ["title","script", "style", "nav", "header", "footer", "noscript"]
_BLOCK_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "blockquote", "pre", "tr"]


class TransientFetchError(FetchError):
    """可重试的抓取错误 (429, 5xx, 网络/超时)"""
    pass


def get_domain(url: str) -> str:
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def is_unverifiable(url: str) -> bool:
    domain = get_domain(url)
    return any(domain == d or domain.endswith("." + d) for d in UNVERIFIABLE_DOMAINS)


def detect_paywall(content: str) -> bool:
    """短正文出现任一信号, 或长正文前 2000 字符出现至少两个信号"""
    if not content:
        return False
    lower = content.lower()
    if len(content) < 500:
        return any(signal in lower for signal in PAYWALL_SIGNALS)
    early = lower[:2000]
    return sum(1 for signal in PAYWALL_SIGNALS if signal in early) >= 2


def html_to_text(html: str) -> tuple:
    """
    HTML 转纯文本

    Returns:
        (title, text); 段落之间以空行分隔
    """
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text(" ", strip=True) if soup.title else ""

    for tag in soup(_DROP_TAGS):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(_BLOCK_TAGS):
        block.append("\n\n")

    text = soup.get_text()
    text = re.sub(r"[ \t\r\f\v]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return re.sub(r"\s+", " ", title).strip(), text.strip()


def tokenize_query(query: str) -> List[str]:
    """查询关键词: 长度 >= 3 且非停用词"""
    return [
        token for token in re.split(r"\W+", (query or "").lower())
        if len(token) >= 3 and token not in _STOPWORDS
    ]


def extract_relevant_excerpts(content: str, query: str, max_excerpts: int = 5) -> List[str]:
    """
    按关键词重合度挑选与查询最相关的段落

    Args:
        content: 正文
        query: 查询
        max_excerpts: 最多返回段落数

    Returns:
        得分 > 0 的段落, 按得分降序
    """
    if not (query or "").strip():
        return []
    tokens = tokenize_query(query)
    if not tokens:
        return []

    paragraphs = [
        re.sub(r"\s+", " ", block).strip()
        for block in re.split(r"\n\n+", content or "")
    ]
    scored = []
    for paragraph in paragraphs:
        if len(paragraph) <= 40:
            continue
        lower = paragraph.lower()
        score = sum(1 for token in tokens if token in lower) / len(tokens)
        if score > 0:
            scored.append((score, paragraph))

    # 稳定排序, 同分保持原文顺序
    scored.sort(key=lambda item: item[0], reverse=True)
    return [paragraph for _, paragraph in scored[:max_excerpts]]


class SourceFetcher:
    """
    网页抓取器

    fetch_many() 按批次并发抓取, 批次之间插入固定延迟;
    返回结果与请求同序同长度, 单个 URL 失败体现在 status 上而不是异常。
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        cache: Optional[MemoryCache] = None,
        wait=None,
    ):
        self.settings = get_settings().fetcher
        self._client = client
        self._owns_client = client is None
        self.cache = cache if cache is not None else MemoryCache(ttl=self.settings.cache_ttl)
        self._wait = wait if wait is not None else wait_exponential(multiplier=1, min=2, max=8)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.timeout),
                follow_redirects=True,
                headers={
                    "User-Agent": self.settings.user_agent,
                    "Accept": "text/html,application/xhtml+xml,*/*;q=0.9",
                },
            )
            self._owns_client = True
        return self._client

    async def close(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _get_once(self, url: str) -> httpx.Response:
        client = self._get_client()
        try:
            response = await asyncio.wait_for(client.get(url), timeout=self.settings.timeout)
        except (httpx.TransportError, asyncio.TimeoutError) as e:
            raise TransientFetchError(str(e) or "timeout", url=url) from e

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientFetchError(f"HTTP {response.status_code}", url=url, status_code=response.status_code)
        return response

    async def _get_with_retry(self, url: str) -> httpx.Response:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.settings.max_retries),
            wait=self._wait,
            retry=retry_if_exception_type(TransientFetchError),
            reraise=True,
        ):
            with attempt:
                return await self._get_once(url)
        raise FetchError("max retries exceeded", url=url)

    async def _download(self, url: str) -> tuple:
        """
        下载并转换页面

        Returns:
            (title, content, http_status, error)
        """
        try:
            response = await self._get_with_retry(url)
        except FetchError as e:
            return "", "", e.status_code, e.message

        status = response.status_code
        if status >= 400:
            return "", "", status, f"HTTP {status}"

        content_type = response.headers.get("content-type", "")
        if "application/pdf" in content_type:
            return "(PDF)", "", status, "PDF content"
        if "text/html" not in content_type and "application/xhtml" not in content_type:
            return "", "", status, f"non-HTML: {content_type}"

        title, text = html_to_text(response.text)
        return title, text[: self.settings.max_content_chars], status, None

    def _excerpts(self, request: FetchRequest, content: str) -> List[str]:
        if request.extract_mode != "relevant" or not request.query or not content:
            return []
        return extract_relevant_excerpts(content, request.query, self.settings.max_excerpts)

    async def fetch_source(self, request: FetchRequest) -> FetchedSource:
        """抓取单个 URL (不抛出异常)"""
        url = request.url

        cached: Optional[FetchedSource] = self.cache.get(url)
        if cached is not None:
            # 段落随本次请求的查询和模式重新挑选
            return cached.model_copy(update={"relevant_excerpts": self._excerpts(request, cached.content)})

        if is_unverifiable(url):
            result = FetchedSource(url=url, status=FetchStatus.ERROR)
            self.cache.set(url, result)
            return result

        try:
            title, content, http_status, error = await self._download(url)
        except Exception as e:
            logger.warning(f"Fetch failed for {url}: {e}")
            return FetchedSource(url=url, status=FetchStatus.ERROR)

        status = self._classify(content, http_status, error)
        if error:
            logger.debug(f"Fetch {url}: status={status.value} ({error})")

        result = FetchedSource(
            url=url,
            title=title,
            content=content,
            relevant_excerpts=self._excerpts(request, content),
            status=status,
        )
        self.cache.set(url, result)
        return result

    @staticmethod
    def _classify(content: str, http_status: int, error: Optional[str]) -> FetchStatus:
        if error and http_status == 0:
            return FetchStatus.ERROR
        if http_status >= 400:
            return FetchStatus.DEAD
        if detect_paywall(content):
            return FetchStatus.PAYWALL
        if content:
            return FetchStatus.OK
        if error:
            return FetchStatus.ERROR
        return FetchStatus.OK

    async def fetch_many(
        self,
        requests: Sequence[FetchRequest],
        concurrency: int = 5,
        delay_ms: int = 500,
    ) -> List[FetchedSource]:
        """
        批量抓取

        Args:
            requests: 抓取请求
            concurrency: 每批最大并发数
            delay_ms: 批次之间的延迟 (毫秒)

        Returns:
            与 requests 同序同长度的结果
        """
        batch_size = max(1, int(concurrency))
        results: List[FetchedSource] = []

        for start in range(0, len(requests), batch_size):
            batch = requests[start:start + batch_size]
            results.extend(await asyncio.gather(*[self.fetch_source(r) for r in batch]))
            if start + batch_size < len(requests) and delay_ms > 0:
                await asyncio.sleep(delay_ms / 1000)

        logger.info(
            f"Fetched {len(results)} URLs "
            f"({sum(1 for r in results if r.status == FetchStatus.OK)} ok)"
        )
        return results
