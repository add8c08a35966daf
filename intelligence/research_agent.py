"""
Research Agent
多源研究流水线: 聚焦查询 -> 并发搜索 -> URL 去重 -> 抓取 -> 预算内事实抽取 -> 组装结果

用法:
    from intelligence import run_research
    from models import ResearchRequest, PageContext

    result = await run_research(ResearchRequest(
        topic="Anthropic constitutional AI",
        page_context=PageContext(title="Anthropic", type="organization"),
        budget_cap=3.0,
    ))
"""
import time
from typing import Callable, List, Optional, Sequence
import logging

import httpx

from aggregator import BlankQueryPolicy, DataAggregator, check_query, deduplicate, focus_query
from config import get_research_settings, get_secret
from models import (
    CostBreakdown,
    DedupResult,
    FetchedSource,
    FetchRequest,
    FetchStatus,
    ResearchMetadata,
    ResearchRequest,
    ResearchResult,
    SourceCacheEntry,
)
from sources import SourceFetcher
from utils.exceptions import ConfigurationError

from .llm import get_llm
from .tools import FactExtractor


logger = logging.getLogger(__name__)

SecretLookup = Callable[[str], Optional[str]]

CONTENT_FALLBACK_CHARS = 3000


def source_content(fetched: FetchedSource) -> str:
    """下游使用的正文: 相关段落优先, 否则取正文开头"""
    if fetched.relevant_excerpts:
        return "\n\n".join(fetched.relevant_excerpts)
    return (fetched.content or "")[:CONTENT_FALLBACK_CHARS]


class ResearchAgent:
    """
    研究智能体

    所有外部协作方 (聚合器, 抓取器, 事实抽取器, 密钥查找) 都可以注入;
    未注入时按配置构建默认实现。
    """

    def __init__(
        self,
        aggregator: Optional[DataAggregator] = None,
        fetcher=None,
        extractor: Optional[FactExtractor] = None,
        secret_lookup: SecretLookup = get_secret,
        http_client: Optional[httpx.AsyncClient] = None,
        blank_query_policy: Optional[BlankQueryPolicy] = None,
        fetch_concurrency: Optional[int] = None,
        fetch_delay_ms: Optional[int] = None,
        show_progress: bool = False,
    ):
        self.settings = get_research_settings()
        self.secret_lookup = secret_lookup
        self.http_client = http_client
        self._aggregator = aggregator
        self._fetcher = fetcher
        self._owns_fetcher = fetcher is None
        self._extractor = extractor
        self._owns_extractor = extractor is None
        self._extractor_unavailable = False
        self.blank_query_policy = BlankQueryPolicy(blank_query_policy or self.settings.blank_query_policy)
        self.fetch_concurrency = fetch_concurrency or self.settings.fetch_concurrency
        self.fetch_delay_ms = self.settings.fetch_delay_ms if fetch_delay_ms is None else fetch_delay_ms
        self.show_progress = show_progress

    @property
    def fetcher(self):
        if self._fetcher is None:
            self._fetcher = SourceFetcher()
        return self._fetcher

    def _get_extractor(self) -> Optional[FactExtractor]:
        """首次需要时构建抽取器; 未配置 LLM 凭据时本次会话不再抽取"""
        if self._extractor is None and not self._extractor_unavailable:
            try:
                self._extractor = FactExtractor(get_llm())
            except ConfigurationError as e:
                logger.warning(f"Fact extraction disabled: {e}")
                self._extractor_unavailable = True
        return self._extractor

    async def _search(self, request: ResearchRequest, query: str, max_results: int) -> DedupResult:
        aggregator = self._aggregator
        owns_aggregator = aggregator is None
        if owns_aggregator:
            aggregator = DataAggregator.from_config(request.config, self.secret_lookup, client=self.http_client)

        try:
            logger.info(f"Searching {aggregator.provider_names} for: {query}")
            results = await aggregator.aggregate(query, max_results, show_progress=self.show_progress)
            dedup = deduplicate(results)
            if self.show_progress:
                aggregator.print_summary(results, dedup)
            return dedup
        finally:
            if owns_aggregator:
                await aggregator.close()

    async def _fetch(self, urls: Sequence[str], query: str) -> List[FetchedSource]:
        if not urls:
            return []
        requests = [FetchRequest(url=url, extract_mode="relevant", query=query) for url in urls]
        try:
            return list(await self.fetcher.fetch_many(
                requests,
                concurrency=self.fetch_concurrency,
                delay_ms=self.fetch_delay_ms,
            ))
        except Exception as e:
            logger.warning(f"Page fetching failed: {e}")
            return []

    async def run(self, request: ResearchRequest) -> ResearchResult:
        """
        执行一次研究

        Args:
            request: 研究请求

        Returns:
            ResearchResult

        Raises:
            InvalidQueryError: 查询为空且策略为 reject
        """
        start = time.perf_counter()
        config = request.config
        budget_cap = self.settings.budget_cap if request.budget_cap is None else request.budget_cap
        max_results = config.max_results_per_source or self.settings.max_results_per_source
        max_urls = self.settings.max_urls_to_fetch if config.max_urls_to_fetch is None else config.max_urls_to_fetch
        facts_per_source = config.facts_per_source or self.settings.facts_per_source

        query = focus_query(request.topic, request.query, request.page_context)
        check_query(query, self.blank_query_policy)

        dedup = await self._search(request, query, max_results)
        search_cost = dedup.search_cost
        fact_cost = 0.0
        total_cost = search_cost

        urls = dedup.urls[:max_urls]
        fetched_sources = await self._fetch(urls, query)
        if len(fetched_sources) < len(urls):
            logger.warning(f"Fetcher returned {len(fetched_sources)} of {len(urls)} pages")

        sources: List[SourceCacheEntry] = []
        budget_exhausted = False

        # 顺序处理, 预算检查发生在每条记录之前
        for url, fetched in zip(urls, fetched_sources):
            title = fetched.title or dedup.titles.get(url) or url
            content = source_content(fetched)
            facts = None

            if not budget_exhausted and total_cost >= budget_cap:
                budget_exhausted = True
                logger.info(f"Budget cap ${budget_cap:.2f} reached (${total_cost:.4f}), skipping fact extraction")

            if not budget_exhausted and config.extract_facts and fetched.status == FetchStatus.OK and fetched.content:
                extractor = self._get_extractor()
                if extractor is not None:
                    extraction = await extractor.extract(fetched.content, query, facts_per_source)
                    fact_cost += extraction.cost
                    total_cost += extraction.cost
                    facts = extraction.facts or None

            sources.append(SourceCacheEntry(
                id=f"SRC-{len(sources) + 1}",
                url=url,
                title=title,
                content=content,
                facts=facts,
            ))

        duration_ms = int((time.perf_counter() - start) * 1000)
        metadata = ResearchMetadata(
            sources_searched=dedup.sources_searched,
            urls_found=dedup.urls_found,
            urls_fetched=len(urls),
            urls_deduplicated=dedup.urls_deduplicated,
            total_cost=total_cost,
            cost_breakdown=CostBreakdown(search_cost=search_cost, fact_extraction_cost=fact_cost),
            duration_ms=duration_ms,
        )

        logger.info(
            f"Research done: {len(sources)} sources from {metadata.sources_searched}, "
            f"{metadata.urls_found} unique URLs, ${total_cost:.4f}, {duration_ms}ms"
        )
        return ResearchResult(sources=sources, metadata=metadata)

    async def close(self):
        """释放自己创建的抓取器和 LLM 客户端"""
        if self._owns_fetcher and self._fetcher is not None:
            await self._fetcher.close()
            self._fetcher = None
        if self._owns_extractor and self._extractor is not None:
            await self._extractor.llm.aclose()
            self._extractor = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


async def run_research(request: ResearchRequest, **deps) -> ResearchResult:
    """
    运行一次多源研究

    Args:
        request: 研究请求
        **deps: 透传给 ResearchAgent 的协作方 (aggregator, fetcher, extractor, secret_lookup 等)

    Returns:
        ResearchResult
    """
    async with ResearchAgent(**deps) as agent:
        return await agent.run(request)
