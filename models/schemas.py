"""
Data Models / Schemas
定义统一的数据结构
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, Field


class ProviderName(str, Enum):
    """搜索源名称 (顺序即合并顺序)"""
    EXA = "exa"
    PERPLEXITY = "perplexity"
    SCRY = "scry"


class SearchHit(BaseModel):
    """单个搜索源返回的候选结果 (去重前)"""
    url: str = Field(..., description="结果链接")
    title: str = Field(..., description="标题; 引用兜底时等于 url")
    snippet: Optional[str] = Field(None, description="摘要")
    provider: ProviderName = Field(..., description="数据来源")
    cost_bearing: bool = Field(default=False, description="是否来自计费搜索")

    @property
    def has_real_title(self) -> bool:
        return bool(self.title) and self.title != self.url


class ProviderResult(BaseModel):
    """
    搜索源调用结果

    失败与 "零结果" 对调用方完全一致: hits 为空、cost 为 0。
    error 仅用于日志。
    """
    provider: ProviderName
    hits: List[SearchHit] = Field(default_factory=list)
    cost: float = Field(default=0.0, ge=0.0)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class PageContext(BaseModel):
    """页面上下文, 用于聚焦查询"""
    title: str = Field(..., description="页面标题, 如 Anthropic")
    type: str = Field(..., description="实体类型, 如 organization")
    entity_id: Optional[str] = Field(None, description="实体ID")


class ResearchConfig(BaseModel):
    """搜索源开关与数量限制; None 表示按凭据自动判断"""
    use_exa: Optional[bool] = None
    use_perplexity: Optional[bool] = None
    use_scry: Optional[bool] = None
    max_results_per_source: Optional[int] = Field(None, ge=1)
    max_urls_to_fetch: Optional[int] = Field(None, ge=0)
    extract_facts: bool = True
    facts_per_source: Optional[int] = Field(None, ge=1)


class ResearchRequest(BaseModel):
    """研究请求"""
    topic: str = Field(..., description="研究主题")
    query: Optional[str] = Field(None, description="替代查询, 默认等于 topic")
    page_context: Optional[PageContext] = None
    config: ResearchConfig = Field(default_factory=ResearchConfig)
    budget_cap: Optional[float] = Field(None, ge=0.0, description="预算上限 (USD)")


class FetchStatus(str, Enum):
    """抓取状态"""
    OK = "ok"
    DEAD = "dead"
    PAYWALL = "paywall"
    ERROR = "error"


class FetchRequest(BaseModel):
    """抓取请求"""
    url: str
    extract_mode: str = Field(default="relevant", description="full 或 relevant")
    query: Optional[str] = None


class FetchedSource(BaseModel):
    """抓取结果"""
    url: str
    title: str = ""
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    content: str = ""
    relevant_excerpts: List[str] = Field(default_factory=list)
    status: FetchStatus = FetchStatus.ERROR


class SourceCacheEntry(BaseModel):
    """流水线输出单元, 供下游写作步骤引用"""
    id: str = Field(..., description="SRC-<n>")
    url: str
    title: str
    content: str = ""
    facts: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "content": self.content,
        }
        if self.facts:
            data["facts"] = list(self.facts)
        return data


class CostBreakdown(BaseModel):
    """成本明细"""
    search_cost: float = 0.0
    fact_extraction_cost: float = 0.0

    @property
    def total(self) -> float:
        return self.search_cost + self.fact_extraction_cost


class ResearchMetadata(BaseModel):
    """运行元数据"""
    sources_searched: List[str] = Field(default_factory=list)
    urls_found: int = 0
    urls_fetched: int = 0
    urls_deduplicated: int = 0
    total_cost: float = 0.0
    cost_breakdown: CostBreakdown = Field(default_factory=CostBreakdown)
    duration_ms: int = 0


class ResearchResult(BaseModel):
    """研究结果"""
    sources: List[SourceCacheEntry] = Field(default_factory=list)
    metadata: ResearchMetadata = Field(default_factory=ResearchMetadata)

    def to_dict(self) -> Dict[str, Any]:
        """转为下游写作步骤使用的 camelCase 结构"""
        meta = self.metadata
        return {
            "sources": [source.to_dict() for source in self.sources],
            "metadata": {
                "sourcesSearched": list(meta.sources_searched),
                "urlsFound": meta.urls_found,
                "urlsFetched": meta.urls_fetched,
                "urlsDeduplicated": meta.urls_deduplicated,
                "totalCost": meta.total_cost,
                "costBreakdown": {
                    "searchCost": meta.cost_breakdown.search_cost,
                    "factExtractionCost": meta.cost_breakdown.fact_extraction_cost,
                },
                "durationMs": meta.duration_ms,
            },
        }


class DedupResult(BaseModel):
    """去重结果 (按插入顺序)"""
    urls: List[str] = Field(default_factory=list, description="每个 key 首次出现的原始 URL")
    titles: Dict[str, str] = Field(default_factory=dict, description="原始 URL -> 展示标题")
    raw_hit_count: int = 0
    sources_searched: List[str] = Field(default_factory=list)
    search_cost: float = 0.0

    @property
    def urls_found(self) -> int:
        return len(self.urls)

    @property
    def urls_deduplicated(self) -> int:
        return self.raw_hit_count - self.urls_found
