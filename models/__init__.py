"""
Data Models
"""
from .schemas import (
    ProviderName,
    SearchHit,
    ProviderResult,
    PageContext,
    ResearchConfig,
    ResearchRequest,
    FetchStatus,
    FetchRequest,
    FetchedSource,
    SourceCacheEntry,
    CostBreakdown,
    ResearchMetadata,
    ResearchResult,
    DedupResult,
)

__all__ = [
    "ProviderName",
    "SearchHit",
    "ProviderResult",
    "PageContext",
    "ResearchConfig",
    "ResearchRequest",
    "FetchStatus",
    "FetchRequest",
    "FetchedSource",
    "SourceCacheEntry",
    "CostBreakdown",
    "ResearchMetadata",
    "ResearchResult",
    "DedupResult",
]
