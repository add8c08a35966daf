"""
URL Deduplication
跨搜索源按规范化 URL 合并结果
"""
from typing import Dict, List, Sequence

from models import DedupResult, ProviderResult, SearchHit


def normalize_url(url: str) -> str:
    """去掉末尾的一个斜杠, 仅用作映射键"""
    return url[:-1] if url.endswith("/") else url


def pick_title(hits: Sequence[SearchHit]) -> str:
    """优先选择有真实标题的结果 (非空且不等于自身 URL)"""
    for hit in hits:
        if hit.has_real_title:
            return hit.title
    return hits[0].title


def deduplicate(results: Sequence[ProviderResult]) -> DedupResult:
    """
    合并多个搜索源的结果

    插入顺序即搜索源顺序, 后出现的重复项直接并入已有 key。
    输出保留每个 key 首次出现的原始 URL。

    Args:
        results: 各搜索源结果 (按 exa, perplexity, scry 顺序)

    Returns:
        DedupResult
    """
    grouped: Dict[str, List[SearchHit]] = {}
    raw_hit_count = 0
    sources_searched: List[str] = []
    search_cost = 0.0

    for result in results:
        if result.hits:
            sources_searched.append(result.provider.value)
        search_cost += result.cost
        raw_hit_count += len(result.hits)
        for hit in result.hits:
            grouped.setdefault(normalize_url(hit.url), []).append(hit)

    urls: List[str] = []
    titles: Dict[str, str] = {}
    for hits in grouped.values():
        url = hits[0].url
        urls.append(url)
        titles[url] = pick_title(hits)

    return DedupResult(
        urls=urls,
        titles=titles,
        raw_hit_count=raw_hit_count,
        sources_searched=sources_searched,
        search_cost=search_cost,
    )
