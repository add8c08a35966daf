"""
Aggregator Module
查询聚焦、多源并发搜索与 URL 去重
"""
from .data_aggregator import DataAggregator, resolve_provider_flags
from .dedup import deduplicate, normalize_url, pick_title
from .query import BlankQueryPolicy, check_query, focus_query

__all__ = [
    "DataAggregator",
    "resolve_provider_flags",
    "deduplicate",
    "normalize_url",
    "pick_title",
    "BlankQueryPolicy",
    "check_query",
    "focus_query",
]
