"""
Query Focusing
把主题和页面上下文合成为所有搜索源共用的查询
"""
from enum import Enum
from typing import Optional

from models import PageContext
from utils.exceptions import InvalidQueryError


class BlankQueryPolicy(str, Enum):
    """空查询处理策略"""
    ALLOW = "allow"    # 原样下发 (可能产生退化查询)
    REJECT = "reject"  # 在调用任何搜索源前报错


def focus_query(
    topic: str,
    query: Optional[str] = None,
    page_context: Optional[PageContext] = None,
) -> str:
    """
    生成聚焦查询

    有页面上下文时为 "<query> <title> <type>" 的简单拼接, 不去除重复词。

    Args:
        topic: 研究主题
        query: 替代查询, 默认使用 topic
        page_context: 页面上下文

    Returns:
        查询字符串
    """
    base = query if query is not None else topic
    if page_context is None:
        return base
    return f"{base} {page_context.title} {page_context.type}"


def check_query(query: str, policy: BlankQueryPolicy = BlankQueryPolicy.ALLOW) -> str:
    """按策略校验查询; reject 策略下空白查询抛出 InvalidQueryError"""
    if BlankQueryPolicy(policy) is BlankQueryPolicy.REJECT and not (query or "").strip():
        raise InvalidQueryError("Research topic/query is blank", {"query": query})
    return query
