"""
Response Parsers
容错的 LLM 输出解析: 按顺序尝试多个策略, 使用第一个成功的结果
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence
import json
import logging
import re


logger = logging.getLogger(__name__)

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_BULLET_PREFIX_RE = re.compile(r"^[-*•\d.)\s]+")


class ParseStrategy(ABC):
    """解析策略; parse() 返回 None 表示未匹配"""

    name: str = "base"

    @abstractmethod
    def parse(self, text: str) -> Optional[List[Any]]:
        pass


class JsonArrayStrategy(ParseStrategy):
    """定位文本中第一个 '[' 到最后一个 ']' 的子串并按 JSON 解析"""

    name = "json_array"

    def parse(self, text: str) -> Optional[List[Any]]:
        match = _JSON_ARRAY_RE.search(text or "")
        if not match:
            return None
        try:
            parsed = json.loads(match.group(0))
        except (json.JSONDecodeError, ValueError):
            return None
        if not isinstance(parsed, list):
            return None
        return parsed


class StringArrayStrategy(JsonArrayStrategy):
    """JSON 数组中的字符串元素 (去空白, 去空串)"""

    name = "string_array"

    def parse(self, text: str) -> Optional[List[Any]]:
        parsed = super().parse(text)
        if parsed is None:
            return None
        return [item.strip() for item in parsed if isinstance(item, str) and item.strip()]


class LineHeuristicStrategy(ParseStrategy):
    """
    逐行兜底: 去掉行首的项目符号/编号,
    保留长度在 (min_len, max_len) 区间内的行
    """

    name = "line_heuristic"

    def __init__(self, min_len: int = 10, max_len: int = 200):
        self.min_len = min_len
        self.max_len = max_len

    def parse(self, text: str) -> Optional[List[Any]]:
        lines = []
        for raw_line in (text or "").split("\n"):
            line = _BULLET_PREFIX_RE.sub("", raw_line).strip()
            if self.min_len < len(line) < self.max_len:
                lines.append(line)
        return lines


def parse_with_fallbacks(text: str, strategies: Sequence[ParseStrategy]) -> List[Any]:
    """
    依次尝试解析策略

    Args:
        text: 原始模型输出
        strategies: 有序策略列表

    Returns:
        第一个匹配策略的结果; 全部未匹配时返回空列表
    """
    for strategy in strategies:
        result = strategy.parse(text)
        if result is not None:
            logger.debug(f"Parsed {len(result)} items with strategy '{strategy.name}'")
            return result
    return []
