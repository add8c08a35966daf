"""
Cache
会话级缓存 - 同一进程内避免重复抓取同一 URL
"""
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Optional, Tuple
import logging
import time


logger = logging.getLogger(__name__)


class BaseCache(ABC):
    """
    缓存抽象基类
    """

    def __init__(self, ttl: Optional[int] = None):
        """
        初始化缓存

        Args:
            ttl: 缓存过期时间 (秒), None = 永不过期
        """
        self.ttl = ttl

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """获取缓存值"""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """设置缓存值"""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """删除缓存"""
        pass

    @abstractmethod
    def clear(self) -> None:
        """清空缓存"""
        pass

    def exists(self, key: str) -> bool:
        """检查键是否存在"""
        return self.get(key) is not None


class MemoryCache(BaseCache):
    """
    内存缓存
    超过 max_size 时淘汰最久未使用的条目
    """

    def __init__(self, ttl: Optional[int] = None, max_size: int = 1000):
        """
        初始化内存缓存

        Args:
            ttl: 默认过期时间 (秒)
            max_size: 最大缓存条目数
        """
        super().__init__(ttl)
        self.max_size = max_size
        # key -> (value, expires_at)
        self._cache: "OrderedDict[str, Tuple[Any, Optional[float]]]" = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        """获取缓存值"""
        entry = self._cache.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at is not None and time.monotonic() > expires_at:
            del self._cache[key]
            return None

        self._cache.move_to_end(key)
        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """设置缓存值"""
        ttl = ttl or self.ttl
        expires_at = time.monotonic() + ttl if ttl else None

        self._cache[key] = (value, expires_at)
        self._cache.move_to_end(key)

        while len(self._cache) > self.max_size:
            evicted, _ = self._cache.popitem(last=False)
            logger.debug(f"Cache evicted {evicted}")

    def delete(self, key: str) -> None:
        """删除缓存"""
        self._cache.pop(key, None)

    def clear(self) -> None:
        """清空缓存"""
        self._cache.clear()

    def size(self) -> int:
        """返回缓存大小"""
        return len(self._cache)
