"""
Storage Module
存储模块 - 会话缓存
"""
from .cache import BaseCache, MemoryCache

__all__ = [
    "BaseCache",
    "MemoryCache",
]
