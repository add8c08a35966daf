"""
Configuration Management Module
统一配置管理，实现API配置解耦
"""
from .settings import (
    Settings,
    get_settings,
    get_secret,
    get_llm_settings,
    get_research_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_secret",
    "get_llm_settings",
    "get_research_settings",
]
