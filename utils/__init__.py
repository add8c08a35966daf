"""
Utils Module
通用工具函数
"""
from .logger import setup_logger, get_logger, configure_package_logging
from .exceptions import (
    ResearchAgentError,
    ConfigurationError,
    InvalidQueryError,
    ProviderError,
    FetchError,
    LLMError,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "configure_package_logging",
    "ResearchAgentError",
    "ConfigurationError",
    "InvalidQueryError",
    "ProviderError",
    "FetchError",
    "LLMError",
]
