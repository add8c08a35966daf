"""
Custom Exceptions
自定义异常类
"""


class ResearchAgentError(Exception):
    """研究助手基础异常类"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(ResearchAgentError):
    """配置错误 (如缺少 API Key)"""
    pass


class InvalidQueryError(ResearchAgentError):
    """查询为空且策略为 reject"""
    pass


class ProviderError(ResearchAgentError):
    """搜索源错误"""

    def __init__(self, message: str, source: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class FetchError(ResearchAgentError):
    """网页抓取错误"""

    def __init__(self, message: str, url: str = None, status_code: int = 0, **kwargs):
        super().__init__(message, kwargs)
        self.url = url
        self.status_code = status_code


class LLMError(ResearchAgentError):
    """LLM 调用错误"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider
