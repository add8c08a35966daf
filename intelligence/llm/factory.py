"""
LLM Factory
工厂函数 - 根据配置创建 LLM 实例
"""
from typing import Optional
import logging

from config import get_llm_settings, get_secret
from utils.exceptions import ConfigurationError

from .base import BaseLLM
from .anthropic_llm import AnthropicLLM


logger = logging.getLogger(__name__)


def get_llm(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    **kwargs,
) -> BaseLLM:
    """
    获取 LLM 实例

    自动从 .env / 环境变量读取配置，也可手动指定

    Args:
        provider: LLM 供应商 (目前仅 anthropic)
        model: 模型名称 (不传则使用配置)
        **kwargs: 额外参数 (api_key, temperature, max_tokens 等)

    Returns:
        BaseLLM 实例

    Example:
        llm = get_llm()
        llm = get_llm(model="claude-haiku-4-5-20251001", max_tokens=300)
    """
    settings = get_llm_settings()
    provider = provider or settings.provider
    model = model or settings.model_name

    kwargs.setdefault("temperature", settings.temperature)
    kwargs.setdefault("max_tokens", settings.max_tokens)
    kwargs.setdefault("timeout", settings.timeout)

    if provider == "anthropic":
        api_key = kwargs.pop("api_key", None) or get_secret("ANTHROPIC_API_KEY")
        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")
        return AnthropicLLM(model=model, api_key=api_key, **kwargs)

    raise ConfigurationError(f"Unsupported LLM provider: {provider}")
