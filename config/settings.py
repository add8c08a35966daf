"""
Settings Configuration
使用 Pydantic 进行配置验证和管理
"""
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class ExaSettings(BaseSettings):
    """Exa 网页搜索配置"""
    api_key: Optional[str] = Field(default=None, description="Exa API Key")
    base_url: str = Field(default="https://api.exa.ai/search", description="搜索端点")
    timeout: float = Field(default=30.0, description="请求超时时间(秒)")
    snippet_chars: int = Field(default=400, description="摘要最大字符数")

    class Config:
        env_prefix = "EXA_"


class PerplexitySettings(BaseSettings):
    """Perplexity/Sonar (经 OpenRouter) 配置"""
    api_key: Optional[str] = Field(default=None, description="OpenRouter API Key")
    base_url: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions",
        description="Chat completions 端点",
    )
    model: str = Field(default="perplexity/sonar", description="搜索模型")
    max_tokens: int = Field(default=1000, description="最大生成token数")
    timeout: float = Field(default=30.0, description="请求超时时间(秒)")
    referer: str = Field(default="https://www.longtermwiki.com", description="HTTP-Referer")
    app_title: str = Field(default="LongtermWiki Research Agent", description="X-Title")

    class Config:
        env_prefix = "OPENROUTER_"


class ScrySettings(BaseSettings):
    """SCRY (EA Forum / LessWrong) 配置"""
    api_key: Optional[str] = Field(default=None, description="SCRY API Key (可选)")
    public_key: str = Field(
        default="exopriors_public_readonly_v1_2025",
        description="公开只读 Key",
    )
    base_url: str = Field(default="https://api.exopriors.com/v1/scry/query", description="查询端点")
    timeout: float = Field(default=15.0, description="请求超时时间(秒)")

    class Config:
        env_prefix = "SCRY_"


class FetcherSettings(BaseSettings):
    """网页抓取配置"""
    timeout: float = Field(default=15.0, description="单页抓取超时(秒)")
    max_retries: int = Field(default=3, description="最大尝试次数")
    max_content_chars: int = Field(default=100_000, description="正文最大字符数")
    max_excerpts: int = Field(default=5, description="相关段落数")
    cache_ttl: int = Field(default=3600, description="会话缓存过期时间(秒)")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; LongtermWikiSourceFetcher/1.0)",
        description="User Agent",
    )

    class Config:
        env_prefix = "FETCHER_"


class LLMSettings(BaseSettings):
    """LLM 配置 (事实抽取)"""
    provider: str = Field(default="anthropic", description="LLM提供商")
    model_name: str = Field(default="claude-haiku-4-5-20251001", description="事实抽取模型")
    temperature: float = Field(default=0.0, description="生成温度")
    max_tokens: int = Field(default=500, description="最大生成token数")
    timeout: float = Field(default=60.0, description="调用超时(秒)")
    input_cost_per_m: float = Field(default=0.80, description="每百万输入token价格 (USD)")
    output_cost_per_m: float = Field(default=4.00, description="每百万输出token价格 (USD)")

    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API Key")

    class Config:
        env_prefix = "LLM_"


class ResearchSettings(BaseSettings):
    """研究流水线默认参数"""
    budget_cap: float = Field(default=5.0, description="单次运行预算上限 (USD)")
    max_results_per_source: int = Field(default=8, description="每个搜索源最大结果数")
    max_urls_to_fetch: int = Field(default=20, description="去重后最多抓取URL数")
    facts_per_source: int = Field(default=5, description="每个来源抽取事实数")
    fetch_concurrency: int = Field(default=5, description="抓取并发数")
    fetch_delay_ms: int = Field(default=200, description="抓取批次间隔(毫秒)")
    blank_query_policy: str = Field(default="allow", description="空查询策略: allow, reject")
    source_timeout_sec: Optional[float] = Field(default=None, description="单个搜索源总超时(秒), 空表示不限制")

    class Config:
        env_prefix = "RESEARCH_"


class Settings(BaseSettings):
    """主配置类 - 聚合所有子配置"""

    exa: ExaSettings = Field(default_factory=ExaSettings)
    perplexity: PerplexitySettings = Field(default_factory=PerplexitySettings)
    scry: ScrySettings = Field(default_factory=ScrySettings)
    fetcher: FetcherSettings = Field(default_factory=FetcherSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    research: ResearchSettings = Field(default_factory=ResearchSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """从指定的 .env 文件加载配置"""
        if env_path is None:
            # 默认查找 config/.env
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            exa=ExaSettings(),
            perplexity=PerplexitySettings(),
            scry=ScrySettings(),
            fetcher=FetcherSettings(),
            llm=LLMSettings(),
            research=ResearchSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """获取全局配置单例"""
    return Settings.load_from_env_file()


# 密钥名 -> 配置字段，环境变量优先
_SECRET_FALLBACKS = {
    "EXA_API_KEY": lambda s: s.exa.api_key,
    "OPENROUTER_API_KEY": lambda s: s.perplexity.api_key,
    "SCRY_API_KEY": lambda s: s.scry.api_key,
    "ANTHROPIC_API_KEY": lambda s: s.llm.anthropic_api_key,
}


def get_secret(name: str) -> Optional[str]:
    """
    查找密钥

    先读环境变量，再回退到已加载的配置。空字符串视为未配置。

    Args:
        name: 密钥名, 如 "EXA_API_KEY"

    Returns:
        密钥值或 None
    """
    value = os.getenv(name)
    if value is None and name in _SECRET_FALLBACKS:
        value = _SECRET_FALLBACKS[name](get_settings())
    if value is None:
        return None
    value = value.strip()
    return value or None


# 便捷访问
def get_llm_settings() -> LLMSettings:
    return get_settings().llm


def get_research_settings() -> ResearchSettings:
    return get_settings().research
