"""
Data Aggregator
并发调用多个搜索源并统一聚合结果
"""
import asyncio
from typing import Callable, List, Optional, Sequence
import logging

import httpx
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from config import get_research_settings, get_secret
from models import DedupResult, ProviderName, ProviderResult, ResearchConfig
from providers import BaseSearchProvider, ExaProvider, PerplexityProvider, ScryProvider


logger = logging.getLogger(__name__)
console = Console()

SecretLookup = Callable[[str], Optional[str]]


def resolve_provider_flags(
    config: ResearchConfig,
    secret_lookup: SecretLookup = get_secret,
) -> dict:
    """
    解析各搜索源开关

    未显式指定时: Exa / Perplexity 取决于是否配置了凭据,
    SCRY 默认启用 (有公开只读 Key)。
    """
    return {
        ProviderName.EXA: config.use_exa if config.use_exa is not None else bool(secret_lookup("EXA_API_KEY")),
        ProviderName.PERPLEXITY: (
            config.use_perplexity
            if config.use_perplexity is not None
            else bool(secret_lookup("OPENROUTER_API_KEY"))
        ),
        ProviderName.SCRY: config.use_scry if config.use_scry is not None else True,
    }


class DataAggregator:
    """
    数据聚合器
    统一管理多个搜索源的并发调用
    """

    def __init__(
        self,
        providers: Sequence[BaseSearchProvider],
        source_timeout_sec: Optional[float] = None,
    ):
        """
        初始化聚合器

        Args:
            providers: 已启用的搜索源, 顺序即合并顺序
            source_timeout_sec: 单个搜索源的总超时 (None 表示只依赖各自的请求超时)
        """
        self.providers = list(providers)
        self.source_timeout_sec = source_timeout_sec

    @classmethod
    def from_config(
        cls,
        config: ResearchConfig,
        secret_lookup: SecretLookup = get_secret,
        client: Optional[httpx.AsyncClient] = None,
        source_timeout_sec: Optional[float] = None,
    ) -> "DataAggregator":
        """
        根据配置和凭据构建聚合器; 被关闭的搜索源不会被实例化

        source_timeout_sec 未指定时取 RESEARCH_SOURCE_TIMEOUT_SEC
        """
        flags = resolve_provider_flags(config, secret_lookup)
        providers: List[BaseSearchProvider] = []

        if flags[ProviderName.EXA]:
            providers.append(ExaProvider(api_key=secret_lookup("EXA_API_KEY"), client=client))
        if flags[ProviderName.PERPLEXITY]:
            providers.append(PerplexityProvider(api_key=secret_lookup("OPENROUTER_API_KEY"), client=client))
        if flags[ProviderName.SCRY]:
            providers.append(ScryProvider(api_key=secret_lookup("SCRY_API_KEY"), client=client))

        if source_timeout_sec is None:
            source_timeout_sec = get_research_settings().source_timeout_sec
        return cls(providers, source_timeout_sec=source_timeout_sec)

    @property
    def provider_names(self) -> List[str]:
        return [provider.provider.value for provider in self.providers]

    async def _run_source_task(self, provider: BaseSearchProvider, query: str, max_results: int) -> ProviderResult:
        try:
            if self.source_timeout_sec:
                return await asyncio.wait_for(
                    provider.search(query, max_results),
                    timeout=float(self.source_timeout_sec),
                )
            return await provider.search(query, max_results)
        except asyncio.TimeoutError:
            logger.warning(f"{provider.name} source timed out after {self.source_timeout_sec}s")
            return ProviderResult(provider=provider.provider, error="timeout")
        except Exception as exc:
            logger.warning(f"{provider.name} source skipped: {exc}")
            return ProviderResult(provider=provider.provider, error=str(exc) or exc.__class__.__name__)

    async def aggregate(
        self,
        query: str,
        max_results_per_source: int,
        show_progress: bool = False,
    ) -> List[ProviderResult]:
        """
        并发搜索所有启用的搜索源, 等待全部完成

        Args:
            query: 搜索查询
            max_results_per_source: 每个源的最大结果数
            show_progress: 是否显示进度条

        Returns:
            与 providers 同序的结果列表
        """
        if not self.providers:
            return []

        tasks = [
            self._run_source_task(provider, query, max_results_per_source)
            for provider in self.providers
        ]

        if show_progress:
            console.print(f"\n🔍 [bold blue]Searching for:[/bold blue] {query}\n")
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                task = progress.add_task(
                    f"[cyan]Searching {len(tasks)} providers...",
                    total=None
                )
                results = await asyncio.gather(*tasks)
                progress.update(task, completed=True)
        else:
            results = await asyncio.gather(*tasks)

        return list(results)

    def print_summary(self, results: Sequence[ProviderResult], dedup: DedupResult):
        """打印结果摘要"""
        console.print()

        table = Table(title="📊 Search Summary", show_header=True)
        table.add_column("Provider", style="cyan")
        table.add_column("Hits", justify="right", style="green")
        table.add_column("Cost", justify="right", style="magenta")
        table.add_column("Status", style="yellow")

        for result in results:
            status = "ok" if result.succeeded else f"failed: {result.error}"
            table.add_row(result.provider.value, str(len(result.hits)), f"${result.cost:.4f}", status)

        table.add_row("", "", "", "")
        table.add_row(
            "[bold]Unique URLs[/bold]",
            f"[bold]{dedup.urls_found}[/bold]",
            f"${dedup.search_cost:.4f}",
            f"{dedup.urls_deduplicated} duplicates",
        )

        console.print(table)
        console.print()

    async def close(self):
        """关闭所有搜索源"""
        for provider in self.providers:
            await provider.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
