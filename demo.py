"""
Demo Script - Quick demonstration of the research agent
演示脚本 - 对一个主题运行完整的多源研究流水线

需要在 config/.env 中配置 EXA_API_KEY / OPENROUTER_API_KEY / ANTHROPIC_API_KEY (可选),
SCRY 使用公开只读 Key。
"""
import asyncio
import logging

from rich.console import Console
from rich.panel import Panel

from intelligence import run_research
from models import PageContext, ResearchConfig, ResearchRequest
from utils import configure_package_logging


console = Console()


async def demo_research():
    request = ResearchRequest(
        topic="Anthropic constitutional AI",
        page_context=PageContext(title="Anthropic", type="organization", entity_id="anthropic"),
        config=ResearchConfig(max_urls_to_fetch=8),
        budget_cap=1.0,
    )

    console.print(Panel.fit(
        f"[bold blue]🔍 Multi-source research[/bold blue]\n"
        f"Topic: [yellow]{request.topic}[/yellow]  Budget: ${request.budget_cap:.2f}",
        border_style="blue"
    ))

    result = await run_research(request, show_progress=True)

    for source in result.sources:
        console.print(f"\n[bold]{source.id}[/bold] {source.title}")
        console.print(f"   🔗 {source.url}")
        for fact in source.facts or []:
            console.print(f"   • {fact}")

    meta = result.metadata
    console.print(
        f"\n[green]Done[/green]: {meta.urls_found} unique URLs from {', '.join(meta.sources_searched) or 'no providers'}, "
        f"{meta.urls_fetched} fetched, ${meta.total_cost:.4f} in {meta.duration_ms}ms"
    )


if __name__ == "__main__":
    configure_package_logging(level=logging.INFO)
    asyncio.run(demo_research())
