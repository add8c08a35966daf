"""
Intelligence Module
智能层 - LLM 抽象 + 事实抽取 + 研究流水线
"""
from .llm import BaseLLM, AnthropicLLM, get_llm
from .tools import FactExtraction, FactExtractor
from .research_agent import ResearchAgent, run_research

__all__ = [
    # LLM
    "BaseLLM",
    "AnthropicLLM",
    "get_llm",
    # Tools
    "FactExtraction",
    "FactExtractor",
    # Pipeline
    "ResearchAgent",
    "run_research",
]
