"""
Agent Tools
事实抽取
"""
from .fact_extractor import FACT_PROMPT_TEMPLATE, FactExtraction, FactExtractor

__all__ = [
    "FACT_PROMPT_TEMPLATE",
    "FactExtraction",
    "FactExtractor",
]
