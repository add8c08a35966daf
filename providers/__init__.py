"""
Search Providers Module
"""
from .base import BaseSearchProvider, dedupe_hits
from .exa_provider import ExaProvider
from .perplexity_provider import PerplexityProvider
from .scry_provider import ScryProvider, SCRY_TABLES, build_scry_sql

__all__ = [
    # Base
    "BaseSearchProvider",
    "dedupe_hits",
    # Exa
    "ExaProvider",
    # Perplexity
    "PerplexityProvider",
    # SCRY
    "ScryProvider",
    "SCRY_TABLES",
    "build_scry_sql",
]
