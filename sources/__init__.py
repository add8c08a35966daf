"""Page fetching for research sources."""

from .fetcher import (
    SourceFetcher,
    detect_paywall,
    extract_relevant_excerpts,
    html_to_text,
    is_unverifiable,
)

__all__ = [
    "SourceFetcher",
    "detect_paywall",
    "extract_relevant_excerpts",
    "html_to_text",
    "is_unverifiable",
]
