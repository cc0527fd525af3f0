"""
Web search grounding: Brave Search connector and the Search Augmentor.
"""
from .brave import BraveSearchClient, SearchResult
from .augmentor import SearchAugmentor, build_search_context, build_search_query

__all__ = [
    "BraveSearchClient",
    "SearchResult",
    "SearchAugmentor",
    "build_search_context",
    "build_search_query",
]
