"""
Search Augmentor: turns a user turn into grounding material for the prompt.

Builds a mode-specific query, calls the search client off the event loop with
a hard timeout, and flattens results into a SearchContext (text block tagged
with each literal source URL, plus the ordered list of result hostnames).
Empty results give an empty SearchContext; every failure is an AugmentationError.
"""
import asyncio
import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

from foodlog.classifier import detect_restaurant, split_restaurant
from foodlog.config import (
    SEARCH_TIMEOUT,
    get_search_region,
    get_search_region_name,
    get_search_result_count,
)
from foodlog.errors import AugmentationError, AuthError, UpstreamError
from foodlog.events import EventSink, safe_emit
from foodlog.models.entries import SearchContext, SearchMode
from foodlog.search.brave import BraveSearchClient, SearchResult

logger = logging.getLogger(__name__)

RESULT_DELIMITER = "\n\n---\n\n"

_QUANTITY_QUESTION_RE = re.compile(r"\bcalories\b|\bhow\s+many\b", re.IGNORECASE)
_ALTERNATIVES_RE = re.compile(r"\bhealthier\b|\bsubstitut", re.IGNORECASE)
_RECIPE_RE = re.compile(r"\brecipes?\b|\bingredients?\b|\bhow\s+to\s+(?:make|cook)\b", re.IGNORECASE)


def build_search_query(text: str, mode: SearchMode = SearchMode.NUTRITION, region_name: Optional[str] = None) -> str:
    """Query phrasing by mode and content. First matching rule wins."""
    q = " ".join((text or "").split())
    region_name = region_name or get_search_region_name()
    if mode == SearchMode.RESTAURANT_MENU:
        restaurant, rest = split_restaurant(q)
        if restaurant:
            if rest:
                return f"{restaurant} {rest} menu nutrition calories {region_name}"
            return f"{restaurant} menu healthy options low calorie nutrition {region_name}"
    if detect_restaurant(q):
        return f"{q} nutrition calories menu {region_name}"
    if _QUANTITY_QUESTION_RE.search(q):
        return f"{q} calories nutrition facts"
    if _ALTERNATIVES_RE.search(q):
        return f"{q} healthy alternatives low calorie options"
    if _RECIPE_RE.search(q):
        return f"{q} recipe ingredients instructions cooking"
    return f"{q} calories nutrition facts"


def _hostname(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def _result_block(r: SearchResult, all_snippets: bool) -> str:
    lines = [f"[REAL URL: {r.url}]", f"Title: {r.title}"]
    if r.description:
        lines.append(r.description)
    snippets = r.extra_snippets if all_snippets else r.extra_snippets[:1]
    lines.extend(s for s in snippets if s)
    return "\n".join(lines)


def build_search_context(results: List[SearchResult], mode: SearchMode = SearchMode.NUTRITION) -> SearchContext:
    if not results:
        return SearchContext()
    all_snippets = mode == SearchMode.RESTAURANT_MENU
    blocks = [_result_block(r, all_snippets) for r in results]
    domains = [h for h in (_hostname(r.url) for r in results) if h]
    return SearchContext(context=RESULT_DELIMITER.join(blocks), domains=domains)


class SearchAugmentor:
    def __init__(
        self,
        client: Optional[BraveSearchClient] = None,
        timeout: float = SEARCH_TIMEOUT,
        region: Optional[str] = None,
        result_count: Optional[int] = None,
        events: Optional[EventSink] = None,
    ):
        self.client = client or BraveSearchClient()
        self.timeout = timeout
        self.region = region or get_search_region()
        self.result_count = result_count or get_search_result_count()
        self.events = events or EventSink()

    async def augment(self, text: str, mode: SearchMode = SearchMode.NUTRITION) -> SearchContext:
        query = build_search_query(text, mode)
        try:
            results = await asyncio.wait_for(
                asyncio.to_thread(self.client.search, query, self.region, self.result_count),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            safe_emit(self.events, "search.failed", reason="timeout", mode=mode.value)
            raise AugmentationError(f"search timed out after {self.timeout}s") from e
        except AuthError as e:
            safe_emit(self.events, "search.failed", reason="auth", mode=mode.value)
            raise AugmentationError(str(e)) from e
        except UpstreamError as e:
            safe_emit(self.events, "search.failed", reason="upstream", status=e.status_code, mode=mode.value)
            raise AugmentationError(str(e)) from e
        ctx = build_search_context(results, mode)
        logger.info("SEARCH_AUGMENT mode=%s query=%s domains=%d", mode.value, query[:60], len(ctx.domains))
        safe_emit(self.events, "search.completed", mode=mode.value, domains=len(ctx.domains))
        return ctx
