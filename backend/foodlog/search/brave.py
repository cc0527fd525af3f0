"""
Brave Search web API connector.
Search: GET https://api.search.brave.com/res/v1/web/search?q=...&country=AU&count=5
Header: X-Subscription-Token: <key>
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from foodlog.config import (
    BRAVE_KEY_PLACEHOLDER,
    get_brave_api_key,
    get_brave_search_url,
    get_search_max_retries,
)
from foodlog.errors import AuthError, UpstreamError
from foodlog.search.http_retry import get_with_retries

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    title: str
    url: str
    description: str = ""
    extra_snippets: List[str] = field(default_factory=list)


def _parse_results(payload: dict) -> List[SearchResult]:
    web = (payload or {}).get("web") or {}
    out: List[SearchResult] = []
    for r in web.get("results") or []:
        if not isinstance(r, dict):
            continue
        snippets = r.get("extra_snippets") or []
        out.append(SearchResult(
            title=str(r.get("title") or ""),
            url=str(r.get("url") or ""),
            description=str(r.get("description") or ""),
            extra_snippets=[str(s) for s in snippets if s],
        ))
    return out


class BraveSearchClient:
    """Blocking client; one instance (and connection pool) may serve every conversation."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        timeout: float = 10,
        max_retries: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = (api_key if api_key is not None else get_brave_api_key()).strip()
        self.url = url or get_brave_search_url()
        self.timeout = timeout
        self.max_retries = max(1, max_retries if max_retries is not None else get_search_max_retries())
        self.session = session

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key) and self.api_key != BRAVE_KEY_PLACEHOLDER

    def search(self, query: str, region: str, count: int) -> List[SearchResult]:
        """Raises AuthError before any request if the key is missing; UpstreamError on failure."""
        if not self.has_credential:
            raise AuthError("Brave Search API key is not configured (set BRAVE_API_KEY)")
        headers = {
            "Accept": "application/json",
            "X-Subscription-Token": self.api_key,
        }
        params = {"q": query, "country": region, "count": count}
        resp, err = get_with_retries(
            self.url, params=params, headers=headers, timeout=self.timeout,
            max_retries=self.max_retries, session=self.session,
        )
        if resp is None:
            raise UpstreamError(f"search request failed: {err}")
        if not 200 <= resp.status_code < 300:
            logger.warning("BRAVE_SEARCH status=%s query=%s", resp.status_code, query[:60])
            raise UpstreamError(f"search returned HTTP {resp.status_code}", status_code=resp.status_code)
        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamError(f"search returned invalid JSON: {e}", status_code=resp.status_code) from e
        results = _parse_results(payload)
        logger.info("BRAVE_SEARCH query=%s results=%d", query[:60], len(results))
        return results
