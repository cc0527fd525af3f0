#!/usr/bin/env python3
"""
Check if the external services (Brave Search, OpenAI chat completions) are reachable.
Run from backend: python scripts/check_external_apis.py
Exit 0 if every configured service works; 1 if any fails or none is configured.
"""
import sys
from pathlib import Path
from typing import Tuple

# Add backend to path when run as script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# Short timeout for health check
HEALTH_TIMEOUT = 8


def check_brave() -> Tuple[bool, str]:
    """Return (success, message)."""
    from foodlog.errors import AuthError, UpstreamError
    from foodlog.search.brave import BraveSearchClient
    from foodlog.config import get_search_region
    client = BraveSearchClient(timeout=HEALTH_TIMEOUT, max_retries=1)
    if not client.has_credential:
        return False, "no API key (set BRAVE_API_KEY)"
    try:
        results = client.search("banana calories", get_search_region(), 1)
    except (AuthError, UpstreamError) as e:
        return False, str(e)
    return True, f"ok (results={len(results)})"


def check_openai() -> Tuple[bool, str]:
    """Return (success, message)."""
    from foodlog.errors import AuthError, ExtractionEngineError, UpstreamError
    from foodlog.llm.client import OpenAIChatClient
    client = OpenAIChatClient(max_tokens=5, timeout=HEALTH_TIMEOUT)
    if not client.has_credential:
        return False, "no API key (set OPENAI_API_KEY)"
    try:
        client.complete([{"role": "user", "content": "Say ok."}])
    except (AuthError, UpstreamError, ExtractionEngineError) as e:
        return False, str(e)
    return True, f"ok (model={client.model})"


def main() -> int:
    print("Checking external services...")
    brave_ok, brave_msg = check_brave()
    print(f"  Brave Search: {'OK' if brave_ok else 'FAIL'} - {brave_msg}")
    openai_ok, openai_msg = check_openai()
    print(f"  OpenAI:       {'OK' if openai_ok else 'FAIL'} - {openai_msg}")
    if brave_ok and openai_ok:
        print("All services are working.")
        return 0
    if openai_ok:
        print("Search is unavailable; chat will answer without web grounding.")
    else:
        print("The extraction engine is unavailable; chat turns will fail.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
