"""
Extraction engine: OpenAI-compatible chat completions over requests.

The blocking client raises AuthError / UpstreamError / ExtractionEngineError;
ExtractionEngine runs it off the event loop under a hard timeout and folds
every failure into ExtractionEngineError.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from foodlog.config import (
    LLM_RESPONSE_TIMEOUT,
    get_llm_max_tokens,
    get_llm_temperature,
    get_openai_api_key,
    get_openai_api_url,
    get_openai_model,
    get_openai_vision_model,
)
from foodlog.errors import AuthError, ExtractionEngineError, UpstreamError
from foodlog.events import EventSink, safe_emit

logger = logging.getLogger(__name__)

OPENAI_KEY_PLACEHOLDER = "YOUR_OPENAI_API_KEY"


def _has_image(messages: List[Dict[str, Any]]) -> bool:
    for m in messages:
        content = m.get("content")
        if isinstance(content, list) and any(
            isinstance(part, dict) and part.get("type") == "image_url" for part in content
        ):
            return True
    return False


class OpenAIChatClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        model: Optional[str] = None,
        vision_model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: float = LLM_RESPONSE_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = (api_key if api_key is not None else get_openai_api_key()).strip()
        self.url = url or get_openai_api_url()
        self.model = model or get_openai_model()
        self.vision_model = vision_model or get_openai_vision_model()
        self.temperature = temperature if temperature is not None else get_llm_temperature()
        self.max_tokens = max_tokens if max_tokens is not None else get_llm_max_tokens()
        self.timeout = timeout
        self.session = session

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key) and self.api_key != OPENAI_KEY_PLACEHOLDER

    def complete(self, messages: List[Dict[str, Any]]) -> str:
        """First choice's message content."""
        if not self.has_credential:
            raise AuthError("OpenAI API key is not configured (set OPENAI_API_KEY)")
        model = self.vision_model if _has_image(messages) else self.model
        body = {
            "model": model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        poster = self.session.post if self.session is not None else requests.post
        try:
            resp = poster(self.url, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"{type(e).__name__}: {e}") from e
        if not 200 <= resp.status_code < 300:
            logger.warning("LLM_CALL status=%s model=%s", resp.status_code, model)
            raise UpstreamError(f"chat completion returned HTTP {resp.status_code}", status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(f"chat completion returned invalid JSON: {e}", status_code=resp.status_code) from e
        choices = (data or {}).get("choices") or []
        if not choices:
            raise ExtractionEngineError("chat completion returned no choices")
        content = ((choices[0] or {}).get("message") or {}).get("content")
        if not isinstance(content, str):
            raise ExtractionEngineError("first choice has no text content")
        logger.info("LLM_CALL success model=%s chars=%d", model, len(content))
        return content.strip()


class ExtractionEngine:
    """Async facade: Prompt -> FreeText, bounded by a hard timeout."""

    def __init__(
        self,
        client: Optional[OpenAIChatClient] = None,
        timeout: float = LLM_RESPONSE_TIMEOUT,
        events: Optional[EventSink] = None,
    ):
        self.client = client or OpenAIChatClient()
        self.timeout = timeout
        self.events = events or EventSink()

    async def run(self, messages: List[Dict[str, Any]]) -> str:
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(self.client.complete, messages),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            safe_emit(self.events, "engine.failed", reason="timeout")
            raise ExtractionEngineError(f"chat completion timed out after {self.timeout}s") from e
        except AuthError as e:
            safe_emit(self.events, "engine.failed", reason="auth")
            raise ExtractionEngineError(str(e)) from e
        except UpstreamError as e:
            safe_emit(self.events, "engine.failed", reason="upstream", status=e.status_code)
            raise ExtractionEngineError(str(e)) from e
        except ExtractionEngineError:
            safe_emit(self.events, "engine.failed", reason="empty")
            raise
        safe_emit(self.events, "engine.completed", chars=len(text))
        return text
