"""
Machine-readable suffix the model is asked to append to loggable answers:

    <<<FOOD_LOG>>>{"items": [{"name": "2 eggs", "calories": 140, "protein": 12, "carbs": 1, "fat": 10, "burned": false}]}<<<FOOD_LOG>>>

Parsed first; the free-text cascade runs only when it is absent or malformed.
"""
import json
import logging
import math
import re
from typing import Any, List, Optional, Tuple

from foodlog.models.entries import ExtractedItem

logger = logging.getLogger(__name__)

PAYLOAD_MARKER = "<<<FOOD_LOG>>>"

_PAYLOAD_RE = re.compile(
    re.escape(PAYLOAD_MARKER) + r"(.*?)" + re.escape(PAYLOAD_MARKER),
    re.DOTALL,
)


def split_payload(text: str) -> Tuple[str, Optional[str]]:
    """Return (text without payload block, raw payload or None)."""
    if not text or PAYLOAD_MARKER not in text:
        return text or "", None
    m = _PAYLOAD_RE.search(text)
    if not m:
        # Unterminated marker: drop everything after it from display
        head, _, tail = text.partition(PAYLOAD_MARKER)
        return head.rstrip(), tail.strip() or None
    display = (text[:m.start()] + text[m.end():]).strip()
    return display, m.group(1).strip()


def strip_payload(text: str) -> str:
    return split_payload(text)[0]


def _parse_json_payload(raw: str) -> Optional[Any]:
    """Extract JSON from the payload (may contain markdown fences)."""
    if not raw:
        return None
    cleaned = re.sub(r"```(?:json)?\s*", "", raw)
    cleaned = cleaned.strip().rstrip("`")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if match:
            try:
                return json.loads(match.group())
            except json.JSONDecodeError:
                pass
    logger.warning("FOOD_LOG could not parse JSON payload: %s", raw[:200])
    return None


def _grams(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        g = float(str(value).strip().rstrip("gG").strip())
    except ValueError:
        return None
    if math.isnan(g) or g < 0:
        return None
    return g


def _item_from_dict(d: Any) -> Optional[ExtractedItem]:
    if not isinstance(d, dict):
        return None
    name = str(d.get("name") or "").strip()
    cal = d.get("calories")
    if not name or cal is None or isinstance(cal, bool):
        return None
    try:
        value = float(cal)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    burned = bool(d.get("burned")) or value < 0
    calories = max(1, int(math.floor(abs(value) + 0.5)))
    return ExtractedItem(
        name=name,
        calories=calories,
        protein=_grams(d.get("protein")),
        carbs=_grams(d.get("carbs")),
        fat=_grams(d.get("fat")),
        burned=burned,
    )


def parse_payload(text: str) -> List[ExtractedItem]:
    """Items from the payload block; [] when absent, malformed, or empty."""
    _, raw = split_payload(text)
    if raw is None:
        return []
    data = _parse_json_payload(raw)
    if isinstance(data, dict):
        entries = data.get("items")
    elif isinstance(data, list):
        entries = data
    else:
        return []
    if not isinstance(entries, list):
        return []
    items = [item for item in (_item_from_dict(e) for e in entries) if item is not None]
    if len(items) != len(entries):
        logger.info("FOOD_LOG dropped %d invalid payload item(s)", len(entries) - len(items))
    return items
