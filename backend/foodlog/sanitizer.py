"""
Response sanitizer: deterministic clean-up of every model answer before it is
shown or parsed.

1. "[REAL URL: https://...]" wrappers are unwrapped to the bare URL.
2. Any "reply Y to confirm" style instruction is replaced with the app's
   confirm-button phrasing.

Applied to a fixed point, so sanitize(sanitize(x)) == sanitize(x).
"""
import re
import logging
from typing import List

logger = logging.getLogger(__name__)

CONFIRM_PHRASE = "Tap confirm to log this food."

_MAX_PASSES = 10

_URL_WRAPPER_RE = re.compile(r"\[\s*REAL\s+URL:\s*([^\[\]]*?)\s*\]", re.IGNORECASE)

# Quoted or bare letter Y / yes
_Q_OPEN = r"[\"'“‘*]*"
_Q_CLOSE = r"[\"'”’*]*"
_Y = rf"{_Q_OPEN}(?:y|yes)\b{_Q_CLOSE}"
_N = rf"{_Q_OPEN}(?:n|no)\b{_Q_CLOSE}"
# "to confirm", "to log it", "to save this food"
_PURPOSE = r"\s+to\s+(?:confirm|log|save|add|record)\b(?:\s+(?:and\s+)?(?:log|save|add)\b)?(?:\s+(?:it|this|that|them)\b)?(?:\s+(?:food|meal|entry|item|items|exercise)\b)?"
# ", or N to cancel" / "(N to edit)"
_ALTERNATIVE = rf"\s*[,(]?\s*(?:or|and)?\s*{_N}\s+to\s+(?:cancel|edit|skip|change)[^.!\n)]*\)?"
# A bare "say yes" is prose; only a stated purpose or a Y/N pairing makes it an instruction
_INSTRUCTION = rf"(?:{_PURPOSE}(?:{_ALTERNATIVE})?|{_ALTERNATIVE})"
_END = r"[.!]?"

# Closed list of banned confirmation instructions, most specific first
BANNED_CONFIRMATION_PATTERNS: List[re.Pattern] = [
    re.compile(rf"(?:please\s+)?(?:just\s+)?reply\s+(?:with\s+)?{_Y}\s*/\s*{_N}(?:{_PURPOSE})?{_END}", re.IGNORECASE),
    re.compile(rf"(?:please\s+)?(?:just\s+)?reply\s+(?:with\s+)?(?:the\s+letter\s+)?{_Y}{_INSTRUCTION}{_END}", re.IGNORECASE),
    re.compile(rf"(?:please\s+)?(?:just\s+)?respond\s+(?:with\s+)?{_Y}{_INSTRUCTION}{_END}", re.IGNORECASE),
    re.compile(rf"(?:please\s+)?(?:just\s+)?(?:text|send|type|enter)\s+(?:back\s+)?{_Y}{_INSTRUCTION}{_END}", re.IGNORECASE),
    re.compile(rf"(?:please\s+)?(?:just\s+)?(?:answer|say)\s+{_Y}{_INSTRUCTION}{_END}", re.IGNORECASE),
    re.compile(rf"(?:please\s+)?(?:just\s+)?press\s+{_Y}{_INSTRUCTION}{_END}", re.IGNORECASE),
    re.compile(rf"confirm\s+(?:by\s+replying|with)\s+{_Y}(?:{_ALTERNATIVE})?{_END}", re.IGNORECASE),
    re.compile(rf"(?:shall|should)\s+i\s+log\s+(?:it|this|that)\??\s*\(\s*{_Y}\s*/\s*{_N}\s*\){_END}", re.IGNORECASE),
    re.compile(rf"\(\s*{_Y}\s*/\s*{_N}\s*\){_END}", re.IGNORECASE),
    re.compile(rf"(?<![\w'])(?:y|Y)\s+to\s+confirm(?:{_ALTERNATIVE})?{_END}"),
]


def _unwrap_urls(text: str) -> str:
    return _URL_WRAPPER_RE.sub(lambda m: m.group(1), text)


def _replace_confirmations(text: str) -> str:
    for pattern in BANNED_CONFIRMATION_PATTERNS:
        text = pattern.sub(CONFIRM_PHRASE, text)
    # Collapse repeats produced by several variants in one answer
    dup = re.escape(CONFIRM_PHRASE)
    return re.sub(rf"{dup}(?:\s*{dup})+", CONFIRM_PHRASE, text)


def _sanitize_once(text: str) -> str:
    return _replace_confirmations(_unwrap_urls(text))


def sanitize(model_text: str) -> str:
    """Pure, idempotent clean-up of a model answer."""
    if not model_text:
        return ""
    current = model_text
    for _ in range(_MAX_PASSES):
        cleaned = _sanitize_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned
    logger.warning("SANITIZE no fixed point after %d passes", _MAX_PASSES)
    return current
