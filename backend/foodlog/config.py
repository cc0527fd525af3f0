"""
Paths, provider endpoints, timeouts, and centralized configuration.
Values are read lazily from the environment; entry points load .env first.
"""
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Repo root: backend/foodlog/config.py -> parent=foodlog, parent.parent=backend, parent.parent.parent=repo
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_REPO_ROOT = _BACKEND_DIR.parent

BRAVE_KEY_PLACEHOLDER = "YOUR_BRAVE_API_KEY"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("CONFIG invalid int %s=%s, using %s", name, raw, default)
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("CONFIG invalid float %s=%s, using %s", name, raw, default)
        return default


# --- Data paths ---
def get_local_ledger_path() -> Path:
    raw = os.environ.get("LOCAL_LEDGER_PATH", "").strip()
    if raw:
        return Path(raw)
    return _REPO_ROOT / "data" / "food_entries.json"


# --- Web search (Brave) ---
def get_brave_api_key() -> str:
    return os.environ.get("BRAVE_API_KEY", "").strip()

def get_brave_search_url() -> str:
    return os.environ.get("BRAVE_SEARCH_URL", "https://api.search.brave.com/res/v1/web/search")

def get_search_region() -> str:
    return os.environ.get("SEARCH_REGION", "AU").strip() or "AU"

def get_search_region_name() -> str:
    """Human-readable region appended to search queries."""
    return os.environ.get("SEARCH_REGION_NAME", "Australia").strip() or "Australia"

def get_search_result_count() -> int:
    return _int_env("SEARCH_RESULT_COUNT", 5)

def get_search_max_retries() -> int:
    return max(1, _int_env("SEARCH_MAX_RETRIES", 2))


# --- LLM / OpenAI-compatible chat completions ---
def get_openai_api_key() -> str:
    return os.environ.get("OPENAI_API_KEY", "").strip()

def get_openai_api_url() -> str:
    return os.environ.get("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")

def get_openai_model() -> str:
    return os.environ.get("OPENAI_MODEL", "gpt-4o-mini")

def get_openai_vision_model() -> str:
    return os.environ.get("OPENAI_VISION_MODEL", "gpt-4o")

def get_llm_temperature() -> float:
    return _float_env("LLM_TEMPERATURE", 0.3)

def get_llm_max_tokens() -> int:
    return _int_env("LLM_MAX_TOKENS", 500)


# --- Ledger (Supabase) ---
def get_supabase_url() -> str:
    return (os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL") or "").strip()

def get_supabase_key() -> str:
    return (os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("NEXT_PUBLIC_SUPABASE_ANON_KEY") or "").strip()

def get_food_entries_table() -> str:
    return os.environ.get("FOOD_ENTRIES_TABLE", "food_entries")

def get_weight_entries_table() -> str:
    return os.environ.get("WEIGHT_ENTRIES_TABLE", "weight_entries")


# --- Conversation ---
def get_default_user_weight_kg() -> float:
    return _float_env("DEFAULT_USER_WEIGHT_KG", 70.0)

HISTORY_WINDOW = _int_env("HISTORY_WINDOW", 4)
# In-memory conversations kept per process; least recently used is dropped first
MAX_SESSIONS = max(1, _int_env("MAX_SESSIONS", 1000))

# Hard bounds (seconds) for one network stage of a turn
SEARCH_TIMEOUT = _float_env("SEARCH_TIMEOUT", 10.0)
LLM_RESPONSE_TIMEOUT = _float_env("LLM_RESPONSE_TIMEOUT", 15.0)


# --- Startup logging ---
def log_config() -> None:
    brave_key = get_brave_api_key()
    logger.info(
        "CONFIG: brave_key=%s search_region=%s search_count=%s openai_key=%s model=%s vision_model=%s "
        "supabase=%s local_ledger=%s history_window=%s max_sessions=%s search_timeout=%.0fs llm_response_timeout=%.0fs",
        bool(brave_key) and brave_key != BRAVE_KEY_PLACEHOLDER,
        get_search_region(), get_search_result_count(),
        bool(get_openai_api_key()), get_openai_model(), get_openai_vision_model(),
        bool(get_supabase_url() and get_supabase_key()), get_local_ledger_path(),
        HISTORY_WINDOW, MAX_SESSIONS, SEARCH_TIMEOUT, LLM_RESPONSE_TIMEOUT,
    )
