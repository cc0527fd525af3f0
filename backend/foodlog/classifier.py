"""
Rule-based classification of user turns for the logging chat.
Decides: search grounding, search mode, request kind (food/exercise/weight),
meal type, affirmative/cancel replies, and exercise items at commit time.
No LLM dependency – fully deterministic pattern matching. Never raises.
"""
import re
import logging
from typing import Dict, List, Optional, Tuple

from foodlog.models.entries import MealType, RequestKind, SearchMode

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Food / meal / brand vocabulary that warrants web grounding
# ---------------------------------------------------------------------------
FOOD_KEYWORDS: List[str] = [
    # cooking / recipes
    "recipe", "how to make", "how to cook", "cook", "bake", "prepare",
    # dishes and meals
    "frittata", "pasta", "salad", "soup", "sandwich", "smoothie", "bowl",
    "breakfast", "lunch", "dinner", "snack", "meal", "dish", "food",
    # restaurants, chains, supermarkets
    "mcdonald", "mcdonalds", "big mac", "nugget", "fries", "burger",
    "coles", "woolworths", "kfc", "subway", "hungry jack",
    # nutrition words
    "calories", "nutrition", "protein", "carbs", "fat",
    # ingredients
    "chicken", "beef", "fish", "salmon", "tuna", "eggs", "rice", "vegetables",
    "fruit", "bread", "cheese", "yogurt", "oats", "garlic", "butter", "steak",
    "pork", "turkey", "bacon", "pizza", "tacos", "curry", "stir fry", "roast",
    "grilled", "banana", "apple", "orange", "avocado", "coffee", "tea",
    # eating verbs
    "ate", "had", "eating", "drank", "drinking", "consumed",
]

# Generic information-seeking markers ("?" is checked separately)
INFO_MARKERS: List[str] = ["give me", "find me", "show me", "i want", "i need", "how many", "what"]

# Tokens match on word boundaries; a trailing plural s/es is tolerated ("nuggets", "burgers")
_FOOD_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in sorted(FOOD_KEYWORDS, key=len, reverse=True)) + r")(?:s|es|'s)?\b",
    re.IGNORECASE,
)
_MARKER_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in INFO_MARKERS) + r")\b",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Restaurant brands (search query phrasing + restaurant-menu mode)
# ---------------------------------------------------------------------------
RESTAURANT_BRANDS: Dict[str, str] = {
    "mcdonald's": "McDonald's",
    "mcdonalds": "McDonald's",
    "mcdonald": "McDonald's",
    "maccas": "McDonald's",
    "kfc": "KFC",
    "subway": "Subway",
    "hungry jacks": "Hungry Jack's",
    "hungry jack's": "Hungry Jack's",
    "hungry jack": "Hungry Jack's",
    "dominos": "Domino's",
    "domino's": "Domino's",
    "pizza hut": "Pizza Hut",
    "red rooster": "Red Rooster",
}
_BRAND_RE = re.compile(
    r"\b(" + "|".join(re.escape(k) for k in sorted(RESTAURANT_BRANDS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_MENU_CUE_RE = re.compile(
    r"\b(?:menu|options?|healthy|healthiest|healthier|low\s+cal(?:orie)?|recommend|suggest|should\s+i\s+(?:get|order|eat))\b",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Request kinds
# ---------------------------------------------------------------------------
EXERCISE_REQUEST_KEYWORDS: List[str] = [
    "exercise", "workout", "run", "walk", "gym", "yoga", "swim", "bike",
    "cardio", "strength", "training", "jog",
]
# Word-start match: "walked", "running", "jogging", "swimming"
_EXERCISE_REQUEST_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in EXERCISE_REQUEST_KEYWORDS) + r")\w*",
    re.IGNORECASE,
)

EXERCISE_ITEM_KEYWORDS: List[str] = [
    "workout", "walk", "run", "exercise", "gym", "min", "burned", "bike",
    "swim", "yoga", "cardio", "lifting", "training",
]
_EXERCISE_ITEM_RE = re.compile(
    r"\bmin(?:s|utes?)?\b"
    r"|\b(?:workout|walk|run|exercise|gym|burned|bik|swim|yoga|cardio|lifting|training)\w*",
    re.IGNORECASE,
)

_WEIGHT_WORD_RE = re.compile(r"\bweigh(?:t|ed|s|ing)?\b", re.IGNORECASE)
_KG_RE = re.compile(r"(\d+(?:\.\d+)?)\s*kg\b", re.IGNORECASE)

# Questions that should be answered rather than logged
_QUESTION_START_RE = re.compile(
    r"^\s*(?:what|how|which|why|when|where|can|could|should|would|is|are|does|do|"
    r"give\s+me|find\s+me|show\s+me|suggest|recommend|tell\s+me)\b",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Meal types
# ---------------------------------------------------------------------------
# Variants -> canonical meal type (longest-first matching)
MEAL_TYPE_VARIANTS: Dict[str, MealType] = {
    "late night snack": MealType.EVENING_SNACK,
    "midnight snack": MealType.EVENING_SNACK,
    "morning snack": MealType.MORNING_SNACK,
    "afternoon snack": MealType.AFTERNOON_SNACK,
    "evening snack": MealType.EVENING_SNACK,
    "post-workout": MealType.SNACK,
    "post workout": MealType.SNACK,
    "pre-workout": MealType.SNACK,
    "pre workout": MealType.SNACK,
    "tea time": MealType.AFTERNOON_SNACK,
    "teatime": MealType.AFTERNOON_SNACK,
    "appetizer": MealType.SNACK,
    "dessert": MealType.EVENING_SNACK,
    "brunch": MealType.LUNCH,
}
_VARIANT_RE = re.compile(
    r"\b(" + "|".join(re.escape(k) for k in sorted(MEAL_TYPE_VARIANTS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_MAIN_MEAL_RE = re.compile(r"\b(breakfast|lunch|dinner)\b", re.IGNORECASE)
_SNACK_RE = re.compile(r"\bsnacks?\b", re.IGNORECASE)

# A snack mentioned together with a main meal is timed after that meal
SNACK_TIMING: Dict[MealType, MealType] = {
    MealType.BREAKFAST: MealType.MORNING_SNACK,
    MealType.LUNCH: MealType.AFTERNOON_SNACK,
    MealType.DINNER: MealType.EVENING_SNACK,
}

AFFIRMATIVE_WORDS = {"y", "yes"}
CANCEL_WORDS = {"n", "no", "cancel"}

# Words allowed around a meal type in a bare answer to "which meal is this for?"
MEAL_ANSWER_FILLER = {
    "it", "it's", "its", "was", "is", "this", "that", "for", "my", "a", "an", "the",
    "as", "at", "of", "i", "had", "ate", "just", "please", "thanks", "ok", "okay",
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def should_search(text: str) -> bool:
    """True if text names food/meal/brand vocabulary or asks for information."""
    if not text or not isinstance(text, str):
        return False
    if "?" in text:
        return True
    return bool(_FOOD_RE.search(text) or _MARKER_RE.search(text))


def detect_restaurant(text: str) -> Optional[str]:
    """Canonical restaurant brand named in text, else None."""
    if not text:
        return None
    m = _BRAND_RE.search(text)
    if not m:
        return None
    return RESTAURANT_BRANDS[m.group(1).lower()]


def split_restaurant(text: str) -> Tuple[Optional[str], str]:
    """(canonical brand, text with the brand mention removed); (None, text) if no brand."""
    if not text:
        return None, text or ""
    m = _BRAND_RE.search(text)
    if not m:
        return None, text
    rest = " ".join((text[:m.start()] + " " + text[m.end():]).split())
    return RESTAURANT_BRANDS[m.group(1).lower()], rest


def choose_search_mode(text: str) -> SearchMode:
    """restaurantMenu when a brand is named alongside a menu/options cue."""
    if detect_restaurant(text) and _MENU_CUE_RE.search(text or ""):
        return SearchMode.RESTAURANT_MENU
    return SearchMode.NUTRITION


def extract_weight_kg(text: str) -> Optional[float]:
    if not text:
        return None
    m = _KG_RE.search(text)
    return float(m.group(1)) if m else None


def detect_request_kind(text: str) -> RequestKind:
    """weight > exercise > food; food is the default."""
    if not text:
        return RequestKind.FOOD
    if _WEIGHT_WORD_RE.search(text) and _KG_RE.search(text):
        return RequestKind.WEIGHT
    if _EXERCISE_REQUEST_RE.search(text):
        return RequestKind.EXERCISE
    return RequestKind.FOOD


def is_question(text: str) -> bool:
    if not text:
        return False
    return "?" in text or bool(_QUESTION_START_RE.search(text))


def detect_meal_type(text: str) -> Optional[MealType]:
    """
    Explicit meal type in text, with variant mapping and snack timing.
    "brunch" -> lunch, "dessert" -> evening snack, "lunch snack" -> afternoon snack.
    """
    if not text:
        return None
    m = _VARIANT_RE.search(text)
    if m:
        return MEAL_TYPE_VARIANTS[m.group(1).lower()]
    main = _MAIN_MEAL_RE.search(text)
    has_snack = bool(_SNACK_RE.search(text))
    if main:
        meal = MealType(main.group(1).lower())
        if has_snack:
            return SNACK_TIMING[meal]
        return meal
    if has_snack:
        return MealType.SNACK
    return None


def is_meal_type_answer(text: str) -> bool:
    """True for a bare meal-type reply ("lunch", "it was dinner", "for a morning snack")."""
    if detect_meal_type(text) is None:
        return False
    rest = _SNACK_RE.sub(" ", _MAIN_MEAL_RE.sub(" ", _VARIANT_RE.sub(" ", text)))
    return all(w in MEAL_ANSWER_FILLER for w in re.findall(r"[a-z']+", rest.lower()))


def infer_meal_type_by_hour(hour: int) -> MealType:
    """Time-of-day fallback when no meal type was given."""
    if 5 <= hour < 11:
        return MealType.BREAKFAST
    if 11 <= hour < 14:
        return MealType.LUNCH
    if 14 <= hour < 17:
        return MealType.SNACK
    if 17 <= hour < 21:
        return MealType.DINNER
    return MealType.SNACK


def _normalize_reply(text: str) -> str:
    return re.sub(r"[\s\.\!]+$", "", (text or "").strip().lower())


def is_affirmative(text: str) -> bool:
    return _normalize_reply(text) in AFFIRMATIVE_WORDS


def is_cancel(text: str) -> bool:
    return _normalize_reply(text) in CANCEL_WORDS


def is_exercise_item(name: str) -> bool:
    """Commit-time heuristic: does this item name describe an activity?"""
    return bool(name) and bool(_EXERCISE_ITEM_RE.search(name))
