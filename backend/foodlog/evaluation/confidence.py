"""
Confidence score and provenance tag for an extracted item.

Ordered decision list, first match wins:
    official domain + flagship item     0.95  websiteOfficial
    official domain                     0.90  websiteOfficial
    nutrition database domain           0.90  databaseVerified
    "calories"/"logged" + a digit       0.85  commonFood
    branded product named               0.80  brandedProduct
    common food named                   0.75  commonFood
    homemade                            0.70  homemade
    any search domain                   0.65  estimated
    otherwise                           0.50  userDescribed
"""
import re
import logging
from typing import List, Optional, Sequence, Tuple

from foodlog.models.entries import ConfidenceSource, FoodConfidence, NutritionEstimate

logger = logging.getLogger(__name__)

OFFICIAL_DOMAINS: List[str] = [
    "mcdonalds.com", "mcdonalds.com.au",
    "kfc.com", "kfc.com.au",
    "subway.com", "subway.com.au",
    "dominos.com", "dominos.com.au",
    "pizzahut.com", "pizzahut.com.au",
    "hungryjacks.com.au",
    "redrooster.com.au",
    "coles.com.au",
    "woolworths.com.au",
]

FLAGSHIP_ITEMS: List[str] = ["big mac", "mcnuggets", "whopper", "zinger"]

NUTRITION_DATABASES: List[str] = ["nutritionix", "myfitnesspal", "fatsecret", "calorieking", "usda.gov"]

BRANDED_PRODUCTS: List[str] = [
    "big mac", "quarter pounder", "mcnuggets", "mcflurry", "whopper",
    "kfc bucket", "zinger burger", "footlong", "6 inch",
    "cookie", "muffin", "latte", "cappuccino", "flat white",
]

COMMON_FOODS: List[str] = [
    "apple", "banana", "orange", "egg", "eggs", "toast", "bread", "milk",
    "coffee", "tea", "chicken breast", "rice", "pasta", "salad", "yogurt",
    "oatmeal", "cereal",
]

# (rule, confidence, source), strongest provenance first
SCORE_TABLE: List[Tuple[str, float, ConfidenceSource]] = [
    ("official_flagship", 0.95, ConfidenceSource.WEBSITE_OFFICIAL),
    ("official_domain", 0.90, ConfidenceSource.WEBSITE_OFFICIAL),
    ("nutrition_database", 0.90, ConfidenceSource.DATABASE_VERIFIED),
    ("explicit_calories", 0.85, ConfidenceSource.COMMON_FOOD),
    ("branded_product", 0.80, ConfidenceSource.BRANDED_PRODUCT),
    ("common_food", 0.75, ConfidenceSource.COMMON_FOOD),
    ("homemade", 0.70, ConfidenceSource.HOMEMADE),
    ("search_estimate", 0.65, ConfidenceSource.ESTIMATED),
    ("user_described", 0.50, ConfidenceSource.USER_DESCRIBED),
]

_CALORIE_FIGURE_RE = re.compile(r"(\d+)\s*(?:calories|cal|kcal)", re.IGNORECASE)
_DIGIT_RE = re.compile(r"\d")


def _domain_matches(domains: Sequence[str], needles: Sequence[str]) -> bool:
    lowered = [d.lower() for d in domains if d]
    return any(n in d for d in lowered for n in needles)


def _contains_any(text: str, terms: Sequence[str]) -> bool:
    return any(term in text for term in terms)


def _word_any(text: str, terms: Sequence[str]) -> bool:
    return any(re.search(r"\b" + re.escape(t) + r"\b", text) for t in terms)


def estimate_calories(text: str) -> Optional[int]:
    m = _CALORIE_FIGURE_RE.search(text or "")
    return int(m.group(1)) if m else None


def select_rule(candidate_text: str, search_domains: Sequence[str]) -> str:
    text = (candidate_text or "").lower()
    domains = list(search_domains or [])
    official = _domain_matches(domains, OFFICIAL_DOMAINS)
    if official and _contains_any(text, FLAGSHIP_ITEMS):
        return "official_flagship"
    if official:
        return "official_domain"
    if _domain_matches(domains, NUTRITION_DATABASES):
        return "nutrition_database"
    if ("calories" in text or "logged" in text) and _DIGIT_RE.search(text):
        return "explicit_calories"
    if _contains_any(text, BRANDED_PRODUCTS):
        return "branded_product"
    if _word_any(text, COMMON_FOODS):
        return "common_food"
    if "homemade" in text or "home made" in text:
        return "homemade"
    if any(d for d in domains):
        return "search_estimate"
    return "user_described"


def score(candidate_text: str, search_domains: Sequence[str], item_name: Optional[str] = None) -> FoodConfidence:
    """
    Confidence for a candidate answer/item given the domains that grounded it.
    Deterministic: identical inputs always give the identical result.
    """
    rule = select_rule(candidate_text, search_domains)
    _, confidence, source = next(row for row in SCORE_TABLE if row[0] == rule)
    calories = estimate_calories(candidate_text)
    estimate = NutritionEstimate(calories=calories) if calories is not None else None
    logger.debug("CONFIDENCE rule=%s confidence=%.2f domains=%d", rule, confidence, len(search_domains or []))
    return FoodConfidence(
        item_name=item_name if item_name is not None else (candidate_text or "").strip()[:80],
        confidence=confidence,
        source=source,
        nutrition_estimate=estimate,
    )


class ConfidenceScorer:
    """Object form of score() for injection into the conversation layer."""

    def score(self, candidate_text: str, search_domains: Sequence[str], item_name: Optional[str] = None) -> FoodConfidence:
        return score(candidate_text, search_domains, item_name=item_name)
