"""
Structured extraction of (name, calories, protein?, carbs?, fat?) items from a
sanitized model answer.

Strategies run in strict order; the first that yields at least one item wins:

    0. machine-readable <<<FOOD_LOG>>> payload
    1. named serving      "Yoghurt\\n1 serving (150g): 94 cal\\nProtein: 9g | ..."
    2. itemized list      "rice: 100 cal\\nsteak: 300 cal"   (no pipe total)
    3. itemized + total   "omelette\\n3 eggs: 210 cal\\n...\\n360 calories | P: 20g | C: 8g | F: 27g"
    4. inline             "2 eggs = 140 calories", "Omelet: 210 calories", "eggs - 140 calories"
    5. range              "pasta = 400-500 calories"
    6. approximate        "pasta = approximately 450 calories"

No match is not an error: extract() returns [].
"""
import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from foodlog.extraction.structured import parse_payload, strip_payload
from foodlog.models.entries import ExtractedItem

logger = logging.getLogger(__name__)

_NUM = r"(\d[\d,]*(?:\.\d+)?)"

# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------
_CAL_AFTER_COLON_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*(?:k?cal)", re.IGNORECASE)
_TOTAL_CAL_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*(?:k?cal(?:orie)?s?)\b", re.IGNORECASE)

_PROTEIN_RE = re.compile(r"\b(?:Protein|P)\s*:\s*(\d+(?:\.\d+)?)\s*g?", re.IGNORECASE)
_CARBS_RE = re.compile(r"\b(?:Carbs|Carbohydrates|C)\s*:\s*(\d+(?:\.\d+)?)\s*g?", re.IGNORECASE)
_FAT_RE = re.compile(r"\b(?:Fat|F)\s*:\s*(\d+(?:\.\d+)?)\s*g?", re.IGNORECASE)
_MACRO_LINE_RE = re.compile(r"\bProtein\s*:", re.IGNORECASE)
_BURNED_RE = re.compile(r"\bburned\b", re.IGNORECASE)


def _is_summary_line(line: str) -> bool:
    """Lines that never describe an item on their own."""
    lower = line.lower()
    return (
        "tap confirm" in lower
        or "total" in lower
        or "|" in line
        or lower.startswith("calories:")
        or lower.startswith("- calories:")
        or lower == "calories"
    )


def _is_item_line(line: str) -> bool:
    return ":" in line and "cal" in line.lower() and not _is_summary_line(line)


def _is_total_line(line: str) -> bool:
    return "|" in line and "calories" in line.lower()


def _to_number(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def _round_calories(value: float) -> int:
    """Nearest integer, halves up, never below 1."""
    return max(1, int(math.floor(value + 0.5)))


# ---------------------------------------------------------------------------
# Name cleanup
# ---------------------------------------------------------------------------
_BULLET_RE = re.compile(r"^(?:[-*•·]+|\d+[.)])\s+")
_SERVING_PREFIXES = [
    re.compile(r"^\d+\s+servings?\s+of\s+", re.IGNORECASE),
    re.compile(r"^\d+\s+servings?\s+", re.IGNORECASE),
    re.compile(r"^servings?\s+of\s+", re.IGNORECASE),
]
_OF_CLAUSE_RE = re.compile(r"\bof\s+([^:=\-]+)", re.IGNORECASE)
_ACK_PREFIX_RE = re.compile(r"^(?:got\s+it|ok(?:ay)?|great|sure|perfect|nice|done)\s*[,!.:-]\s*", re.IGNORECASE)
_LOGGED_SUFFIX_RE = re.compile(r"\s+logged$", re.IGNORECASE)


def clean_name(name: str, source_line: str = "") -> str:
    """
    Strip bullets and serving-count phrases. If that leaves nothing (or just
    "serving"), re-derive the name from an "of <food>" clause in source_line.
    """
    n = (name or "").strip().strip("*").strip()
    n = _BULLET_RE.sub("", n)
    n = _ACK_PREFIX_RE.sub("", n)
    n = _LOGGED_SUFFIX_RE.sub("", n)
    for pattern in _SERVING_PREFIXES:
        n = pattern.sub("", n)
    n = n.strip()
    if not n or n.lower() in ("serving", "servings"):
        m = _OF_CLAUSE_RE.search(source_line or "")
        if m:
            n = m.group(1).strip()
    return n


# Leading quantities and units on component lines: "3 eggs", "1/4 cup peas", "~100g rice"
_COMPONENT_QTY = [
    re.compile(r"^~?\d+/\d+\s+"),
    re.compile(r"^~?\d+(?:\.\d+)?\s*(?:x\s+)?(?:g\b|ml\b|oz\b)?\s*"),
    re.compile(
        r"^(?:cups?|tbsps?|tsps?|tablespoons?|teaspoons?|slices?|pieces?|handfuls?|servings?|scoops?|pinch(?:es)?)\s+(?:of\s+)?",
        re.IGNORECASE,
    ),
]


def _component_name(raw: str) -> str:
    n = _BULLET_RE.sub("", raw.strip())
    for pattern in _COMPONENT_QTY:
        n = pattern.sub("", n, count=1)
    return n.strip()


def _composite_name(names: List[str]) -> str:
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} with {names[1]}"
    return ", ".join(names[:-1]) + f" and {names[-1]}"


# ---------------------------------------------------------------------------
# Macro helpers
# ---------------------------------------------------------------------------
@dataclass
class _Macros:
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None


def _macros_from(line: str) -> _Macros:
    def grab(pattern: re.Pattern) -> Optional[float]:
        m = pattern.search(line)
        return float(m.group(1)) if m else None
    return _Macros(protein=grab(_PROTEIN_RE), carbs=grab(_CARBS_RE), fat=grab(_FAT_RE))


def _first_macro_line(lines: List[str], start: int = 0) -> Optional[str]:
    for line in lines[start:]:
        if _MACRO_LINE_RE.search(line):
            return line
    return None


def _item_from_colon_line(line: str) -> Optional[Tuple[str, int, bool]]:
    name, _, after = line.partition(":")
    m = _CAL_AFTER_COLON_RE.search(after)
    if not m:
        return None
    value = _to_number(m.group(1))
    name = name.strip()
    if value is None or not name:
        return None
    return name, _round_calories(value), bool(_BURNED_RE.search(after))


# ---------------------------------------------------------------------------
# Strategies (each takes the non-empty stripped lines)
# ---------------------------------------------------------------------------
def _named_serving(lines: List[str]) -> List[ExtractedItem]:
    if len(lines) < 2:
        return []
    first, second = lines[0], lines[1]
    if "cal" in first.lower() or ":" in first:
        return []
    if not (":" in second and "cal" in second.lower()):
        return []
    # A list of components under a dish heading belongs to the itemized forms
    if any(_is_total_line(line) for line in lines):
        return []
    if sum(1 for line in lines if _is_item_line(line)) != 1:
        return []
    _, _, after = second.partition(":")
    m = _CAL_AFTER_COLON_RE.search(after)
    if not m:
        return []
    value = _to_number(m.group(1))
    if value is None:
        return []
    name = clean_name(first.rstrip(":"), first)
    if not name:
        return []
    macros = _Macros()
    if len(lines) > 2 and _MACRO_LINE_RE.search(lines[2]):
        macros = _macros_from(lines[2])
    return [ExtractedItem(
        name=name,
        calories=_round_calories(value),
        protein=macros.protein, carbs=macros.carbs, fat=macros.fat,
    )]


def _itemized(lines: List[str]) -> List[ExtractedItem]:
    if any(_is_total_line(line) for line in lines):
        return []
    found = [p for p in (_item_from_colon_line(line) for line in lines if _is_item_line(line)) if p]
    if len(found) < 2:
        return []
    items = [ExtractedItem(name=clean_name(name, name), calories=cal, burned=burned) for name, cal, burned in found]
    return [item for item in items if item.name]


def _itemized_with_total(lines: List[str]) -> List[ExtractedItem]:
    item_idx = [i for i, line in enumerate(lines) if _is_item_line(line)]
    total_line = next((line for line in lines if _is_total_line(line)), None)

    if total_line is None:
        # One itemized line: enrich it with macros from a following line
        if len(item_idx) != 1:
            return []
        parsed = _item_from_colon_line(lines[item_idx[0]])
        if not parsed:
            return []
        name, cal, burned = parsed
        name = clean_name(name, lines[item_idx[0]])
        if not name:
            return []
        macro_line = _first_macro_line(lines, item_idx[0] + 1)
        macros = _macros_from(macro_line) if macro_line else _Macros()
        return [ExtractedItem(
            name=name, calories=cal,
            protein=macros.protein, carbs=macros.carbs, fat=macros.fat,
            burned=burned,
        )]

    m = _TOTAL_CAL_RE.search(total_line)
    total = _to_number(m.group(1)) if m else None
    if total is None:
        return []
    components = [_component_name(lines[i].partition(":")[0]) for i in item_idx]
    components = [c for c in components if c and "cal" not in c.lower()]
    if components:
        name = _composite_name(components)
    else:
        heading = next(
            (line for line in lines
             if line is not total_line and ":" not in line and "=" not in line
             and "calories" not in line.lower() and "tap confirm" not in line.lower()),
            None,
        )
        if heading is None:
            return []
        name = clean_name(heading, heading)
    macros = _macros_from(total_line)
    return [ExtractedItem(
        name=name, calories=_round_calories(total),
        protein=macros.protein, carbs=macros.carbs, fat=macros.fat,
    )]


_INLINE_PATTERNS = [
    re.compile(rf"^(.+?)\s*=\s*{_NUM}\s*(?:k?cal(?:orie)?s?)\b(\s+burned)?", re.IGNORECASE),
    re.compile(rf"^-\s*([^=]+?):\s*{_NUM}\s*(?:k?cal(?:orie)?s?)\b(\s+burned)?", re.IGNORECASE),
    re.compile(rf"^([^=]+?):\s*{_NUM}\s*(?:k?cal(?:orie)?s?)\b(\s+burned)?", re.IGNORECASE),
    re.compile(rf"^([^=]+?)\s+[-–]\s+{_NUM}\s*(?:k?cal(?:orie)?s?)\b(\s+burned)?", re.IGNORECASE),
    re.compile(rf"^([^=]+?)\s+{_NUM}\s*calories(\s+burned)?$", re.IGNORECASE),
]


# Labels that name the figure, not the food ("Calories: 563 kcal" under a "Big Mac" heading)
_FIGURE_LABELS = {"calories", "calorie", "cal", "kcal", "energy", "total", "total calories"}


def _heading_above(lines: List[str], i: int) -> str:
    if i == 0:
        return ""
    prev = lines[i - 1]
    if re.search(r"\d", prev) or "=" in prev:
        return ""
    return clean_name(prev.rstrip(":"), prev)


def _inline(lines: List[str]) -> List[ExtractedItem]:
    for i, line in enumerate(lines):
        lower = line.lower()
        if "tap confirm" in lower or "pieces of" in lower or "slices of" in lower:
            continue
        for pattern in _INLINE_PATTERNS:
            m = pattern.search(line)
            if not m:
                continue
            value = _to_number(m.group(2))
            name = clean_name(m.group(1), line)
            if name.lower() in _FIGURE_LABELS:
                name = _heading_above(lines, i)
            if value is None or not name:
                continue
            macros = _macros_from(line) if "|" in line else _Macros()
            return [ExtractedItem(
                name=name, calories=_round_calories(value),
                protein=macros.protein, carbs=macros.carbs, fat=macros.fat,
                burned=bool(m.group(3)),
            )]
    return []


_RANGE_RE = re.compile(
    rf"^(.+?)\s*=\s*{_NUM}\s*[-–]\s*{_NUM}\s*calories?\b(\s+burned)?", re.IGNORECASE,
)


def _range(lines: List[str]) -> List[ExtractedItem]:
    for line in lines:
        m = _RANGE_RE.search(line)
        if not m:
            continue
        low, high = _to_number(m.group(2)), _to_number(m.group(3))
        name = clean_name(m.group(1), line)
        if low is None or high is None or not name:
            continue
        return [ExtractedItem(name=name, calories=_round_calories((low + high) / 2), burned=bool(m.group(4)))]
    return []


_APPROX_RE = re.compile(
    rf"^(.+?)\s*=\s*(?:approximately|approx\.?|about|around|roughly|~)\s*{_NUM}\s*calories?\b(\s+burned)?",
    re.IGNORECASE,
)


def _approximate(lines: List[str]) -> List[ExtractedItem]:
    for line in lines:
        m = _APPROX_RE.search(line)
        if not m:
            continue
        value = _to_number(m.group(2))
        name = clean_name(m.group(1), line)
        if value is None or not name:
            continue
        return [ExtractedItem(name=name, calories=_round_calories(value), burned=bool(m.group(3)))]
    return []


STRATEGIES: List[Tuple[str, Callable[[List[str]], List[ExtractedItem]]]] = [
    ("named_serving", _named_serving),
    ("itemized", _itemized),
    ("itemized_with_total", _itemized_with_total),
    ("inline", _inline),
    ("range", _range),
    ("approximate", _approximate),
]


_CONFIRM_SENTENCE_RE = re.compile(r"tap\s+confirm\b[^.!\n]*[.!]?", re.IGNORECASE)


def _lines(text: str) -> List[str]:
    """Non-empty stripped lines with any "Tap confirm ..." sentence removed."""
    out = []
    for line in text.splitlines():
        line = _CONFIRM_SENTENCE_RE.sub("", line).strip()
        if line:
            out.append(line)
    return out


def extract_with_strategy(sanitized_text: str) -> Tuple[Optional[str], List[ExtractedItem]]:
    """(name of the winning strategy, items); (None, []) on a parse miss."""
    if not sanitized_text or not sanitized_text.strip():
        return None, []
    items = parse_payload(sanitized_text)
    if items:
        return "payload", items
    lines = _lines(strip_payload(sanitized_text))
    for name, strategy in STRATEGIES:
        items = strategy(lines)
        if items:
            logger.info("EXTRACT strategy=%s items=%d", name, len(items))
            return name, items
    logger.info("EXTRACT miss text=%s", sanitized_text[:80].replace("\n", " "))
    return None, []


def extract(sanitized_text: str) -> List[ExtractedItem]:
    return extract_with_strategy(sanitized_text)[1]
