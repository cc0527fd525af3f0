"""
Confirmation state machine: pure transition functions over ConversationState.

    Idle --meal-type question--> AwaitingMealType --meal given, re-run--> ...
    Idle --loggable answer--> AwaitingFoodConfirmation --yes--> Idle (entries committed)
    Idle --weight answer--> AwaitingWeightConfirmation --yes--> Idle (weight committed)
    any awaiting state --cancel--> Idle

A new loggable answer replaces whatever was pending (last write wins).
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from foodlog.classifier import detect_meal_type, infer_meal_type_by_hour, is_exercise_item
from foodlog.evaluation.confidence import score
from foodlog.extraction.extractor import extract
from foodlog.models.entries import ExtractedItem, FoodEntry, MealType, WeightEntry
from foodlog.conversation.states import (
    AwaitingFoodConfirmation,
    AwaitingMealType,
    AwaitingWeightConfirmation,
    ConversationState,
    Idle,
)

logger = logging.getLogger(__name__)

MEAL_TYPE_MARKER = "which meal is this for"
WEIGHT_MARKER = "weight logged:"

_WEIGHT_KG_RE = re.compile(r"(\d+\.?\d*)\s*kg", re.IGNORECASE)


class AnswerKind(str, Enum):
    WEIGHT = "weight"
    LOGGABLE = "loggable"
    MEAL_TYPE_QUESTION = "meal_type_question"
    OTHER = "other"


def classify_answer(sanitized: str) -> AnswerKind:
    """Decide what a sanitized model answer means for the pending slot."""
    text = sanitized or ""
    lower = text.lower()
    if WEIGHT_MARKER in lower and _WEIGHT_KG_RE.search(text):
        return AnswerKind.WEIGHT
    has_figure = "calories" in lower or " cal" in lower
    has_marker = "confirm" in lower or "reply" in lower
    if has_figure and has_marker:
        return AnswerKind.LOGGABLE
    if MEAL_TYPE_MARKER in lower:
        return AnswerKind.MEAL_TYPE_QUESTION
    return AnswerKind.OTHER


def answer_weight_kg(sanitized: str) -> Optional[float]:
    m = _WEIGHT_KG_RE.search(sanitized or "")
    return float(m.group(1)) if m else None


def resolve_meal_type(state: ConversationState, hint: Optional[MealType], text: str) -> Optional[MealType]:
    """Explicit hint, then a meal keyword in text, then the meal already attached to the pending answer."""
    if hint is not None:
        return hint
    detected = detect_meal_type(text)
    if detected is not None:
        return detected
    if isinstance(state, AwaitingFoodConfirmation):
        return state.meal_type
    return None


def on_answer(
    state: ConversationState,
    sanitized: str,
    original_text: str,
    image: Optional[bytes] = None,
    meal_type: Optional[MealType] = None,
    search_domains: Sequence[str] = (),
) -> ConversationState:
    kind = classify_answer(sanitized)
    if kind == AnswerKind.WEIGHT:
        weight = answer_weight_kg(sanitized)
        if weight is not None:
            return AwaitingWeightConfirmation(weight_kg=weight, answer_text=sanitized)
        return state
    if kind == AnswerKind.LOGGABLE:
        if meal_type is None and isinstance(state, AwaitingFoodConfirmation):
            meal_type = state.meal_type
        return AwaitingFoodConfirmation(
            answer_text=sanitized, meal_type=meal_type, search_domains=tuple(search_domains),
        )
    if kind == AnswerKind.MEAL_TYPE_QUESTION:
        return AwaitingMealType(original_text=original_text, image=image)
    return state


def on_cancel(state: ConversationState) -> Idle:
    return Idle()


@dataclass
class FoodCommit:
    entries: List[FoodEntry]
    items: List[ExtractedItem]


def _entry_for(
    item: ExtractedItem,
    owner_id: str,
    pending: AwaitingFoodConfirmation,
    timestamp: datetime,
) -> FoodEntry:
    exercise = item.burned or is_exercise_item(item.name)
    confidence = score(pending.answer_text, list(pending.search_domains), item_name=item.name)
    meal: Optional[MealType] = None
    if not exercise:
        meal = pending.meal_type or infer_meal_type_by_hour(timestamp.hour)
    return FoodEntry(
        owner_id=owner_id,
        name=item.name,
        calories=-item.calories if exercise else item.calories,
        confidence=confidence.confidence,
        confidence_source=confidence.source,
        timestamp=timestamp.isoformat(),
        meal_type=meal,
        protein=None if exercise else item.protein,
        carbs=None if exercise else item.carbs,
        fat=None if exercise else item.fat,
    )


def commit_food(
    pending: AwaitingFoodConfirmation,
    owner_id: str,
    timestamp: datetime,
) -> Tuple[Idle, FoodCommit]:
    """Extract and build the whole batch; zero items means zero entries."""
    items = extract(pending.answer_text)
    entries = [_entry_for(item, owner_id, pending, timestamp) for item in items]
    logger.info("COMMIT_FOOD user_id=%s items=%d", owner_id, len(entries))
    return Idle(), FoodCommit(entries=entries, items=items)


def commit_weight(
    pending: AwaitingWeightConfirmation,
    owner_id: str,
    timestamp: datetime,
) -> Tuple[Idle, WeightEntry]:
    return Idle(), WeightEntry(owner_id=owner_id, weight_kg=pending.weight_kg, timestamp=timestamp.isoformat())
