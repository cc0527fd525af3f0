"""
Conversation states as tagged variants. Exactly one value per conversation;
pending food and pending weight cannot coexist.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from foodlog.models.entries import MealType


@dataclass(frozen=True)
class Idle:
    kind: str = field(default="idle", init=False)


@dataclass(frozen=True)
class AwaitingMealType:
    """The engine asked for a meal type; original_text is re-submitted once it is known."""
    original_text: str
    image: Optional[bytes] = None
    kind: str = field(default="awaiting_meal_type", init=False)


@dataclass(frozen=True)
class AwaitingFoodConfirmation:
    """A loggable answer is held verbatim as the extraction source."""
    answer_text: str
    meal_type: Optional[MealType] = None
    search_domains: Tuple[str, ...] = ()
    kind: str = field(default="awaiting_confirmation", init=False)


@dataclass(frozen=True)
class AwaitingWeightConfirmation:
    weight_kg: float
    answer_text: str = ""
    kind: str = field(default="awaiting_weight_confirmation", init=False)


ConversationState = Union[Idle, AwaitingMealType, AwaitingFoodConfirmation, AwaitingWeightConfirmation]

AWAITING_CONFIRMATION = (AwaitingFoodConfirmation, AwaitingWeightConfirmation)


def state_name(state: ConversationState) -> str:
    return state.kind
