"""
User-facing reply templates for outcomes the pipeline decides locally.
"""
from typing import Sequence

from foodlog.models.entries import FoodEntry

CANCELLED = "Cancelled. What else would you like to log?"
NOTHING_PENDING = "There's nothing waiting to be logged. Tell me what you ate or what exercise you did."
NOTHING_TO_LOG = "I couldn't find any calories to log in that answer, so nothing was saved. Could you describe it again?"
ENGINE_APOLOGY = "Sorry, I couldn't process that. Please try again."


def weight_logged(weight_kg: float) -> str:
    return f"Weight logged: {weight_kg:g}kg"


def entries_logged(entries: Sequence[FoodEntry]) -> str:
    if len(entries) == 1:
        e = entries[0]
        if e.is_exercise:
            return f"Logged {e.name} - {-e.calories} calories burned!"
        return f"Logged {e.name} - {e.calories} calories!"
    total = sum(e.calories for e in entries)
    return f"Logged {len(entries)} items - {total} calories total!"


def with_notices(notices: Sequence[str], text: str) -> str:
    if not notices:
        return text
    return "\n\n".join(list(notices) + [text])
