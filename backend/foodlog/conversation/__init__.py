"""
Conversation layer: tagged-variant states, transitions and the per-conversation actor.
"""
from .states import (
    AwaitingFoodConfirmation,
    AwaitingMealType,
    AwaitingWeightConfirmation,
    ConversationState,
    Idle,
)
from .session import ConversationSession, SessionRegistry, TurnResult

__all__ = [
    "AwaitingFoodConfirmation",
    "AwaitingMealType",
    "AwaitingWeightConfirmation",
    "ConversationState",
    "Idle",
    "ConversationSession",
    "SessionRegistry",
    "TurnResult",
]
