from .entries import (
    ConfidenceSource,
    ExtractedItem,
    FoodConfidence,
    FoodEntry,
    LogRequest,
    MealType,
    NutritionEstimate,
    RequestKind,
    SearchContext,
    SearchMode,
    WeightEntry,
)

__all__ = [
    "ConfidenceSource",
    "ExtractedItem",
    "FoodConfidence",
    "FoodEntry",
    "LogRequest",
    "MealType",
    "NutritionEstimate",
    "RequestKind",
    "SearchContext",
    "SearchMode",
    "WeightEntry",
]
