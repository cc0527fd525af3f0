"""
Data model for the chat logging pipeline.

LogRequest and SearchContext live for one turn only. ExtractedItem and
FoodConfidence exist between answer and commit. FoodEntry / WeightEntry are
the only durable records; they are never mutated after being written.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"
    MORNING_SNACK = "morning snack"
    AFTERNOON_SNACK = "afternoon snack"
    EVENING_SNACK = "evening snack"


class SearchMode(str, Enum):
    NUTRITION = "nutrition"
    RESTAURANT_MENU = "restaurantMenu"


class RequestKind(str, Enum):
    FOOD = "food"
    EXERCISE = "exercise"
    WEIGHT = "weight"


class ConfidenceSource(str, Enum):
    """Provenance tag: why a confidence score was assigned."""
    WEBSITE_OFFICIAL = "websiteOfficial"
    DATABASE_VERIFIED = "databaseVerified"
    COMMON_FOOD = "commonFood"
    BRANDED_PRODUCT = "brandedProduct"
    HOMEMADE = "homemade"
    ESTIMATED = "estimated"
    USER_DESCRIBED = "userDescribed"


@dataclass
class LogRequest:
    """One user utterance. Consumed immediately, never persisted."""
    text: str
    image: Optional[bytes] = None
    meal_type_hint: Optional[MealType] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image)


@dataclass
class SearchContext:
    context: str = ""
    domains: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.context.strip()


@dataclass
class ExtractedItem:
    """One food or activity line recovered from a model answer."""
    name: str
    calories: int  # magnitude, always >= 0
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    burned: bool = False

    def __post_init__(self) -> None:
        if self.calories < 0:
            raise ValueError("calories must be >= 0; use burned=True for energy expended")
        for macro in ("protein", "carbs", "fat"):
            value = getattr(self, macro)
            if value is not None and value < 0:
                raise ValueError(f"{macro} must be >= 0")

    @property
    def signed_calories(self) -> int:
        return -self.calories if self.burned else self.calories


@dataclass
class NutritionEstimate:
    calories: Optional[int] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None


@dataclass
class FoodConfidence:
    item_name: str
    confidence: float
    source: ConfidenceSource
    nutrition_estimate: Optional[NutritionEstimate] = None

    @property
    def percent(self) -> int:
        return int(round(self.confidence * 100))


@dataclass
class FoodEntry:
    """Durable record. Negative calories mean energy burned; meal_type is None for exercise."""
    owner_id: str
    name: str
    calories: int
    confidence: float
    confidence_source: ConfidenceSource
    timestamp: str  # ISO-8601
    meal_type: Optional[MealType] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    logged_via: str = "chat"
    image_url: Optional[str] = None

    @property
    def is_exercise(self) -> bool:
        return self.calories < 0

    def to_row(self) -> Dict[str, Any]:
        """Column mapping for the food_entries table."""
        return {
            "user_id": self.owner_id,
            "food_name": self.name,
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "confidence": self.confidence,
            "confidence_source": self.confidence_source.value,
            "meal_type": self.meal_type.value if self.meal_type else None,
            "logged_via": self.logged_via,
            "image_url": self.image_url,
            "created_at": self.timestamp,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "FoodEntry":
        meal = row.get("meal_type")
        return cls(
            owner_id=row.get("user_id", ""),
            name=row.get("food_name", ""),
            calories=int(row.get("calories") or 0),
            confidence=float(row.get("confidence") or 0.0),
            confidence_source=ConfidenceSource(row.get("confidence_source") or ConfidenceSource.USER_DESCRIBED.value),
            timestamp=row.get("created_at", ""),
            meal_type=MealType(meal) if meal else None,
            protein=row.get("protein"),
            carbs=row.get("carbs"),
            fat=row.get("fat"),
            logged_via=row.get("logged_via") or "chat",
            image_url=row.get("image_url"),
        )


@dataclass
class WeightEntry:
    owner_id: str
    weight_kg: float
    timestamp: str

    def to_row(self) -> Dict[str, Any]:
        return {"user_id": self.owner_id, "weight_kg": self.weight_kg, "created_at": self.timestamp}
