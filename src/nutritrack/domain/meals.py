"""Domain models for meal logging."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from nutritrack.domain.nutrition import Nutrients, NutritionTargets


class Confidence(StrEnum):
    """How much the item's identity and weight can be trusted."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ItemOrigin(StrEnum):
    """Where a meal item came from."""

    MANUAL = "manual"
    AI = "ai"
    SCAN = "scan"


class MealType(StrEnum):
    """Meal slot within a day."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


@dataclass(frozen=True)
class MealItem:
    """One resolved food entry within a meal."""

    id: str
    food_id: str
    portion_grams: float
    portion_label: str
    nutrients: Nutrients
    confidence: Confidence
    origin: ItemOrigin


@dataclass(frozen=True)
class Meal:
    """A timestamped set of items with cached totals."""

    id: str
    timestamp: datetime
    items: tuple[MealItem, ...]
    meal_type: MealType
    total_nutrients: Nutrients


@dataclass(frozen=True)
class DailyLog:
    """All meals of one local calendar day with running totals."""

    date: str
    meals: tuple[Meal, ...]
    total_nutrients: Nutrients
    targets: NutritionTargets
