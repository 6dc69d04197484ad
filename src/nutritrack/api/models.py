"""Pydantic models for API request bodies."""

from datetime import datetime

from pydantic import BaseModel, Field

from nutritrack.domain.meals import MealType
from nutritrack.domain.models import ActivityLevel, Gender, Goal
from nutritrack.domain.nutrition import MicroTarget, NutritionTargets


class MealItemRequest(BaseModel):
    """One item of a meal being logged.

    Items with a ``food_id`` are taken straight from the catalog. Items with
    only a ``name`` go through the same resolution as AI candidates.
    """

    food_id: str | None = None
    name: str | None = None
    grams: float | None = None
    portion: str | None = None
    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    micros: list[str] = Field(default_factory=list)


class MealRequest(BaseModel):
    """Body for logging a meal."""

    items: list[MealItemRequest] = Field(min_length=1)
    timestamp: datetime | None = None
    meal_type: MealType | None = None


class AnalyzeRequest(BaseModel):
    """Body for asking the model to identify a meal."""

    description: str | None = None
    image_base64: str | None = None


class ItemGramsRequest(BaseModel):
    """Body for changing one item's weight."""

    grams: float


class MicroTargetModel(BaseModel):
    """Micronutrient goal."""

    name: str
    amount: str


class TargetsRequest(BaseModel):
    """Daily nutrition targets."""

    calories: int
    protein: float
    carbs: float
    fat: float
    fiber: float
    micros: list[MicroTargetModel] = Field(default_factory=list)

    def to_domain(self) -> NutritionTargets:
        """Convert to the domain targets record."""
        return NutritionTargets(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
            fiber=self.fiber,
            micros=tuple(
                MicroTarget(name=micro.name, amount=micro.amount)
                for micro in self.micros
            ),
        )


class ProfileRequest(BaseModel):
    """Onboarding answers used to build the profile."""

    name: str = Field(min_length=1)
    gender: Gender
    age: int = Field(gt=0)
    height_cm: float = Field(gt=0)
    weight_kg: float = Field(gt=0)
    activity_level: ActivityLevel
    goal: Goal
    dietary_preference: str = "Vegetarian"
    medical_conditions: str = ""
