"""Nutrition domain models."""

from dataclasses import dataclass
from enum import StrEnum


class SourceDatabase(StrEnum):
    """Provenance tag for a nutrient record."""

    CATALOG = "Catalog"
    AI_ESTIMATED = "AI-estimated"
    CUSTOM = "Custom"


@dataclass(frozen=True)
class NutrientCoefficients:
    """Per-gram nutrient coefficients for a catalog food."""

    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float


@dataclass(frozen=True)
class Nutrients:
    """Rounded nutrient breakdown attached to an item, meal or day."""

    calories: int
    protein: float
    carbs: float
    fat: float
    fiber: float
    source_database: SourceDatabase
    micros: tuple[str, ...] = ()


@dataclass(frozen=True)
class MicroTarget:
    """Daily micronutrient goal, e.g. Iron 18mg."""

    name: str
    amount: str


@dataclass(frozen=True)
class NutritionTargets:
    """Calorie and macro goals snapshotted onto each daily log."""

    calories: int
    protein: float
    carbs: float
    fat: float
    fiber: float
    micros: tuple[MicroTarget, ...] = ()


DEFAULT_TARGETS = NutritionTargets(
    calories=2000,
    protein=80,
    carbs=250,
    fat=60,
    fiber=30,
)
