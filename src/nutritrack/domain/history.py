"""Domain models for history views."""

from dataclasses import dataclass

from nutritrack.domain.nutrition import Nutrients, NutritionTargets


@dataclass(frozen=True)
class DailyTotals:
    """One day's totals inside a history window."""

    day: str
    nutrients: Nutrients
    targets: NutritionTargets | None
    meal_count: int


@dataclass(frozen=True)
class PeriodSummary:
    """Per-day totals and averages over a window of days."""

    start: str
    end: str
    daily: tuple[DailyTotals, ...]
    avg_calories: int
    avg_protein: float
    avg_carbs: float
    avg_fat: float
    avg_fiber: float
