"""Drift-free nutrient arithmetic and the two daily aggregation strategies."""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from nutritrack.domain.meals import Meal, MealItem
from nutritrack.domain.nutrition import Nutrients, SourceDatabase

_SCALE = 100
_ONE = Decimal("1")
_TENTH = Decimal("0.1")


def round_calories(value: float) -> int:
    """Round calories to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(_ONE, rounding=ROUND_HALF_UP))


def round_macro(value: float) -> float:
    """Round grams to one decimal place, halves away from zero."""
    return float(Decimal(str(value)).quantize(_TENTH, rounding=ROUND_HALF_UP))


def safe_add(*values: float) -> float:
    """Add decimal fractions in an integer domain (0.1 + 0.2 == 0.3)."""
    return sum(round(value * _SCALE) for value in values) / _SCALE


def merge_micros(*groups: Iterable[str]) -> tuple[str, ...]:
    """Union annotation lists, deduplicated by exact string."""
    merged: set[str] = set()
    for group in groups:
        merged.update(group)
    return tuple(sorted(merged))


def zero_nutrients(source: SourceDatabase = SourceDatabase.CUSTOM) -> Nutrients:
    """Return an all-zero nutrient record."""
    return Nutrients(
        calories=0,
        protein=0.0,
        carbs=0.0,
        fat=0.0,
        fiber=0.0,
        source_database=source,
    )


def sum_nutrients(a: Nutrients, b: Nutrients) -> Nutrients:
    """Add two records; provenance is taken from the left operand."""
    return Nutrients(
        calories=a.calories + b.calories,
        protein=safe_add(a.protein, b.protein),
        carbs=safe_add(a.carbs, b.carbs),
        fat=safe_add(a.fat, b.fat),
        fiber=safe_add(a.fiber, b.fiber),
        source_database=a.source_database,
        micros=merge_micros(a.micros, b.micros),
    )


def meal_totals(items: Iterable[MealItem]) -> Nutrients:
    """Sum item nutrients for a meal.

    The total keeps the items' provenance when they all share one, and is
    tagged Custom when they are mixed or the meal is empty.
    """
    items = list(items)
    sources = {item.nutrients.source_database for item in items}
    source = sources.pop() if len(sources) == 1 else SourceDatabase.CUSTOM
    total = zero_nutrients(source)
    for item in items:
        total = sum_nutrients(total, item.nutrients)
    return total


def apply_incremental(current_total: Nutrients, meal: Meal) -> Nutrients:
    """Incremental strategy: fold one new meal into a cached day total."""
    return sum_nutrients(current_total, meal.total_nutrients)


def recompute_from_scratch(meals: Iterable[Meal]) -> Nutrients:
    """Full recompute strategy: rebuild a day total from all its meals."""
    total = zero_nutrients()
    for meal in meals:
        total = sum_nutrients(total, meal.total_nutrients)
    return total
