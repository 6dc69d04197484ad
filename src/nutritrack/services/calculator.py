"""Nutrient calculation from catalog coefficients with an Atwater sanity check."""

import logging
import math
from dataclasses import dataclass

from nutritrack.domain.nutrition import Nutrients
from nutritrack.errors import DataIntegrityError, InvalidPortionError
from nutritrack.services.catalog import FoodCatalog, find_portion
from nutritrack.services.totals import round_calories, round_macro

_PROTEIN_KCAL = 4
_CARBS_KCAL = 4
_FAT_KCAL = 9

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SanityPolicy:
    """Tolerances for the calories vs macros consistency check."""

    floor_kcal: float = 10.0
    soft_ratio: float = 0.2
    soft_min_kcal: float = 20.0
    hard_ratio: float = 0.5
    hard_min_kcal: float = 50.0


@dataclass
class NutritionCalculator:
    """The only component allowed to turn grams of a food into nutrients."""

    catalog: FoodCatalog
    policy: SanityPolicy = SanityPolicy()

    def calculate_nutrients(self, food_id: str, portion_grams: float) -> Nutrients:
        """Compute rounded nutrients for a portion of a catalog food.

        Raises NotFoundError for unknown ids, InvalidPortionError for
        non-positive or non-numeric grams and DataIntegrityError when the
        result grossly contradicts the Atwater relationship.
        """
        food = self.catalog.require(food_id)
        grams = validate_portion(portion_grams)
        per_gram = food.nutrients_per_gram
        nutrients = Nutrients(
            calories=round_calories(per_gram.calories * grams),
            protein=round_macro(per_gram.protein * grams),
            carbs=round_macro(per_gram.carbs * grams),
            fat=round_macro(per_gram.fat * grams),
            fiber=round_macro(per_gram.fiber * grams),
            source_database=food.source,
        )
        verify_sanity(nutrients, food.name, self.policy)
        return nutrients

    def portion_for(self, food_id: str, portion_label: str | None = None) -> float:
        """Return preset grams for a portion label, else the default portion."""
        food = self.catalog.require(food_id)
        preset = find_portion(food, portion_label)
        if preset is not None:
            return preset.grams
        return food.default_portion_grams


def validate_portion(portion_grams: object) -> float:
    """Return grams as a float or raise InvalidPortionError."""
    if isinstance(portion_grams, bool) or not isinstance(portion_grams, int | float):
        raise InvalidPortionError(f"Invalid portion grams: {portion_grams!r}")
    grams = float(portion_grams)
    if not math.isfinite(grams) or grams <= 0:
        raise InvalidPortionError(f"Invalid portion grams: {portion_grams!r}")
    return grams


def atwater_calories(nutrients: Nutrients) -> float:
    """Calories implied by the macros (4/4/9 kcal per gram)."""
    return (
        nutrients.protein * _PROTEIN_KCAL
        + nutrients.carbs * _CARBS_KCAL
        + nutrients.fat * _FAT_KCAL
    )


def verify_sanity(
    nutrients: Nutrients, food_name: str, policy: SanityPolicy = SanityPolicy()
) -> None:
    """Check calories against the macros.

    Near-zero foods pass trivially. Deviations beyond the soft tolerance are
    logged; beyond the hard tolerance they raise DataIntegrityError.
    """
    calories = nutrients.calories
    expected = atwater_calories(nutrients)
    if calories < policy.floor_kcal and expected < policy.floor_kcal:
        return

    diff = abs(calories - expected)
    soft_tolerance = max(calories * policy.soft_ratio, policy.soft_min_kcal)
    if diff <= soft_tolerance:
        return

    hard_tolerance = max(calories * policy.hard_ratio, policy.hard_min_kcal)
    if diff > hard_tolerance:
        raise DataIntegrityError(
            f"Sanity check failed for {food_name}: listed {calories} kcal, "
            f"macros imply {expected:.0f} kcal"
        )
    _logger.warning(
        "Sanity check warning for %s: listed %s kcal, macros imply %.0f kcal",
        food_name,
        calories,
        expected,
    )
