"""Turning untrusted meal candidates into trusted meal items."""

import json
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import uuid4

from pydantic import ValidationError

from nutritrack.domain.candidates import MealCandidate
from nutritrack.domain.meals import Confidence, ItemOrigin, Meal, MealItem, MealType
from nutritrack.domain.nutrition import Nutrients, SourceDatabase
from nutritrack.errors import CandidateParseError
from nutritrack.services.calculator import NutritionCalculator, validate_portion
from nutritrack.services.search import FoodSearch
from nutritrack.services.totals import (
    meal_totals,
    merge_micros,
    round_calories,
    round_macro,
)

FALLBACK_PORTION_GRAMS = 100.0

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
_ARRAY = re.compile(r"\[.*\]", re.DOTALL)
_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_SLUG = re.compile(r"[^a-z0-9]+")

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a batch of candidates."""

    items: list[MealItem] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)


def parse_ai_json(text: str | None) -> object:
    """Decode model output that may be wrapped in Markdown fences or prose."""
    if not text or not text.strip():
        return []
    cleaned = _FENCE.sub("", text).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        for pattern in (_ARRAY, _OBJECT):
            match = pattern.search(cleaned)
            if match is None:
                continue
            try:
                return json.loads(match.group(0))
            except json.JSONDecodeError:
                continue
        raise CandidateParseError(
            "Failed to parse AI response; the model returned invalid JSON"
        ) from exc


def parse_candidates(payload: object) -> list[MealCandidate]:
    """Validate a producer payload into candidates, dropping malformed entries."""
    if isinstance(payload, str):
        payload = parse_ai_json(payload)
    if isinstance(payload, dict):
        items = payload.get("items")
        entries = items if isinstance(items, list) else [payload]
    elif isinstance(payload, list):
        entries = payload
    else:
        raise CandidateParseError(f"Unsupported candidate payload: {type(payload)}")

    candidates: list[MealCandidate] = []
    for entry in entries:
        try:
            candidates.append(MealCandidate.model_validate(entry))
        except ValidationError as exc:
            _logger.warning(
                "Dropping malformed candidate %r: %s", entry, exc.errors()[0]["msg"]
            )
    return candidates


def estimated_nutrients(candidate: MealCandidate) -> Nutrients:
    """Use producer-supplied numbers, rounded to the canonical policy."""
    return Nutrients(
        calories=round_calories(candidate.calories or 0.0),
        protein=round_macro(candidate.protein or 0.0),
        carbs=round_macro(candidate.carbs or 0.0),
        fat=round_macro(candidate.fat or 0.0),
        fiber=round_macro(candidate.fiber or 0.0),
        source_database=SourceDatabase.AI_ESTIMATED,
        micros=merge_micros(candidate.micros),
    )


def infer_meal_type(timestamp: datetime) -> MealType:
    """Guess the meal slot from the local hour of the timestamp."""
    hour = timestamp.hour
    if 5 <= hour < 11:
        return MealType.BREAKFAST
    if 11 <= hour < 16:
        return MealType.LUNCH
    if 16 <= hour < 22:
        return MealType.DINNER
    return MealType.SNACK


def build_meal(
    items: Iterable[MealItem],
    timestamp: datetime,
    meal_type: MealType | None = None,
) -> Meal:
    """Create a new meal with cached totals."""
    items = tuple(items)
    return Meal(
        id=str(uuid4()),
        timestamp=timestamp,
        items=items,
        meal_type=meal_type or infer_meal_type(timestamp),
        total_nutrients=meal_totals(items),
    )


@dataclass
class EntryService:
    """Resolves candidates against the catalog before anything is stored."""

    calculator: NutritionCalculator
    search: FoodSearch

    def resolve(
        self, candidate: MealCandidate, origin: ItemOrigin = ItemOrigin.AI
    ) -> MealItem | None:
        """Resolve one candidate.

        A catalog match always wins: nutrients are recomputed from catalog
        coefficients and any supplied numbers are ignored. Without a match the
        supplied numbers are used and tagged AI-estimated. Candidates with
        neither resolve to None.
        """
        food = self.search.best_match(candidate.name)
        if food is not None:
            grams = candidate.grams or self.calculator.portion_for(
                food.id, candidate.portion
            )
            nutrients = self.calculator.calculate_nutrients(food.id, grams)
            if candidate.micros:
                nutrients = replace(nutrients, micros=merge_micros(candidate.micros))
            return MealItem(
                id=str(uuid4()),
                food_id=food.id,
                portion_grams=grams,
                portion_label=_portion_label(grams, food.name),
                nutrients=nutrients,
                confidence=Confidence.HIGH,
                origin=origin,
            )

        if candidate.has_nutrients():
            grams = candidate.grams or FALLBACK_PORTION_GRAMS
            return MealItem(
                id=str(uuid4()),
                food_id=_estimate_id(candidate.name),
                portion_grams=grams,
                portion_label=_portion_label(grams, candidate.name),
                nutrients=estimated_nutrients(candidate),
                confidence=Confidence.MEDIUM,
                origin=origin,
            )

        _logger.info("No catalog match or estimate for %r", candidate.name)
        return None

    def resolve_all(
        self, candidates: Iterable[MealCandidate], origin: ItemOrigin = ItemOrigin.AI
    ) -> Resolution:
        """Resolve a batch, collecting names that could not be resolved."""
        resolution = Resolution()
        for candidate in candidates:
            item = self.resolve(candidate, origin)
            if item is None:
                resolution.unresolved.append(candidate.name)
            else:
                resolution.items.append(item)
        return resolution

    def manual_item(
        self,
        food_id: str,
        grams: float | None = None,
        portion: str | None = None,
    ) -> MealItem:
        """Build an item picked directly from the catalog by the user."""
        food = self.calculator.catalog.require(food_id)
        if grams is None:
            grams = self.calculator.portion_for(food_id, portion)
        nutrients = self.calculator.calculate_nutrients(food_id, grams)
        return MealItem(
            id=str(uuid4()),
            food_id=food.id,
            portion_grams=float(grams),
            portion_label=_portion_label(grams, food.name),
            nutrients=nutrients,
            confidence=Confidence.HIGH,
            origin=ItemOrigin.MANUAL,
        )

    def rescale(self, item: MealItem, grams: float) -> MealItem:
        """Return the item at a new weight.

        Catalog foods are recomputed from their coefficients; estimates are
        scaled linearly from the stored values.
        """
        grams = validate_portion(grams)
        food = self.calculator.catalog.get(item.food_id)
        if food is not None:
            nutrients = self.calculator.calculate_nutrients(food.id, grams)
            nutrients = replace(nutrients, micros=item.nutrients.micros)
            label = _portion_label(grams, food.name)
        else:
            ratio = grams / item.portion_grams
            current = item.nutrients
            nutrients = replace(
                current,
                calories=round_calories(current.calories * ratio),
                protein=round_macro(current.protein * ratio),
                carbs=round_macro(current.carbs * ratio),
                fat=round_macro(current.fat * ratio),
                fiber=round_macro(current.fiber * ratio),
            )
            label = _portion_label(grams, _label_name(item))
        return replace(item, portion_grams=grams, portion_label=label, nutrients=nutrients)


def _portion_label(grams: float, name: str) -> str:
    return f"{grams:g}g {name}"


def _label_name(item: MealItem) -> str:
    prefix = f"{item.portion_grams:g}g "
    if item.portion_label.startswith(prefix):
        return item.portion_label[len(prefix) :]
    return item.portion_label


def _estimate_id(name: str) -> str:
    slug = _SLUG.sub("_", name.lower()).strip("_")
    return f"ai_{slug or 'item'}"
